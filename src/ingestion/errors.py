from __future__ import annotations


class UpstreamError(RuntimeError):
    """Raised when an upstream E-utilities call fails after exhausting retries."""

    def __init__(self, message: str, *, url: str | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.url = url
        self.attempts = attempts


class ModelAdapterError(RuntimeError):
    """Raised when the generative model is unavailable or its call fails."""
