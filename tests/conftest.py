import pathlib
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import pytest

# Ensure the project root (with the src package) is on the Python path for tests
PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.ingestion.eutils_client import EutilsClient
from src.ingestion.models import Study


@dataclass
class FunctionalRun:
    feature: str
    details: str


class ExecutionLog:
    def __init__(self) -> None:
        self.entries: List[FunctionalRun] = []

    def record(self, feature: str, details: str) -> None:
        self.entries.append(FunctionalRun(feature=feature, details=details))


def pytest_configure(config: pytest.Config) -> None:
    config.execution_log = ExecutionLog()


@pytest.fixture(scope="session")
def execution_log(pytestconfig: pytest.Config) -> ExecutionLog:
    return pytestconfig.execution_log


def pytest_terminal_summary(
    terminalreporter: Any, exitstatus: int
) -> None:  # type: ignore[override]
    log: ExecutionLog | None = getattr(terminalreporter.config, "execution_log", None)
    if not log or not log.entries:
        return

    terminalreporter.write_sep("=", "Functional scenario highlights")
    for entry in log.entries:
        terminalreporter.write_line(f"- {entry.feature}: {entry.details}")


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


@dataclass
class FakeSession:
    """Session double: ``handler(url, params)`` returns a response or raises."""

    handler: Callable[[str, Dict[str, Any]], FakeResponse]
    headers: Dict[str, str] = field(default_factory=dict)
    proxies: Dict[str, str] = field(default_factory=dict)
    trust_env: bool = True
    calls: List[Dict[str, Any]] = field(default_factory=list)

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> FakeResponse:
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        return self.handler(url, dict(params or {}))


def esearch_payload(ids: List[str], count: Optional[int] = None) -> Dict[str, Any]:
    return {"esearchresult": {"idlist": ids, "count": str(len(ids) if count is None else count)}}


def esummary_payload(records: Dict[str, Dict[str, Any]], uids: Optional[List[str]] = None) -> Dict[str, Any]:
    result: Dict[str, Any] = {"uids": uids if uids is not None else list(records)}
    result.update(records)
    return {"result": result}


@pytest.fixture
def make_client() -> Callable[..., EutilsClient]:
    """Build an EutilsClient over a FakeSession that never sleeps."""

    def factory(handler: Callable[[str, Dict[str, Any]], FakeResponse], **kwargs: Any) -> EutilsClient:
        sleeps: List[float] = []
        client = EutilsClient(
            "https://eutils.test/entrez/eutils",
            session=FakeSession(handler=handler),
            sleep=sleeps.append,
            **kwargs,
        )
        client.sleeps = sleeps  # type: ignore[attr-defined]
        return client

    return factory


@pytest.fixture
def make_study() -> Callable[..., Study]:
    def factory(study_id: str, **overrides: Any) -> Study:
        fields: Dict[str, Any] = {"id": study_id, "title": f"Study {study_id}", "year": 2020}
        fields.update(overrides)
        return Study(**fields)

    return factory
