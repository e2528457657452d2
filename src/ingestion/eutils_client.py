from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import requests

from .errors import UpstreamError

logger = logging.getLogger(__name__)

NCBI_EUTILS_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"

MAX_RETRIES = 3
RETRY_DELAY_S = 1.0
# ~3 requests/second without an API key.
BATCH_DELAY_S = 0.334
# ESummary accepts at most 500 ids per call.
SUMMARY_BATCH_SIZE = 500
# ESearch retmax ceiling.
MAX_SEARCH_PAGE_SIZE = 10000


@dataclass(frozen=True)
class EsearchResult:
    ids: Tuple[str, ...]
    count: int

    @classmethod
    def empty(cls) -> "EsearchResult":
        return cls(ids=(), count=0)


class EutilsClient:
    """
    NCBI E-utilities client (ESearch + ESummary, JSON mode).

    Goals:
    - bounded retry with escalating backoff on 429
    - explicit per-call timeout
    - batched summaries with a polite inter-batch delay
    """

    def __init__(
        self,
        base_url: str = NCBI_EUTILS_URL,
        *,
        timeout_s: float = 30.0,
        max_retries: int = MAX_RETRIES,
        retry_delay_s: float = RETRY_DELAY_S,
        batch_delay_s: float = BATCH_DELAY_S,
        api_key: Optional[str] = None,
        email: Optional[str] = None,
        tool: Optional[str] = "omics-study-portal",
        user_agent: str = "omics-study-portal/0.1",
        session: Optional[Any] = None,
        trust_env: bool = True,
        proxies: Optional[Dict[str, str]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.max_retries = max(1, max_retries)
        self.retry_delay_s = retry_delay_s
        self.batch_delay_s = batch_delay_s
        self.api_key = api_key
        self.email = email
        self.tool = tool
        self._sleep = sleep

        # Shared by the search fan-out threads; configured here and read-only afterwards.
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        # Allow callers to bypass environment proxy variables when local proxies block access.
        self.session.trust_env = trust_env
        if proxies:
            self.session.proxies.update(proxies)

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "EutilsClient":
        return cls(
            settings.ncbi_base_url,
            timeout_s=settings.ncbi_timeout_s,
            max_retries=settings.ncbi_max_retries,
            retry_delay_s=settings.ncbi_retry_delay_s,
            batch_delay_s=settings.ncbi_batch_delay_s,
            api_key=settings.ncbi_api_key,
            email=settings.ncbi_email,
            tool=settings.ncbi_tool,
            **kwargs,
        )

    # --------------------------
    # Transport
    # --------------------------

    def fetch_with_retry(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET ``url`` with up to ``max_retries`` attempts.

        Backoff before retry ``n`` (1-based):
        - HTTP 429: ``retry_delay_s * n * 2``
        - other non-2xx or network errors: ``retry_delay_s * n``
        Every failure consumes one attempt.
        """
        last_error = "no attempt made"
        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout_s)
            except requests.exceptions.RequestException as e:
                last_error = f"network error: {e}"
                delay = self.retry_delay_s * attempt
            else:
                status = response.status_code
                if 200 <= status < 300:
                    return response
                if status == 429:
                    last_error = "HTTP 429 rate limited"
                    delay = self.retry_delay_s * attempt * 2
                else:
                    last_error = f"HTTP {status}"
                    delay = self.retry_delay_s * attempt

            if attempt < self.max_retries:
                logger.warning(
                    "NCBI request failed (%s), attempt %d/%d; retrying in %.2fs",
                    last_error,
                    attempt,
                    self.max_retries,
                    delay,
                )
                self._sleep(delay)

        raise UpstreamError(
            f"NCBI request failed after {self.max_retries} attempts: {last_error}",
            url=url,
            attempts=self.max_retries,
        )

    def _params(self, database: str, **extra: Any) -> Dict[str, Any]:
        params: Dict[str, Any] = {"db": database, "retmode": "json"}
        params.update(extra)
        if self.api_key:
            params["api_key"] = self.api_key
        if self.email:
            params["email"] = self.email
        if self.tool:
            params["tool"] = self.tool
        return params

    def get_json(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/{endpoint}"
        response = self.fetch_with_retry(url, params=params)
        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(f"NCBI returned non-JSON response: {e}", url=url) from e
        if not isinstance(payload, dict):
            raise UpstreamError("NCBI returned an unexpected JSON payload", url=url)
        return payload

    # --------------------------
    # ESearch / ESummary
    # --------------------------

    def esearch(self, database: str, term: str, *, retmax: int = 20) -> EsearchResult:
        """Return the ordered id list and the upstream total-count estimate."""
        params = self._params(
            database,
            term=term,
            retmax=max(0, min(int(retmax), MAX_SEARCH_PAGE_SIZE)),
            usehistory="y",
        )
        payload = self.get_json("esearch.fcgi", params)
        result = payload.get("esearchresult")
        if not isinstance(result, dict) or not isinstance(result.get("idlist"), list):
            logger.info("No results from NCBI %s for %r", database, term)
            return EsearchResult.empty()

        ids = tuple(str(uid) for uid in result["idlist"] if str(uid).strip())
        try:
            count = int(result.get("count") or 0)
        except (TypeError, ValueError):
            count = 0
        return EsearchResult(ids=ids, count=count)

    def esummary(self, database: str, ids: Sequence[str]) -> Dict[str, Any]:
        if len(ids) > SUMMARY_BATCH_SIZE:
            raise ValueError(f"ESummary accepts at most {SUMMARY_BATCH_SIZE} ids per call")
        params = self._params(database, id=",".join(ids))
        return self.get_json("esummary.fcgi", params)

    def iter_summary_batches(
        self,
        database: str,
        ids: Sequence[str],
        *,
        batch_size: int = SUMMARY_BATCH_SIZE,
    ) -> Iterator[Dict[str, Any]]:
        """
        Yield one ESummary payload per batch of ids, in order.

        Batches run sequentially with ``batch_delay_s`` between them. A batch that
        fails after retries is logged and skipped.
        """
        batch_size = max(1, min(batch_size, SUMMARY_BATCH_SIZE))
        batches: List[Sequence[str]] = [ids[i : i + batch_size] for i in range(0, len(ids), batch_size)]
        for index, batch in enumerate(batches):
            if index > 0 and self.batch_delay_s > 0:
                self._sleep(self.batch_delay_s)
            try:
                yield self.esummary(database, batch)
            except UpstreamError as e:
                logger.warning("NCBI ESummary failed for %s batch %d: %s", database, index, e)
