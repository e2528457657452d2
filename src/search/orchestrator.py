from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from src.analytics import apply_filters, apply_sort
from src.analytics.field_extractor import extract_tissue
from src.ingestion.eutils_client import EutilsClient
from src.ingestion.models import FilterSet, Sample, SearchResult, Study, StudyDetail
from src.structuring.records import expand_sra_record, first_text, parse_runs
from src.structuring.transformer import transform_batch, transform_detail
from src.utils.identifiers import normalize_accession

from .pagination import paginate

logger = logging.getLogger(__name__)

# Fan-out order also decides which duplicate survives.
DATABASES: Tuple[str, ...] = ("gds", "sra")
# Upstream rows fetched per database for each requested result row.
OVERFETCH_FACTOR = 5
MAX_SAMPLE_RECORDS = 500


@dataclass(frozen=True)
class SourceResult:
    database: str
    studies: Tuple[Study, ...]
    total: int


@dataclass(frozen=True)
class MergedResults:
    studies: Tuple[Study, ...]
    total: int


def merge_unique(batches: Iterable[Sequence[Study]]) -> Tuple[Study, ...]:
    """Concatenate study lists keeping only the first occurrence of each id."""
    seen: set[str] = set()
    merged: List[Study] = []
    for batch in batches:
        for study in batch:
            if study.id in seen:
                continue
            seen.add(study.id)
            merged.append(study)
    return tuple(merged)


def _format_reads(spots: int) -> str:
    return f"{spots / 1_000_000:.1f}M"


def _format_size(bases: int) -> str:
    return f"{bases / 1_000_000_000:.1f} Gb"


class StudySearchService:
    """Search, detail and samples lookups over the configured NCBI databases."""

    def __init__(
        self,
        client: EutilsClient,
        *,
        databases: Sequence[str] = DATABASES,
        max_workers: Optional[int] = None,
    ) -> None:
        self.client = client
        self.databases = tuple(databases)
        self.max_workers = max_workers or max(1, len(self.databases))

    # --------------------------
    # Search
    # --------------------------

    def search_database(self, database: str, query: str, limit: int) -> SourceResult:
        """ESearch then batched ESummary for one database."""
        found = self.client.esearch(database, query, retmax=limit)
        logger.info("NCBI %s: %d ids, %d total for %r", database, len(found.ids), found.count, query)
        if not found.ids:
            return SourceResult(database=database, studies=(), total=0)

        studies = tuple(
            study
            for payload in self.client.iter_summary_batches(database, found.ids)
            for study in transform_batch(payload, database)
        )
        return SourceResult(database=database, studies=studies, total=found.count)

    def search(self, query: str, limit_per_source: int) -> MergedResults:
        """
        Query every database concurrently and merge the results.

        A database whose pipeline fails contributes nothing; the others still
        return. ``total`` is the summed upstream estimate before filtering.

        The pipelines share ``self.client`` and its ``requests.Session``. They
        only issue independent GETs and never mutate the session's headers,
        cookies or adapters after construction; a caller that needs full
        isolation passes one client per thread.
        """
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                (database, pool.submit(self.search_database, database, query, limit_per_source))
                for database in self.databases
            ]
            settled: List[SourceResult] = []
            for database, future in futures:
                try:
                    settled.append(future.result())
                except Exception as e:  # settle-all: one database never fails the search
                    logger.warning("NCBI search failed for %s: %s", database, e)

        return MergedResults(
            studies=merge_unique(result.studies for result in settled),
            total=sum(result.total for result in settled),
        )

    def search_page(
        self,
        query: Optional[str],
        *,
        filters: Optional[FilterSet] = None,
        sort: Optional[str] = "relevant",
        page: int = 1,
        limit: int = 10,
    ) -> SearchResult:
        """Search, filter, sort, then paginate; an empty query makes no upstream call."""
        term = (query or "").strip()
        if not term:
            return SearchResult.empty(page=page, limit=limit)

        merged = self.search(term, limit_per_source=max(1, limit) * OVERFETCH_FACTOR)
        filtered = apply_filters(merged.studies, filters)
        return paginate(apply_sort(filtered, sort), page=page, limit=limit)

    # --------------------------
    # Detail & samples
    # --------------------------

    def get_study_detail(self, accession: str, database: str = "gds") -> Optional[StudyDetail]:
        """Look up one accession; returns None when upstream has no match."""
        term = normalize_accession(accession)
        if not term:
            return None
        found = self.client.esearch(database, term, retmax=1)
        if not found.ids:
            return None
        payload = self.client.esummary(database, found.ids[:1])
        # The detail id echoes the accession exactly as the caller sent it.
        return transform_detail(payload, database, accession.strip())

    def fetch_samples(self, accession: str) -> List[Sample]:
        """One sample per sequencing run linked to ``accession`` in SRA."""
        requested = normalize_accession(accession)
        if not requested:
            return []
        found = self.client.esearch("sra", requested, retmax=MAX_SAMPLE_RECORDS)
        if not found.ids:
            return []

        samples: List[Sample] = []
        seen: set[str] = set()
        for payload in self.client.iter_summary_batches("sra", found.ids):
            result = payload.get("result") if isinstance(payload, dict) else None
            if not isinstance(result, dict):
                continue
            for uid in result.get("uids") or []:
                item = result.get(str(uid))
                if not isinstance(item, dict):
                    continue
                record = expand_sra_record(item)
                condition = first_text(record, ("sample_name", "experiment_name", "library_name")) or "Unknown"
                tissue = extract_tissue(record)
                for run in parse_runs(record):
                    if run.accession in seen:
                        continue
                    seen.add(run.accession)
                    samples.append(
                        Sample(
                            id=run.accession,
                            condition=condition,
                            tissue=tissue,
                            reads=_format_reads(run.total_spots),
                            size=_format_size(run.total_bases),
                        )
                    )
        return samples
