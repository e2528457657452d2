from __future__ import annotations

from typing import Sequence

from src.ingestion.models import SearchResult, Study


def paginate(studies: Sequence[Study], *, page: int, limit: int) -> SearchResult:
    """Slice an already filtered and sorted list; pages past the end are empty."""
    page = max(1, page)
    limit = max(1, limit)
    start = (page - 1) * limit
    total = len(studies)
    return SearchResult(
        studies=list(studies[start : start + limit]),
        total=total,
        page=page,
        limit=limit,
        total_pages=SearchResult.page_count(total, limit),
    )
