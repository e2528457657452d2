from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence

from src.ingestion.models import FilterSet, Study

SORT_KEYS = ("relevant", "recent", "samples")

StudyPredicate = Callable[[Study], bool]


def _membership(values: Sequence[str], attr: str) -> Optional[StudyPredicate]:
    if not values:
        return None
    allowed = set(values)
    return lambda study: getattr(study, attr) is not None and getattr(study, attr) in allowed


def _year_range(bounds: Optional[Sequence[int]]) -> Optional[StudyPredicate]:
    if not bounds or len(bounds) != 2:
        return None
    low, high = bounds
    return lambda study: low <= study.year <= high


def _author(substring: Optional[str]) -> Optional[StudyPredicate]:
    if not substring:
        return None
    needle = substring.lower()

    def predicate(study: Study) -> bool:
        if study.submitter and needle in study.submitter.lower():
            return True
        return any(needle in author.lower() for author in study.authors)

    return predicate


def _journal(substring: Optional[str]) -> Optional[StudyPredicate]:
    if not substring:
        return None
    needle = substring.lower()
    return lambda study: bool(study.journal) and needle in study.journal.lower()


def build_predicates(filters: FilterSet) -> List[StudyPredicate]:
    """One predicate per non-empty filter dimension."""
    candidates = (
        _membership(filters.organisms, "organism"),
        _membership(filters.exp_types, "exp_type"),
        _membership(filters.platforms, "platform"),
        _year_range(filters.year_range),
        _author(filters.author),
        _journal(filters.journal),
        _membership(filters.study_types, "study_type"),
    )
    return [predicate for predicate in candidates if predicate is not None]


def apply_filters(studies: Iterable[Study], filters: Optional[FilterSet]) -> List[Study]:
    """Keep the studies satisfying every non-empty dimension (logical AND)."""
    predicates = build_predicates(filters) if filters is not None else []
    return [study for study in studies if all(predicate(study) for predicate in predicates)]


def apply_sort(studies: Iterable[Study], key: Optional[str] = "relevant") -> List[Study]:
    """
    Return a sorted copy.

    ``recent`` orders by descending year, ``samples`` by descending sample
    count; anything else keeps the input order. Ties keep input order.
    """
    ordered = list(studies)
    if key == "recent":
        return sorted(ordered, key=lambda study: study.year, reverse=True)
    if key == "samples":
        return sorted(ordered, key=lambda study: study.samples, reverse=True)
    return ordered
