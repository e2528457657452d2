"""Heuristic field extraction and filter/sort helpers for normalized studies."""

from __future__ import annotations

from .filters import SORT_KEYS, apply_filters, apply_sort, build_predicates

__all__ = [
    "SORT_KEYS",
    "apply_filters",
    "apply_sort",
    "build_predicates",
]
