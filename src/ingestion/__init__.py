"""Ingestion utilities for NCBI E-utilities."""

from .errors import ModelAdapterError, UpstreamError
from .eutils_client import EsearchResult, EutilsClient
from .models import FilterSet, Sample, SearchResult, SimilarStudy, Study, StudyDetail

__all__ = [
    "EsearchResult",
    "EutilsClient",
    "FilterSet",
    "ModelAdapterError",
    "Sample",
    "SearchResult",
    "SimilarStudy",
    "Study",
    "StudyDetail",
    "UpstreamError",
]
