from .orchestrator import DATABASES, MergedResults, SourceResult, StudySearchService, merge_unique
from .pagination import paginate

__all__ = [
    "DATABASES",
    "MergedResults",
    "SourceResult",
    "StudySearchService",
    "merge_unique",
    "paginate",
]
