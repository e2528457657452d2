from __future__ import annotations

from math import ceil
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True)


class Study(_CamelModel):
    """
    Normalized representation of one GEO/SRA summary record.
    """
    id: str = Field(min_length=1)
    title: str = "No title available"
    abstract: str = "No abstract available"

    organism: str = "Unknown"
    exp_type: str = "Unknown"
    platform: str = "Unknown"
    year: int
    samples: int = 0

    disease: Optional[str] = None
    tissue: str = "Unknown"
    conditions: Optional[str] = None
    instrument: str = "Unknown"
    library_strategy: str = "Unknown"
    submitter: str = "Unknown"
    journal: Optional[str] = None
    authors: List[str] = Field(default_factory=list)
    study_type: Optional[str] = None

    accession: Optional[str] = None
    geo_accession: Optional[str] = None
    sra_accession: Optional[str] = None


class SimilarStudy(_CamelModel):
    id: str
    title: str


class StudyDetail(Study):
    replicates: int = 0
    similar_studies: List[SimilarStudy] = Field(default_factory=list)


class Sample(_CamelModel):
    id: str
    condition: str = "Unknown"
    tissue: str = "Unknown"
    reads: str = "0.0M"
    size: str = "0.0 Gb"


class FilterSet(_CamelModel):
    """User-selected constraints; an empty/absent dimension means no constraint."""

    organisms: Tuple[str, ...] = ()
    exp_types: Tuple[str, ...] = ()
    platforms: Tuple[str, ...] = ()
    year_range: Optional[Tuple[int, int]] = None
    author: Optional[str] = None
    journal: Optional[str] = None
    study_types: Tuple[str, ...] = ()


class SearchResult(_CamelModel):
    studies: List[Study] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10
    total_pages: int = 0

    @classmethod
    def empty(cls, *, page: int = 1, limit: int = 10) -> "SearchResult":
        return cls(studies=[], total=0, page=page, limit=limit, total_pages=0)

    @staticmethod
    def page_count(total: int, limit: int) -> int:
        if limit <= 0:
            return 0
        return ceil(total / limit)
