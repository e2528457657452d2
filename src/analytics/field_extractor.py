"""Best-effort extraction of normalized study fields from raw summary records.

Every ``extract_*`` function is total: it only reads the record and the
declared vocabularies, never mutates its input and returns a documented
default when no signal is found.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from src.structuring.records import RawRecord, first_text, free_text

from .vocabularies import (
    DISEASE_KEYWORDS,
    EXPERIMENT_TYPE_PATTERNS,
    MODEL_ORGANISMS,
    PLATFORM_PATTERNS,
    STUDY_TYPE_PATTERNS,
    TISSUE_KEYWORDS,
)

UNKNOWN = "Unknown"

ORGANISM_FIELDS = ("organism", "taxon", "taxonomy")
RELATION_FIELDS = ("extrelations", "relations")
EXP_TYPE_FIELDS = ("type", "gdstype", "experiment_type", "library_strategy")
PLATFORM_FIELDS = ("platform", "instrument", "platformtitle")
YEAR_FIELDS = ("pdat", "pubdate", "release_date", "createdate", "publicationdate", "updatedate")
SAMPLE_FIELDS = ("samples", "n_samples", "sample_count")
REPLICATE_FIELDS = ("replicates", "replicate_count")
DISEASE_FIELDS = ("disease", "condition")
TISSUE_FIELDS = ("tissue", "source_name", "biosource", "source", "sample_type")

DISEASE_WINDOW_BEFORE = 20
DISEASE_WINDOW_AFTER = 50


def _compile(table: Sequence[Tuple[str, str]]) -> Tuple[Tuple[re.Pattern[str], str], ...]:
    return tuple((re.compile(pattern, flags=re.IGNORECASE), label) for pattern, label in table)


def _word_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", flags=re.IGNORECASE)


_EXP_TYPE_RULES = _compile(EXPERIMENT_TYPE_PATTERNS)
_PLATFORM_RULES = _compile(PLATFORM_PATTERNS)
_ORGANISM_TERMS = tuple((term, _word_pattern(term)) for term in MODEL_ORGANISMS)
_TISSUE_TERMS = tuple((term, _word_pattern(term)) for term in TISSUE_KEYWORDS)
# Keywords are word prefixes: "alzheimer" matches "Alzheimers", never the middle of a word.
_DISEASE_RE = re.compile(
    r"(?<!\w)(?:" + "|".join(re.escape(term) for term in DISEASE_KEYWORDS) + r")\w*",
    flags=re.IGNORECASE,
)
_YEAR_RE = re.compile(r"\d{4}")


def _first_match(rules: Sequence[Tuple[re.Pattern[str], str]], text: str) -> Optional[str]:
    for pattern, label in rules:
        if pattern.search(text):
            return label
    return None


def _parse_count(record: RawRecord, keys: Sequence[str]) -> int:
    """First non-empty candidate parsed as int; a list counts its entries."""
    for key in keys:
        value = record.get(key)
        if value in (None, "", [], {}) or isinstance(value, bool):
            continue
        if isinstance(value, (list, tuple)):
            return len(value)
        if isinstance(value, (int, float)):
            return int(value)
        match = re.match(r"\s*(\d+)", str(value))
        return int(match.group(1)) if match else 0
    return 0


def _taxonomy_relation(record: RawRecord) -> Optional[str]:
    for key in RELATION_FIELDS:
        relations = record.get(key)
        if not isinstance(relations, (list, tuple)):
            continue
        for relation in relations:
            if not isinstance(relation, Mapping):
                continue
            kind = str(relation.get("relationtype") or relation.get("type") or "")
            if kind.strip().lower() != "taxonomy":
                continue
            target = first_text(relation, ("targetobject", "target"))
            if target:
                return target
    return None


def extract_organism(record: RawRecord) -> str:
    explicit = first_text(record, ORGANISM_FIELDS)
    if explicit:
        return explicit
    related = _taxonomy_relation(record)
    if related:
        return related
    text = free_text(record).lower()
    for term, pattern in _ORGANISM_TERMS:
        if pattern.search(text):
            return term.title()
    return UNKNOWN


def extract_exp_type(record: RawRecord) -> str:
    raw_type = first_text(record, EXP_TYPE_FIELDS) or ""
    text = f"{raw_type} {free_text(record)}".lower()
    return _first_match(_EXP_TYPE_RULES, text) or raw_type or UNKNOWN


def extract_platform(record: RawRecord) -> str:
    raw = first_text(record, PLATFORM_FIELDS) or ""
    return _first_match(_PLATFORM_RULES, raw) or raw or UNKNOWN


def extract_year(record: RawRecord, *, today: Optional[date] = None) -> int:
    """First 4-digit run among the date fields; the current year when none is found.

    The fallback is a low-confidence value, not an "unknown" marker.
    """
    for key in YEAR_FIELDS:
        value = first_text(record, (key,))
        if not value:
            continue
        match = _YEAR_RE.search(value)
        if match:
            return int(match.group(0))
    return (today or date.today()).year


def extract_samples(record: RawRecord) -> int:
    return _parse_count(record, SAMPLE_FIELDS)


def extract_replicates(record: RawRecord) -> int:
    return _parse_count(record, REPLICATE_FIELDS)


def extract_disease(record: RawRecord) -> Optional[str]:
    explicit = first_text(record, DISEASE_FIELDS)
    if explicit:
        return explicit
    text = free_text(record)
    match = _DISEASE_RE.search(text)
    if not match:
        return None
    start = max(0, match.start() - DISEASE_WINDOW_BEFORE)
    end = match.start() + DISEASE_WINDOW_AFTER
    return text[start:end].strip()


def extract_tissue(record: RawRecord) -> str:
    explicit = first_text(record, TISSUE_FIELDS)
    if explicit:
        return explicit
    text = free_text(record)
    for term, pattern in _TISSUE_TERMS:
        if pattern.search(text):
            return term.capitalize()
    return UNKNOWN


def extract_conditions(record: RawRecord) -> Optional[str]:
    return first_text(record, ("condition", "treatment"))


def extract_instrument(record: RawRecord) -> str:
    return first_text(record, ("instrument", "platform")) or UNKNOWN


def extract_library_strategy(record: RawRecord) -> str:
    return first_text(record, ("library_strategy", "strategy")) or UNKNOWN


def extract_submitter(record: RawRecord) -> str:
    return first_text(record, ("submitter", "contact", "author")) or UNKNOWN


def extract_journal(record: RawRecord) -> Optional[str]:
    return first_text(record, ("journal", "publication"))


def extract_study_type(record: RawRecord) -> Optional[str]:
    raw = first_text(record, ("study_type",))
    if not raw:
        return None
    lowered = raw.lower()
    for needle, label in STUDY_TYPE_PATTERNS:
        if needle in lowered:
            return label
    return None


def _split_names(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        names: List[str] = []
        for entry in value:
            if isinstance(entry, Mapping):
                entry = entry.get("name")
            if isinstance(entry, str) and entry.strip():
                names.append(entry.strip())
        return names
    if isinstance(value, str):
        return [name.strip() for name in value.split(",") if name.strip()]
    return []


def extract_authors(record: RawRecord) -> List[str]:
    for key in ("authors", "author"):
        if record.get(key) not in (None, "", []):
            return _split_names(record.get(key))
    return []


def extract_title(record: RawRecord) -> str:
    return first_text(record, ("title", "summary")) or "No title available"


def extract_abstract(record: RawRecord) -> str:
    return first_text(record, ("summary", "title")) or "No abstract available"
