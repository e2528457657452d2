from __future__ import annotations

import html
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

RawRecord = Mapping[str, Any]

_EMPTY = (None, "", [], {})


def _as_text(value: Any) -> Optional[str]:
    """Render a scalar (or list of scalars) field as text; nested maps yield None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        parts = [part for part in (_as_text(v) for v in value) if part]
        return ", ".join(parts) or None
    return None


def first_text(record: RawRecord, keys: Sequence[str]) -> Optional[str]:
    """Return the first non-empty textual value among ``keys``."""
    for key in keys:
        text = _as_text(record.get(key))
        if text:
            return text
    return None


def free_text(record: RawRecord, keys: Sequence[str] = ("summary", "title")) -> str:
    """Concatenate the free-text fields used for keyword scanning."""
    return " ".join(text for text in (_as_text(record.get(k)) for k in keys) if text)


def _parse_fragment(fragment: Any) -> Optional[ET.Element]:
    if not isinstance(fragment, str) or not fragment.strip():
        return None
    text = fragment.strip()
    if text.startswith("&lt;"):
        text = html.unescape(text)
    try:
        return ET.fromstring(f"<root>{text}</root>")
    except ET.ParseError as e:
        logger.debug("Could not parse XML fragment: %s", e)
        return None


def _attr(root: ET.Element, path: str, name: str) -> Optional[str]:
    node = root.find(path)
    if node is None:
        return None
    return _as_text(node.get(name))


def _node_text(root: ET.Element, path: str) -> Optional[str]:
    node = root.find(path)
    if node is None or node.text is None:
        return None
    return _as_text(node.text)


def expand_sra_record(record: RawRecord) -> Dict[str, Any]:
    """
    Flatten the ``expxml`` fragment of an SRA summary into plain fields.

    Returns a new mapping; explicit non-empty top-level fields win over
    derived ones. Records without ``expxml`` come back as a shallow copy.
    """
    derived: Dict[str, Any] = {}
    root = _parse_fragment(record.get("expxml"))
    if root is not None:
        candidates = {
            "title": _node_text(root, "Summary/Title"),
            "instrument": _attr(root, "Summary/Platform", "instrument_model"),
            "platform": _attr(root, "Summary/Platform", "instrument_model") or _node_text(root, "Summary/Platform"),
            "organism": _attr(root, "Organism", "ScientificName"),
            "submitter": _attr(root, "Submitter", "contact_name") or _attr(root, "Submitter", "center_name"),
            "accession": _attr(root, "Experiment", "acc"),
            "experiment_name": _attr(root, "Experiment", "name"),
            "study_accession": _attr(root, "Study", "acc"),
            "study_name": _attr(root, "Study", "name"),
            "sample_accession": _attr(root, "Sample", "acc"),
            "sample_name": _attr(root, "Sample", "name"),
            "library_name": _node_text(root, "Library_descriptor/LIBRARY_NAME"),
            "library_strategy": _node_text(root, "Library_descriptor/LIBRARY_STRATEGY"),
            "library_source": _node_text(root, "Library_descriptor/LIBRARY_SOURCE"),
            "bioproject": _node_text(root, "Bioproject"),
            "biosample": _node_text(root, "Biosample"),
        }
        derived = {key: value for key, value in candidates.items() if value}

    merged = dict(derived)
    merged.update({key: value for key, value in record.items() if value not in _EMPTY})
    return merged


@dataclass(frozen=True)
class RunInfo:
    accession: str
    total_spots: int
    total_bases: int


def _to_int(value: Optional[str]) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def parse_runs(record: RawRecord) -> List[RunInfo]:
    """Read the ``runs`` fragment of an SRA summary into run descriptors."""
    root = _parse_fragment(record.get("runs"))
    if root is None:
        return []
    runs: List[RunInfo] = []
    for node in root.iter("Run"):
        accession = _as_text(node.get("acc"))
        if not accession:
            continue
        runs.append(
            RunInfo(
                accession=accession,
                total_spots=_to_int(node.get("total_spots")),
                total_bases=_to_int(node.get("total_bases")),
            )
        )
    return runs
