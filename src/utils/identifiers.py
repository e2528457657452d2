from __future__ import annotations

import re
from typing import Any, Mapping, Optional

# Prefix used when a record carries no accession of its own.
SYNTHETIC_ID_PREFIXES: dict[str, str] = {
    "gds": "GSE",
    "sra": "SRA",
}

_ACCESSION_RE = re.compile(r"^(GSE|GDS|GSM|GPL|SRP|SRX|SRR|SRS|SRA|ERP|ERX|ERR|DRP|DRX|DRR|PRJ[A-Z]{2})\d+$")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def record_accession(record: Mapping[str, Any]) -> Optional[str]:
    """Return the record's own accession, preferring the top-level field.

    Falls back to the nested ``ids`` object some summary records carry.
    """

    accession = _clean(record.get("accession"))
    if accession:
        return accession
    ids = record.get("ids")
    if isinstance(ids, Mapping):
        return _clean(ids.get("accession"))
    return None


def build_study_id(record: Mapping[str, Any], *, database: str, uid: str) -> str:
    """Create a study identifier that is never empty.

    Preference order: accession > ids.accession > ``<DB-prefix><uid>``.
    """

    accession = record_accession(record)
    if accession:
        return accession
    prefix = SYNTHETIC_ID_PREFIXES.get(database.lower(), database.upper())
    return f"{prefix}{uid}"


def normalize_accession(value: str) -> str:
    """Trim and upper-case an accession typed by a user (``gse123`` -> ``GSE123``)."""

    text = value.strip()
    candidate = text.upper()
    if _ACCESSION_RE.match(candidate):
        return candidate
    return text
