from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.analytics import field_extractor as fx
from src.ingestion.models import Study, StudyDetail
from src.utils.identifiers import build_study_id, record_accession

from .records import RawRecord, expand_sra_record

logger = logging.getLogger(__name__)


def _result_section(payload: Any) -> Tuple[List[str], Mapping[str, Any]]:
    """Return ``(uids, result)`` from an ESummary payload, or empty values."""
    if not isinstance(payload, Mapping):
        return [], {}
    result = payload.get("result")
    if not isinstance(result, Mapping):
        return [], {}
    uids = result.get("uids")
    if not isinstance(uids, list):
        return [], result
    return [str(uid) for uid in uids], result


def study_fields(item: RawRecord, *, database: str, uid: str) -> Dict[str, Any]:
    """Apply every extractor to one raw summary record."""
    record = expand_sra_record(item)
    accession = record_accession(record)
    return {
        "id": build_study_id(record, database=database, uid=uid),
        "title": fx.extract_title(record),
        "abstract": fx.extract_abstract(record),
        "organism": fx.extract_organism(record),
        "exp_type": fx.extract_exp_type(record),
        "platform": fx.extract_platform(record),
        "year": fx.extract_year(record),
        "samples": fx.extract_samples(record),
        "disease": fx.extract_disease(record),
        "tissue": fx.extract_tissue(record),
        "conditions": fx.extract_conditions(record),
        "instrument": fx.extract_instrument(record),
        "library_strategy": fx.extract_library_strategy(record),
        "submitter": fx.extract_submitter(record),
        "journal": fx.extract_journal(record),
        "authors": fx.extract_authors(record),
        "study_type": fx.extract_study_type(record),
        "accession": accession,
        "geo_accession": accession if database == "gds" else None,
        "sra_accession": accession if database == "sra" else None,
    }


def transform_batch(payload: Any, database: str) -> List[Study]:
    """
    Build studies from one ESummary payload, preserving upstream uid order.

    Uids without a record body are skipped.
    """
    uids, result = _result_section(payload)
    studies = [
        Study(**study_fields(result[uid], database=database, uid=uid))
        for uid in uids
        if isinstance(result.get(uid), Mapping)
    ]
    if len(studies) < len(uids):
        logger.debug("Skipped %d %s uids without a summary body", len(uids) - len(studies), database)
    return studies


def transform_detail(
    payload: Any,
    database: str,
    requested_accession: Optional[str] = None,
) -> Optional[StudyDetail]:
    """
    Build a detail view from the first uid of an ESummary payload.

    The id echoes ``requested_accession`` when one is given.
    """
    uids, result = _result_section(payload)
    if not uids:
        return None
    uid = uids[0]
    item = result.get(uid)
    if not isinstance(item, Mapping):
        return None

    fields = study_fields(item, database=database, uid=uid)
    if requested_accession and requested_accession.strip():
        fields["id"] = requested_accession.strip()
    return StudyDetail(
        **fields,
        replicates=fx.extract_replicates(expand_sra_record(item)),
        similar_studies=[],
    )
