"""Conversion of final NZB results to and from cacheable plain data."""

from typing import Any, Mapping, Optional

from nzbscout.models.result import NzbResult
from nzbscout.models.triage import TriageDecision


def sanitize_decision_for_cache(decision: Any) -> Optional[dict]:
    """Reduce a triage decision to plain, defaulted fields.

    Returns:
        Dict with camelCase keys, or None when there is no decision
    """
    if decision is None:
        return None
    record = TriageDecision.from_dict(decision)
    if record is None:
        return None

    return {
        "status": record.status or "unknown",
        "blockers": record.blockers,
        "warnings": record.warnings,
        "fileCount": record.file_count,
        "nzbIndex": record.nzb_index,
        "archiveFindings": record.archive_findings,
        "title": record.title,
        "normalizedTitle": record.normalized_title,
        "indexerId": record.indexer_id,
        "indexerName": record.indexer_name,
        "publishDateMs": record.publish_date_ms,
        "publishDateIso": record.publish_date_iso,
        "ageDays": record.age_days,
    }


def _serialize_one(result: Any) -> Any:
    if isinstance(result, NzbResult):
        serialized = result.to_dict()
        decision = result.triage_decision
    elif isinstance(result, Mapping):
        serialized = dict(result)
        decision = result.get("_triageDecision")
    else:
        return result

    if decision is not None:
        serialized["_triageDecision"] = sanitize_decision_for_cache(decision)
    return serialized


def serialize_final_results(results: Any) -> list:
    """Shallow-copy results into plain dicts suitable for caching.

    Embedded triage decisions are sanitized; entries that are not results
    pass through untouched.
    """
    if not isinstance(results, list):
        return []
    return [_serialize_one(result) for result in results]


def restore_final_results(serialized: Any) -> list:
    """Return cached results as stored; serialization has no inverse step."""
    if not isinstance(serialized, list):
        return []
    return serialized
