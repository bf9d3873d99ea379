"""Aggregation of triage decisions across duplicate releases."""

import math
from collections.abc import Collection, Iterable
from typing import Any, Mapping, Optional

from nzbscout.core.sorting import as_result
from nzbscout.metadata.release import normalize_release_title
from nzbscout.models.result import NzbResult
from nzbscout.models.triage import (
    DownloadUrl,
    TitleDecision,
    TriageDecision,
    TriageStatus,
    download_url_key,
)
from nzbscout.utils.logger import get_logger

logger = get_logger(__name__)

STATUS_RANKS = {
    TriageStatus.BLOCKED.value: 4,
    TriageStatus.FETCH_ERROR.value: 4,
    TriageStatus.ERROR.value: 4,
    TriageStatus.VERIFIED.value: 3,
    TriageStatus.UNVERIFIED.value: 2,
    TriageStatus.PENDING.value: 1,
    TriageStatus.SKIPPED.value: 1,
}

_UNSETTLED = {TriageStatus.PENDING.value, TriageStatus.SKIPPED.value}


def _status_value(status: Any) -> Any:
    return status.value if isinstance(status, TriageStatus) else status


def status_rank(status: Any) -> int:
    """Priority of a triage status; errors outrank successes."""
    return STATUS_RANKS.get(_status_value(status), 0)


def build_title_decision_map(decisions: Any) -> dict[str, TitleDecision]:
    """Collapse per-URL decisions into one decision per normalized title.

    Pending and skipped decisions are ignored. When a title appears under
    several download URLs the highest-ranked status wins; among equal ranks
    the later entry wins.

    Args:
        decisions: Mapping of download URL to TriageDecision (or mapping)

    Returns:
        Dict keyed by normalized title
    """
    title_map: dict[str, TitleDecision] = {}
    if not isinstance(decisions, Mapping):
        return title_map

    for download_url, raw in decisions.items():
        decision = TriageDecision.from_dict(raw)
        if decision is None:
            continue
        status = decision.status
        if not status or status in _UNSETTLED:
            continue
        normalized_title = decision.normalized_title or normalize_release_title(decision.title)
        if not normalized_title:
            continue

        existing = title_map.get(normalized_title)
        if existing is None or status_rank(status) >= status_rank(existing.status):
            title_map[normalized_title] = TitleDecision(
                status=status,
                normalized_title=normalized_title,
                blockers=list(decision.blockers),
                warnings=list(decision.warnings),
                archive_findings=list(decision.archive_findings),
                file_count=decision.file_count,
                title=decision.title,
                source_download_url=download_url,
                publish_date_ms=decision.publish_date_ms,
                age_days=decision.age_days,
            )

    logger.debug(
        "Built triage title map",
        decisions=len(decisions),
        titles=len(title_map),
    )
    return title_map


def _dedup_key(result: NzbResult) -> Optional[str]:
    return (
        result.normalized_title
        or normalize_release_title(result.title)
        or result.download_url
    )


def _candidate_limit(max_candidates: Any) -> float:
    if isinstance(max_candidates, bool):
        return 1
    try:
        limit = float(max_candidates)
    except OverflowError:
        return math.inf
    except (TypeError, ValueError):
        return 1
    # NaN and infinity mean no limit
    if not math.isfinite(limit):
        return math.inf
    return max(1.0, limit)


def prioritize_candidates(results: Any, max_candidates: Any) -> list:
    """Pick up to max_candidates results with distinct titles.

    The first occurrence of each normalized title wins; results without a
    title are keyed by their download URL. At least one result is returned
    when any are available. A non-finite limit selects every distinct title.
    """
    if not isinstance(results, list) or not results:
        return []

    limit = _candidate_limit(max_candidates)

    seen: set = set()
    selected = []
    for item in results:
        record = as_result(item)
        if record is None:
            continue
        key = _dedup_key(record)
        if key in seen:
            continue
        seen.add(key)
        selected.append(item)
        if len(selected) >= limit:
            break
    return selected


def _lookup_decision(
    decision_map: Mapping, stripped_keys: dict[DownloadUrl, Any], download_url: Any
) -> Any:
    if isinstance(download_url, str) and download_url in decision_map:
        return decision_map[download_url]
    key = download_url_key(download_url)
    if key is None:
        return None
    return stripped_keys.get(key)


def decisions_match_statuses(
    decision_map: Optional[Mapping[DownloadUrl, Any]],
    candidates: Any,
    allowed_statuses: Collection,
) -> bool:
    """Check that every candidate has a decision with an allowed status.

    Decisions are looked up by the candidate's download URL as given, then by
    its stripped form. Malformed arguments never match.
    """
    if not isinstance(decision_map, Mapping) or not decision_map:
        return False
    if isinstance(candidates, (str, bytes, Mapping)) or not isinstance(candidates, Iterable):
        return False
    if isinstance(allowed_statuses, (str, bytes)) or not isinstance(allowed_statuses, Collection):
        return False

    candidates = list(candidates)
    if not candidates:
        return False

    allowed = {_status_value(status) for status in allowed_statuses if isinstance(status, str)}
    stripped_keys: dict[DownloadUrl, Any] = {}
    for raw_key, decision in decision_map.items():
        key = download_url_key(raw_key)
        if key is not None:
            stripped_keys.setdefault(key, decision)

    for item in candidates:
        record = as_result(item)
        raw = _lookup_decision(decision_map, stripped_keys, record.download_url) if record else None
        decision = TriageDecision.from_dict(raw)
        if decision is None or decision.status not in allowed:
            return False
    return True
