"""Triage decision data models."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, NewType, Optional

DownloadUrl = NewType("DownloadUrl", str)


class TriageStatus(str, Enum):
    """Outcome of triaging a single NZB."""

    BLOCKED = "blocked"
    FETCH_ERROR = "fetch-error"
    ERROR = "error"
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    PENDING = "pending"
    SKIPPED = "skipped"
    UNKNOWN = "unknown"


def download_url_key(value: Any) -> Optional[DownloadUrl]:
    """Validate a download URL for use as a decision map key.

    Returns:
        The stripped URL, or None for blank or non-string values
    """
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped:
        return None
    return DownloadUrl(stripped)


def _list_or_empty(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _str_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def _number_or_none(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _status_value(value: Any) -> Optional[str]:
    if isinstance(value, TriageStatus):
        return value.value
    return _str_or_none(value)


@dataclass
class TriageDecision:
    """Triage verdict for one download URL, produced upstream."""

    status: Optional[str] = None  # TriageStatus value, None when unset
    blockers: list = field(default_factory=list)
    warnings: list = field(default_factory=list)
    archive_findings: list = field(default_factory=list)
    file_count: Optional[int] = None
    nzb_index: Optional[int] = None
    title: Optional[str] = None
    normalized_title: Optional[str] = None
    indexer_id: Optional[str] = None
    indexer_name: Optional[str] = None
    publish_date_ms: Optional[float] = None
    publish_date_iso: Optional[str] = None
    age_days: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["TriageDecision"]:
        """Build a decision from a loosely-shaped mapping.

        Accepts camelCase (wire) and snake_case keys. Wrong types fall back
        to defaults.

        Returns:
            TriageDecision, or None when data is not a mapping
        """
        if isinstance(data, TriageDecision):
            return data
        if not isinstance(data, Mapping):
            return None

        def pick(camel: str, snake: str) -> Any:
            return data.get(camel, data.get(snake))

        indexer_id = pick("indexerId", "indexer_id")
        return cls(
            status=_status_value(data.get("status")),
            blockers=_list_or_empty(data.get("blockers")),
            warnings=_list_or_empty(data.get("warnings")),
            archive_findings=_list_or_empty(pick("archiveFindings", "archive_findings")),
            file_count=_number_or_none(pick("fileCount", "file_count")),
            nzb_index=_number_or_none(pick("nzbIndex", "nzb_index")),
            title=_str_or_none(data.get("title")),
            normalized_title=_str_or_none(pick("normalizedTitle", "normalized_title")),
            indexer_id=str(indexer_id) if indexer_id not in (None, "") else None,
            indexer_name=_str_or_none(pick("indexerName", "indexer_name")),
            publish_date_ms=_number_or_none(pick("publishDateMs", "publish_date_ms")),
            publish_date_iso=_str_or_none(pick("publishDateIso", "publish_date_iso")),
            age_days=_number_or_none(pick("ageDays", "age_days")),
        )


@dataclass
class TitleDecision:
    """Winning decision for a normalized title across download URLs."""

    status: str
    normalized_title: str
    blockers: list = field(default_factory=list)
    warnings: list = field(default_factory=list)
    archive_findings: list = field(default_factory=list)
    file_count: Optional[int] = None
    title: Optional[str] = None
    source_download_url: Optional[str] = None
    publish_date_ms: Optional[float] = None
    age_days: Optional[float] = None
