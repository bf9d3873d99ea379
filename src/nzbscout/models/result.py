"""NZB search result data model."""

import math
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from nzbscout.models.triage import TriageDecision

# wire name -> attribute name
_FIELD_ALIASES = {
    "title": "title",
    "size": "size",
    "language": "language",
    "languages": "languages",
    "qualityRank": "quality_rank",
    "quality_rank": "quality_rank",
    "downloadUrl": "download_url",
    "download_url": "download_url",
    "normalizedTitle": "normalized_title",
    "normalized_title": "normalized_title",
    "sortIndex": "sort_index",
    "sort_index": "sort_index",
    "_triageDecision": "triage_decision",
    "triage_decision": "triage_decision",
}


def finite_size(value: Any) -> Optional[float]:
    """Return value as a size when it is a finite number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


@dataclass
class NzbResult:
    """A candidate download returned by an indexer search.

    Unknown values stay permissive: a missing size is never filtered out
    and sorts as zero, a missing quality rank sorts as zero.
    """

    title: Optional[str] = None
    size: Optional[float] = None  # Bytes; None when unknown
    language: Optional[str] = None
    languages: list[str] = field(default_factory=list)
    quality_rank: int = 0
    download_url: Optional[str] = None
    normalized_title: Optional[str] = None
    sort_index: Optional[int] = None
    release: dict = field(default_factory=dict)  # Parsed release attributes
    triage_decision: Optional[TriageDecision] = None
    extra: dict = field(default_factory=dict)  # Indexer-supplied fields

    @property
    def known_size(self) -> Optional[float]:
        """Size in bytes when it is a finite number."""
        return finite_size(self.size)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NzbResult":
        """Coerce a loosely-shaped result mapping into a record.

        Keys not mapped to a field are kept in ``extra``.
        """
        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            attr = _FIELD_ALIASES.get(key)
            if attr is None:
                extra[key] = value
            else:
                values[attr] = value

        title = values.get("title")
        language = values.get("language")
        languages = values.get("languages")
        quality_rank = values.get("quality_rank")
        sort_index = values.get("sort_index")
        download_url = values.get("download_url")
        normalized_title = values.get("normalized_title")

        return cls(
            title=title if isinstance(title, str) else None,
            size=finite_size(values.get("size")),
            language=language if isinstance(language, str) else None,
            languages=[lang for lang in languages if isinstance(lang, str)]
            if isinstance(languages, (list, tuple))
            else [],
            quality_rank=quality_rank
            if isinstance(quality_rank, int) and not isinstance(quality_rank, bool)
            else 0,
            download_url=download_url if isinstance(download_url, str) else None,
            normalized_title=normalized_title if isinstance(normalized_title, str) else None,
            sort_index=sort_index if isinstance(sort_index, int) else None,
            triage_decision=TriageDecision.from_dict(values.get("triage_decision")),
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain camelCase mapping with release and indexer fields merged in.

        The triage decision is left out; cache serialization adds a
        sanitized copy.
        """
        data: dict[str, Any] = dict(self.extra)
        data.update(self.release)
        data.update(
            {
                "title": self.title,
                "size": self.size,
                "language": self.language,
                "languages": list(self.languages),
                "qualityRank": self.quality_rank,
                "downloadUrl": self.download_url,
                "normalizedTitle": self.normalized_title,
                "sortIndex": self.sort_index,
            }
        )
        return data

    def copy(self, **changes: Any) -> "NzbResult":
        """Shallow copy with the given fields replaced."""
        return replace(self, **changes)
