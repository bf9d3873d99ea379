"""Annotation, size filtering and ordering of NZB search results."""

import math
from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key
from typing import Any, Mapping, Optional, Union

from nzbscout.metadata.release import normalize_release_title, parse_release_metadata
from nzbscout.models.result import NzbResult
from nzbscout.utils.logger import get_logger

logger = get_logger(__name__)

ResultLike = Union[NzbResult, Mapping[str, Any]]


class SortMode(str, Enum):
    """Result ordering strategies."""

    QUALITY_SIZE = "quality_size"
    LANGUAGE_QUALITY_SIZE = "language_quality_size"


@dataclass
class SortOptions:
    """Options for prepare_sorted_results."""

    max_size_bytes: Optional[float] = None
    sort_mode: Optional[str] = None
    preferred_language: Optional[str] = None

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "SortOptions":
        """Read options from camelCase or snake_case keys."""
        return cls(
            max_size_bytes=options.get("maxSizeBytes", options.get("max_size_bytes")),
            sort_mode=options.get("sortMode", options.get("sort_mode")),
            preferred_language=options.get(
                "preferredLanguage", options.get("preferred_language")
            ),
        )


def as_result(item: Any) -> Optional[NzbResult]:
    """Return item as an NzbResult, or None when it is not result-shaped."""
    if isinstance(item, NzbResult):
        return item
    if isinstance(item, Mapping):
        return NzbResult.from_dict(item)
    return None


def annotate_result(result: Any, sort_index: int = 0) -> Any:
    """Attach parsed release metadata and a normalized title.

    Args:
        result: NzbResult or result mapping
        sort_index: Position of the result in the indexer response

    Returns:
        A new annotated NzbResult; non-result input is returned unchanged
    """
    record = as_result(result)
    if record is None:
        return result

    metadata = parse_release_metadata(record.title or "")
    parsed_rank = metadata.pop("qualityRank", 0)

    return record.copy(
        release={**record.release, **metadata},
        quality_rank=parsed_rank or record.quality_rank,
        sort_index=sort_index,
        normalized_title=normalize_release_title(record.title),
        languages=list(record.languages),
        extra=dict(record.extra),
    )


def _valid_max_size(max_size_bytes: Any) -> bool:
    if isinstance(max_size_bytes, bool) or not isinstance(max_size_bytes, (int, float)):
        return False
    return math.isfinite(max_size_bytes) and max_size_bytes > 0


def apply_max_size_filter(results: Any, max_size_bytes: Any) -> Any:
    """Drop results larger than max_size_bytes.

    Results with an unknown size are always kept. The input is returned as-is
    when the limit is not a positive finite number or results is not a list.
    """
    if not isinstance(results, list) or not _valid_max_size(max_size_bytes):
        return results

    kept = []
    for item in results:
        record = as_result(item)
        size = record.known_size if record else None
        if size is None or size <= max_size_bytes:
            kept.append(item)

    if len(kept) != len(results):
        logger.debug(
            "Filtered oversized results",
            max_size_bytes=max_size_bytes,
            removed=len(results) - len(kept),
        )
    return kept


def matches_preferred_language(result: Any, preferred_language: Optional[str]) -> bool:
    """Check a result's language or languages against the preferred language."""
    if not preferred_language or not isinstance(preferred_language, str):
        return False
    record = as_result(result)
    if record is None:
        return False

    wanted = preferred_language.lower()
    if record.language and record.language.lower() == wanted:
        return True
    return any(lang and lang.lower() == wanted for lang in record.languages)


def quality_size_key(result: NzbResult) -> tuple:
    """Sort key: highest quality first, then largest size."""
    return (-result.quality_rank, -(result.known_size or 0))


def compare_quality_then_size(a: NzbResult, b: NzbResult) -> float:
    """Compare two results; negative when a sorts before b.

    Descending quality rank, ties broken by descending size with unknown
    sizes counted as zero.
    """
    if a.quality_rank != b.quality_rank:
        return b.quality_rank - a.quality_rank
    return (b.known_size or 0) - (a.known_size or 0)


_QUALITY_SIZE = cmp_to_key(compare_quality_then_size)


def _sorted_records(results: list) -> list:
    records = [as_result(item) for item in results]
    return sorted((r for r in records if r is not None), key=_QUALITY_SIZE)


def sort_results(
    results: Any,
    sort_mode: Optional[str] = None,
    preferred_language: Optional[str] = None,
) -> Any:
    """Order results by quality and size, optionally language-first.

    With ``language_quality_size`` and a preferred language, matching results
    come first; each group is sorted on its own.

    Returns:
        A new list of NzbResult records; empty or non-list input unchanged
    """
    if not isinstance(results, list) or not results:
        return results

    if sort_mode == SortMode.LANGUAGE_QUALITY_SIZE.value and preferred_language:
        preferred = []
        others = []
        for result in results:
            if matches_preferred_language(result, preferred_language):
                preferred.append(result)
            else:
                others.append(result)
        logger.debug(
            "Sorting results language-first",
            preferred_language=preferred_language,
            matching=len(preferred),
            other=len(others),
        )
        return _sorted_records(preferred) + _sorted_records(others)

    return _sorted_records(results)


def prepare_sorted_results(
    results: Any,
    options: Union[SortOptions, Mapping[str, Any], None] = None,
) -> Any:
    """Filter by maximum size, then sort.

    Args:
        results: List of NzbResult records or result mappings
        options: SortOptions or a mapping with the same keys

    Returns:
        New sorted list; the input list is not modified
    """
    if options is None:
        options = SortOptions()
    elif not isinstance(options, SortOptions):
        options = SortOptions.from_mapping(options)

    working = apply_max_size_filter(results, options.max_size_bytes)
    return sort_results(working, options.sort_mode, options.preferred_language)
