"""Selection of the best localized title per locale token."""

import re
from typing import Any, Iterable, Optional

import structlog

from nzbscout.models.localization import (
    CandidateMeta,
    LocaleToken,
    LocalizedTitle,
    LocalizedTitleCandidate,
)
from nzbscout.utils.language import (
    contains_non_ascii,
    derive_locale_tokens,
    normalize_title_value,
)

logger = structlog.get_logger(__name__)

TRANSLATION_WEIGHT = 40
ALTERNATIVE_WEIGHT = 15
PREFERRED_TYPE_WEIGHT = 8
DISCOURAGED_TYPE_WEIGHT = -3
ORIGINAL_LANGUAGE_WEIGHT = 6
ORIGIN_COUNTRY_WEIGHT = 4
NON_ASCII_WEIGHT = 3
DEFAULT_TITLE_WEIGHT = -6
ORIGINAL_TITLE_WEIGHT = 6

_PREFERRED_TYPES = re.compile(r"official|literal|original", re.IGNORECASE)
_DISCOURAGED_TYPES = re.compile(r"festival|working|dvd|tv", re.IGNORECASE)


def _lower(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip().lower() or None


def score_localized_candidate(
    candidate: LocalizedTitleCandidate,
    default_normalized: str = "",
    original_normalized: str = "",
    original_language: Optional[str] = None,
    origin_countries: Iterable[str] = (),
) -> int:
    """Score a localized title candidate; higher is better.

    Translations beat alternative titles. Official alternative titles, the
    work's original language and origin countries, non-ASCII script and a
    match with the original title add points. Festival, working, DVD and TV
    titles and a copy of the default (English) title lose points.

    Args:
        candidate: Candidate to score
        default_normalized: Normalized default title of the work
        original_normalized: Normalized original title of the work
        original_language: Lowercase original language code
        origin_countries: Uppercase origin country codes

    Returns:
        Additive score
    """
    score = 0
    meta = candidate.meta

    if candidate.source == "translation":
        score += TRANSLATION_WEIGHT
    elif candidate.source == "alternative":
        score += ALTERNATIVE_WEIGHT

    if meta.type and _PREFERRED_TYPES.search(meta.type):
        score += PREFERRED_TYPE_WEIGHT
    if meta.type and _DISCOURAGED_TYPES.search(meta.type):
        score += DISCOURAGED_TYPE_WEIGHT

    if meta.iso639 and original_language and meta.iso639 == original_language:
        score += ORIGINAL_LANGUAGE_WEIGHT

    if meta.iso3166 and meta.iso3166.upper() in origin_countries:
        score += ORIGIN_COUNTRY_WEIGHT

    if candidate.contains_non_ascii:
        score += NON_ASCII_WEIGHT

    if candidate.normalized_title and candidate.normalized_title == default_normalized:
        score += DEFAULT_TITLE_WEIGHT
    if candidate.normalized_title and candidate.normalized_title == original_normalized:
        score += ORIGINAL_TITLE_WEIGHT

    return score


def _make_candidate(
    title: str,
    source: str,
    meta: CandidateMeta,
    overview: Optional[str] = None,
    tagline: Optional[str] = None,
) -> LocalizedTitleCandidate:
    return LocalizedTitleCandidate(
        title=title,
        source=source,
        normalized_title=normalize_title_value(title),
        contains_non_ascii=contains_non_ascii(title),
        overview=overview or None,
        tagline=tagline or None,
        meta=meta,
    )


def _register(
    candidate_map: dict[LocaleToken, list[LocalizedTitleCandidate]],
    tokens: list[str],
    candidate: LocalizedTitleCandidate,
) -> None:
    for token in tokens:
        candidate_map.setdefault(token, []).append(candidate)


def build_localized_titles(
    translations: Optional[list] = None,
    alternative_titles: Optional[list] = None,
    default_title: Optional[str] = None,
    original_title: Optional[str] = None,
    original_language: Optional[str] = None,
    origin_countries: Optional[Iterable[Any]] = None,
) -> dict[LocaleToken, LocalizedTitle]:
    """Merge translations and alternative titles into a locale -> title map.

    Each translation registers under its language and language-region
    tokens; each alternative title registers under its region tokens, using
    the original language as fallback. The highest-scoring candidate wins a
    token, earlier candidates winning ties.

    Args:
        translations: TMDB translation entries (iso_639_1, iso_3166_1, data)
        alternative_titles: TMDB alternative title entries
        default_title: Title in the request language
        original_title: Title in the original language
        original_language: ISO 639-1 original language
        origin_countries: ISO 3166-1 origin countries

    Returns:
        Dict keyed by locale token
    """
    translations = translations if isinstance(translations, list) else []
    alternative_titles = alternative_titles if isinstance(alternative_titles, list) else []
    if not translations and not alternative_titles:
        return {}

    default_normalized = normalize_title_value(default_title)
    original_normalized = normalize_title_value(original_title)
    normalized_language = _lower(original_language)
    normalized_countries = [
        entry.strip().upper()
        for entry in (origin_countries or [])
        if isinstance(entry, str) and entry.strip()
    ]

    candidate_map: dict[LocaleToken, list[LocalizedTitleCandidate]] = {}

    for entry in translations:
        if not isinstance(entry, dict) or not entry.get("iso_639_1"):
            continue
        data = entry.get("data") if isinstance(entry.get("data"), dict) else {}
        title = data.get("title") or data.get("name")
        if not isinstance(title, str) or not title:
            continue
        tokens = derive_locale_tokens(entry.get("iso_639_1"), entry.get("iso_3166_1"))
        meta = CandidateMeta(
            iso639=_lower(entry.get("iso_639_1")),
            iso3166=_lower(entry.get("iso_3166_1")),
            name=entry.get("name") or None,
            english_name=entry.get("english_name") or None,
        )
        _register(
            candidate_map,
            tokens,
            _make_candidate(
                title,
                "translation",
                meta,
                overview=data.get("overview"),
                tagline=data.get("tagline"),
            ),
        )

    for entry in alternative_titles:
        title = entry.get("title") if isinstance(entry, dict) else None
        if not isinstance(title, str) or not title:
            continue
        tokens = derive_locale_tokens(
            entry.get("iso_639_1"),
            entry.get("iso_3166_1"),
            fallback_language=normalized_language,
        )
        if not tokens:
            continue
        meta = CandidateMeta(
            type=entry.get("type") if isinstance(entry.get("type"), str) else None,
            iso639=_lower(entry.get("iso_639_1")),
            iso3166=_lower(entry.get("iso_3166_1")),
        )
        _register(candidate_map, tokens, _make_candidate(title, "alternative", meta))

    localized: dict[LocaleToken, LocalizedTitle] = {}
    for token, candidates in candidate_map.items():
        # sorted() is stable, so the first-seen candidate wins ties
        ranked = sorted(
            candidates,
            key=lambda candidate: score_localized_candidate(
                candidate,
                default_normalized=default_normalized,
                original_normalized=original_normalized,
                original_language=normalized_language,
                origin_countries=normalized_countries,
            ),
            reverse=True,
        )
        localized[token] = LocalizedTitle.from_candidate(ranked[0])

    logger.debug(
        "Built localized titles",
        translations=len(translations),
        alternative_titles=len(alternative_titles),
        locales=len(localized),
    )
    return localized
