"""Locale token and title normalization utilities."""

import re
import unicodedata
from typing import Any, Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_NON_ASCII = re.compile(r"[^\x00-\x7f]")


def normalize_language_tag(language: Any, fallback: str = "en-US") -> str:
    """Return a trimmed language tag, or the fallback when blank.

    Args:
        language: Language tag such as 'fr-FR'
        fallback: Tag returned for missing or blank input

    Returns:
        Language tag suitable for TMDB's ``language`` parameter
    """
    if not isinstance(language, str):
        return fallback
    trimmed = language.strip()
    return trimmed or fallback


def _clean_code(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    cleaned = value.strip().lower()
    return cleaned or None


def derive_locale_tokens(
    iso639: Optional[str] = None,
    iso3166: Optional[str] = None,
    fallback_language: Optional[str] = None,
) -> list[str]:
    """Derive locale tokens for a language/region pair.

    Tokens are produced in priority order:
    - ``{lang}-{region}`` when both are known
    - ``{lang}``
    - ``{fallback}-{region}`` when only the region is known
    - ``{region}``

    Args:
        iso639: ISO 639-1 language code (e.g., 'fr')
        iso3166: ISO 3166-1 region code (e.g., 'CA')
        fallback_language: Language paired with a bare region

    Returns:
        Lowercase tokens without duplicates, e.g. ['fr-ca', 'fr', 'ca']
    """
    lang = _clean_code(iso639)
    region = _clean_code(iso3166)
    fallback = _clean_code(fallback_language)

    tokens = []
    if lang and region:
        tokens.append(f"{lang}-{region}")
    if lang:
        tokens.append(lang)
    if not lang and region and fallback:
        tokens.append(f"{fallback}-{region}")
    if region:
        tokens.append(region)

    # a language and region can share a code ("de"/"DE")
    return list(dict.fromkeys(tokens))


def normalize_title_value(value: Any) -> str:
    """Fold a title for comparison: strip accents, case and punctuation.

    Only used for scoring candidates, never for display.
    """
    if not isinstance(value, str):
        return ""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", stripped.lower())


def contains_non_ascii(value: Any) -> bool:
    """Check whether a string carries characters outside ASCII."""
    if not isinstance(value, str):
        return False
    return bool(_NON_ASCII.search(value))
