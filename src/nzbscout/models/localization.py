"""TMDB localization data models."""

from dataclasses import asdict, dataclass, field
from typing import Literal, Optional

LocaleToken = str  # Lowercase "en-us", "en" or "us"

CandidateSource = Literal["translation", "alternative"]


@dataclass
class CandidateMeta:
    """Where a localized title candidate came from."""

    type: Optional[str] = None  # Alternative title type, e.g. "DVD title"
    iso639: Optional[str] = None
    iso3166: Optional[str] = None
    name: Optional[str] = None
    english_name: Optional[str] = None


@dataclass
class LocalizedTitleCandidate:
    """A scored option for one locale token; discarded after selection."""

    title: str
    source: CandidateSource
    normalized_title: str
    contains_non_ascii: bool
    overview: Optional[str] = None
    tagline: Optional[str] = None
    meta: CandidateMeta = field(default_factory=CandidateMeta)


@dataclass
class LocalizedTitle:
    """Best title chosen for a locale token."""

    title: str
    source: CandidateSource
    overview: Optional[str] = None
    tagline: Optional[str] = None
    type: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: LocalizedTitleCandidate) -> "LocalizedTitle":
        return cls(
            title=candidate.title,
            source=candidate.source,
            overview=candidate.overview,
            tagline=candidate.tagline,
            type=candidate.meta.type,
        )


@dataclass
class TmdbMatch:
    """Result of resolving a TMDB id."""

    tmdb_id: str
    title: Optional[str] = None
    release_date: Optional[str] = None
    media_type: Optional[str] = None
    language: Optional[str] = None  # Search language, title matches only
    via: Optional[str] = None  # "imdb", "title" or "title:<lang>"

    def __str__(self) -> str:
        """Human-readable representation."""
        date_part = f" ({self.release_date})" if self.release_date else ""
        return f"TMDB {self.tmdb_id}: {self.title or 'Unknown'}{date_part} via {self.via}"


@dataclass
class LocalizationBundle:
    """Canonical and localized titles for a work."""

    original_language: Optional[str] = None
    default_title: Optional[str] = None
    release_date: Optional[str] = None
    original_title: Optional[str] = None
    origin_countries: list[str] = field(default_factory=list)
    localized_titles: dict[LocaleToken, LocalizedTitle] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)
