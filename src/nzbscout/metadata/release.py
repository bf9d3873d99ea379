"""Release title parsing for NZB search results."""

import re
from typing import Any, Optional

import structlog
from guessit import guessit

logger = structlog.get_logger(__name__)

# Higher is better; unknown resolutions rank 0
RESOLUTION_RANKS = {
    "4320p": 6,
    "2160p": 5,
    "1440p": 4,
    "1080p": 4,
    "1080i": 4,
    "720p": 3,
    "576p": 2,
    "576i": 2,
    "540p": 2,
    "480p": 1,
    "480i": 1,
    "360p": 1,
    "240p": 1,
}

_SEPARATORS = re.compile(r"[\s._\-]+")


def quality_rank_for(resolution: Optional[str]) -> int:
    """Map a screen size such as '1080p' to a sortable rank."""
    if not resolution:
        return 0
    return RESOLUTION_RANKS.get(str(resolution).lower(), 0)


def _as_text(value: Any) -> Any:
    if value is None or isinstance(value, (str, int)):
        return value
    if isinstance(value, list):
        return [_as_text(item) for item in value]
    # babelfish Language/Country objects
    return str(value)


def parse_release_metadata(title: Any) -> dict[str, Any]:
    """Extract release attributes from an NZB title.

    Args:
        title: Release title, e.g. "Movie.Name.2023.1080p.BluRay.x264-GRP"

    Returns:
        Dict with resolution, source, codec, audioCodec, releaseGroup, year,
        season, episode, releaseLanguages and qualityRank. Empty when the
        title is missing or cannot be parsed.
    """
    if not isinstance(title, str) or not title.strip():
        return {}

    try:
        guess = guessit(title)
    except Exception as e:
        logger.warning("Failed to parse release title", title=title, error=str(e))
        return {}

    resolution = guess.get("screen_size")
    languages = guess.get("language")
    if languages is not None and not isinstance(languages, list):
        languages = [languages]

    metadata = {
        "resolution": _as_text(resolution),
        "source": _as_text(guess.get("source")),
        "codec": _as_text(guess.get("video_codec")),
        "audioCodec": _as_text(guess.get("audio_codec")),
        "releaseGroup": _as_text(guess.get("release_group")),
        "year": guess.get("year"),
        "season": guess.get("season"),
        "episode": guess.get("episode"),
        "releaseLanguages": _as_text(languages) or [],
        "qualityRank": quality_rank_for(resolution),
    }
    logger.debug(
        "Parsed release title",
        title=title,
        resolution=metadata["resolution"],
        quality_rank=metadata["qualityRank"],
    )
    return metadata


def normalize_release_title(title: Any) -> Optional[str]:
    """Fold a release title for de-duplication.

    Lowercases and collapses dots, underscores, dashes and whitespace into
    single spaces.

    Returns:
        Normalized title, or None for blank or non-string input
    """
    if not isinstance(title, str):
        return None
    normalized = _SEPARATORS.sub(" ", title.lower()).strip()
    return normalized or None
