"""TMDB API client for id resolution and title localization."""

from typing import Any, Iterable, Optional
from urllib.parse import quote

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from nzbscout.config import TMDBConfig
from nzbscout.metadata.localization import build_localized_titles
from nzbscout.models.localization import LocalizationBundle, TmdbMatch
from nzbscout.utils.language import normalize_language_tag

logger = structlog.get_logger(__name__)


class TMDBError(Exception):
    """Base exception for TMDB API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_client_error(self) -> bool:
        """True for 4xx responses, which mean "no such thing" rather than failure."""
        return self.status_code is not None and self.status_code < 500


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def media_endpoint(media_type: Optional[str]) -> str:
    """Map 'series'/'tv' to TMDB's tv path; anything else is a movie."""
    return "tv" if media_type in ("series", "tv") else "movie"


def _valid_year(year: Any) -> Optional[int]:
    if isinstance(year, bool):
        return None
    if isinstance(year, int):
        return year
    if isinstance(year, str) and year.strip().isdigit():
        return int(year.strip())
    return None


def _first_title(entry: dict) -> Optional[str]:
    return (
        entry.get("title")
        or entry.get("name")
        or entry.get("original_title")
        or entry.get("original_name")
        or None
    )


class TMDBClient:
    """Async TMDB client; failures are logged and reported as "no result"."""

    def __init__(
        self,
        api_key: Optional[str],
        config: Optional[TMDBConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize TMDB client.

        Args:
            api_key: TMDB API key
            config: TMDB configuration (defaults apply when omitted)
            transport: Optional httpx transport, used by tests
        """
        self.config = config or TMDBConfig(api_key=api_key, enabled=bool(api_key))
        self.api_key = api_key
        self.base_url = self.config.base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            transport=transport,
        )
        logger.info(
            "Initialized TMDB client",
            timeout_seconds=self.config.timeout_seconds,
            retry_attempts=self.config.retry_attempts,
        )

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "TMDBClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        """GET a TMDB endpoint and decode its JSON body.

        Raises:
            TMDBError: On HTTP, network or decoding failure
        """
        query = {"api_key": self.api_key}
        if params:
            query.update(params)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.retry_attempts),
            wait=wait_exponential(min=1, max=10),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self.client.get(f"{self.base_url}/{path}", params=query)
                    response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise TMDBError(
                f"TMDB API error: {e}", status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise TMDBError(f"TMDB request failed: {e}") from e
        except ValueError as e:
            raise TMDBError(f"TMDB returned invalid JSON: {e}") from e

    async def fetch_metadata(
        self,
        media_type: Optional[str],
        tmdb_id: Any,
        language: Optional[str] = None,
    ) -> Optional[dict]:
        """Get movie or TV show details.

        Args:
            media_type: 'movie', 'series' or 'tv'
            tmdb_id: TMDB id
            language: Language tag for localized fields (default from config)

        Returns:
            Details dict, or None if not found or the request failed
        """
        if not self.api_key or not media_type or not tmdb_id:
            return None

        endpoint = media_endpoint(media_type)
        try:
            data = await self._get(
                f"{endpoint}/{tmdb_id}",
                {"language": normalize_language_tag(language, self.config.default_language)},
            )
        except TMDBError as e:
            if e.status_code == 404:
                logger.warning("Title not found on TMDB", tmdb_id=tmdb_id, type=endpoint)
            else:
                logger.warning(
                    "TMDB metadata request failed",
                    tmdb_id=tmdb_id,
                    type=endpoint,
                    status_code=e.status_code,
                    error=str(e),
                )
            return None

        if not isinstance(data, dict) or not data:
            return None
        logger.info(
            "Fetched metadata from TMDB",
            tmdb_id=tmdb_id,
            type=endpoint,
            title=data.get("title") or data.get("name"),
            original_language=data.get("original_language"),
        )
        return data

    async def fetch_translations(self, media_type: Optional[str], tmdb_id: Any) -> list[dict]:
        """Get translations of a movie or TV show.

        Returns:
            Entries with iso_639_1, iso_3166_1, name, english_name and data;
            entries without a language or any translated text are dropped
        """
        if not self.api_key or not media_type or not tmdb_id:
            return []

        endpoint = media_endpoint(media_type)
        try:
            payload = await self._get(f"{endpoint}/{tmdb_id}/translations")
        except TMDBError as e:
            logger.warning(
                "TMDB translation request failed",
                tmdb_id=tmdb_id,
                type=endpoint,
                status_code=e.status_code,
                error=str(e),
            )
            return []

        entries = payload.get("translations") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            return []

        translations = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            data = entry.get("data") if isinstance(entry.get("data"), dict) else None
            if not entry.get("iso_639_1") or not data:
                continue
            if not (data.get("title") or data.get("name") or data.get("overview")):
                continue
            translations.append(
                {
                    "iso_639_1": entry.get("iso_639_1"),
                    "iso_3166_1": entry.get("iso_3166_1") or None,
                    "name": entry.get("name") or None,
                    "english_name": entry.get("english_name") or None,
                    "data": data,
                }
            )
        return translations

    async def fetch_alternative_titles(
        self, media_type: Optional[str], tmdb_id: Any
    ) -> list[dict]:
        """Get alternative titles of a movie or TV show.

        Movies list them under ``titles``, TV shows under ``results``.

        Returns:
            Entries with iso_3166_1, title, type and iso_639_1; entries
            without a region or title are dropped
        """
        if not self.api_key or not media_type or not tmdb_id:
            return []

        endpoint = media_endpoint(media_type)
        try:
            payload = await self._get(f"{endpoint}/{tmdb_id}/alternative_titles")
        except TMDBError as e:
            if e.is_client_error:
                logger.debug(
                    "No alternative titles on TMDB",
                    tmdb_id=tmdb_id,
                    status_code=e.status_code,
                )
            else:
                logger.warning(
                    "TMDB alternative titles request failed",
                    tmdb_id=tmdb_id,
                    type=endpoint,
                    status_code=e.status_code,
                    error=str(e),
                )
            return []

        payload = payload if isinstance(payload, dict) else {}
        entries = payload.get("results")
        if not isinstance(entries, list):
            entries = payload.get("titles")
        if not isinstance(entries, list):
            return []

        titles = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            title = entry.get("title") or entry.get("name")
            if not entry.get("iso_3166_1") or not title:
                continue
            titles.append(
                {
                    "iso_3166_1": entry.get("iso_3166_1"),
                    "title": title,
                    "type": entry.get("type") or None,
                    "iso_639_1": entry.get("iso_639_1") or None,
                }
            )
        return titles

    async def find_by_imdb(self, imdb_id: Optional[str]) -> Optional[TmdbMatch]:
        """Convert an IMDb id to a TMDB match using external id lookup.

        Returns:
            First match across movie, TV, episode and season results, or None
        """
        if not self.api_key or not imdb_id:
            return None

        try:
            payload = await self._get(
                f"find/{quote(str(imdb_id), safe='')}",
                {"external_source": "imdb_id"},
            )
        except TMDBError as e:
            if not e.is_client_error:
                logger.warning(
                    "TMDB IMDb lookup failed",
                    imdb_id=imdb_id,
                    status_code=e.status_code,
                    error=str(e),
                )
            return None

        payload = payload if isinstance(payload, dict) else {}
        for key in ("movie_results", "tv_results", "tv_episode_results", "tv_season_results"):
            results = payload.get(key)
            if not isinstance(results, list) or not results:
                continue
            first = results[0]
            if isinstance(first, dict) and first.get("id"):
                match = TmdbMatch(
                    tmdb_id=str(first["id"]),
                    title=_first_title(first),
                    release_date=first.get("release_date") or first.get("first_air_date"),
                    media_type=first.get("media_type"),
                )
                logger.info("Converted IMDb id to TMDB id", imdb_id=imdb_id, tmdb_id=match.tmdb_id)
                return match

        logger.debug("No TMDB results for IMDb id", imdb_id=imdb_id)
        return None

    async def search_by_title(
        self,
        media_type: Optional[str],
        title: Optional[str],
        year: Any = None,
        language: Optional[str] = None,
    ) -> Optional[TmdbMatch]:
        """Search TMDB by title and return the top hit.

        Args:
            media_type: 'movie', 'series' or 'tv'
            title: Search query
            year: Optional release (movie) or first air (TV) year
            language: Optional search language

        Returns:
            TmdbMatch for the first result with an id, or None
        """
        if not self.api_key or not title:
            return None

        endpoint = media_endpoint(media_type)
        params: dict[str, Any] = {"query": title, "include_adult": "false"}
        if language:
            params["language"] = normalize_language_tag(language)
        if (search_year := _valid_year(year)) is not None:
            params["first_air_date_year" if endpoint == "tv" else "year"] = search_year

        try:
            payload = await self._get(f"search/{endpoint}", params)
        except TMDBError as e:
            if not e.is_client_error:
                logger.warning(
                    "TMDB title search failed",
                    query=title,
                    status_code=e.status_code,
                    error=str(e),
                )
            return None

        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            results = []
        top = next((entry for entry in results if isinstance(entry, dict) and entry.get("id")), None)
        logger.info(
            "Searched TMDB by title",
            query=title,
            year=year,
            language=params.get("language"),
            result_count=len(results),
        )
        if top is None:
            return None

        return TmdbMatch(
            tmdb_id=str(top["id"]),
            title=_first_title(top),
            release_date=top.get("release_date") or top.get("first_air_date"),
            language=params.get("language"),
        )

    async def resolve_id(
        self,
        media_type: Optional[str],
        imdb_id: Optional[str] = None,
        title: Optional[str] = None,
        year: Any = None,
        language_candidates: Iterable[Optional[str]] = (),
    ) -> Optional[TmdbMatch]:
        """Resolve a TMDB id from an IMDb id, falling back to title search.

        Resolution order:
        1. IMDb external id lookup
        2. Title search, once per language candidate in order (or once with
           no language when there are none)

        Returns:
            First match, tagged with ``via`` ("imdb", "title:<lang>" or
            "title"), or None
        """
        if not self.api_key:
            return None
        normalized_type = "series" if media_type in ("series", "tv") else "movie"

        if imdb_id:
            match = await self.find_by_imdb(imdb_id)
            if match and match.tmdb_id:
                match.via = "imdb"
                return match

        if title:
            candidates = [c for c in (language_candidates or ()) if c] or [None]
            for candidate in candidates:
                match = await self.search_by_title(
                    normalized_type, title, year=year, language=candidate
                )
                if match and match.tmdb_id:
                    match.via = f"title:{candidate}" if candidate else "title"
                    return match

        logger.info(
            "Could not resolve TMDB id",
            type=normalized_type,
            imdb_id=imdb_id,
            title=title,
            year=year,
        )
        return None

    async def load_localization(
        self, media_type: Optional[str], tmdb_id: Any
    ) -> Optional[LocalizationBundle]:
        """Load canonical and localized titles for a work.

        Returns:
            LocalizationBundle, or None when the metadata cannot be fetched
        """
        metadata = await self.fetch_metadata(media_type, tmdb_id)
        if not metadata:
            return None

        translations = await self.fetch_translations(media_type, tmdb_id)
        alternative_titles = await self.fetch_alternative_titles(media_type, tmdb_id)

        default_title = metadata.get("title") or metadata.get("name") or None
        original_title = metadata.get("original_title") or metadata.get("original_name") or None
        origin_countries = metadata.get("origin_country")
        origin_countries = list(origin_countries) if isinstance(origin_countries, list) else []
        original_language = metadata.get("original_language")
        if not isinstance(original_language, str):
            original_language = None

        localized_titles = build_localized_titles(
            translations,
            alternative_titles,
            default_title=default_title,
            original_title=original_title,
            original_language=original_language,
            origin_countries=origin_countries,
        )

        return LocalizationBundle(
            original_language=(original_language or "").lower() or None,
            default_title=default_title,
            release_date=metadata.get("release_date") or metadata.get("first_air_date") or None,
            original_title=original_title,
            origin_countries=origin_countries,
            localized_titles=localized_titles,
        )
