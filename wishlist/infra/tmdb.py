"""The Movie Database (TMDb) metadata client.

Used once per movie, at creation time, to resolve descriptive fields for the
title a caller typed:

    lookup_by_title()      GET /search/movie       → MetadataMatch (first hit)
    resolve_genre_names()  GET /genre/movie/list   → {genre_id: name}

Every infrastructure failure (transport error, timeout, non-2xx status,
malformed JSON) is mapped to UpstreamUnavailableError here; callers only ever
see domain errors. No retries: the lifecycle service treats both calls as
single blocking attempts.

The API key travels as a query parameter, so error messages and log events
never include the request URL.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from wishlist.config import constants
from wishlist.domain.exceptions import MetadataNotFoundError, UpstreamUnavailableError
from wishlist.domain.models import MetadataMatch

# Name reported for genre ids missing from TMDb's genre list.
UNKNOWN_GENRE = "unknown genre"


def _parse_release_year(release_date: Any) -> Optional[int]:
    """Return the year of a ``YYYY-MM-DD`` string, or None when blank/garbled."""
    if not isinstance(release_date, str) or not release_date:
        return None
    year = release_date.split("-", 1)[0]
    return int(year) if year.isdigit() else None


def _to_match(result: dict[str, Any]) -> MetadataMatch:
    """Map one ``/search/movie`` result to a MetadataMatch.

    Raises:
        KeyError, TypeError, ValueError: the result lacks an id / title or has
            the wrong shape. The caller maps these to UpstreamUnavailableError.
    """
    return MetadataMatch(
        external_id=str(result["id"]),
        title=result.get("title") or result["original_title"],
        synopsis=result.get("overview") or None,
        release_year=_parse_release_year(result.get("release_date")),
        genre_ids=[int(genre_id) for genre_id in result.get("genre_ids") or []],
    )


class TMDbClient:
    """Thin async wrapper around the two TMDb endpoints used for enrichment.

    The underlying ``httpx.AsyncClient`` is created per client instance and
    shared across requests; the API creates one at startup and closes it at
    shutdown. Tests pass their own client built on ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.themoviedb.org/3",
        language: str = "en-US",
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._language = language
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
        )
        self._log = structlog.get_logger().bind(
            service=constants.SERVICE_NAME,
            component="tmdb",
        )

    @classmethod
    def from_settings(cls) -> "TMDbClient":
        """Build a client from wishlist.config.constants."""
        return cls(
            constants.TMDB_API_KEY,
            base_url=constants.TMDB_BASE_URL,
            language=constants.TMDB_LANGUAGE,
            timeout=constants.TMDB_TIMEOUT_SECONDS,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def lookup_by_title(self, title: str) -> MetadataMatch:
        """Return the first TMDb search hit for ``title``.

        Raises:
            MetadataNotFoundError: TMDb returned no results.
            UpstreamUnavailableError: TMDb could not be reached or answered
                with something other than a usable search payload.
        """
        payload = await self._get_json("/search/movie", {"query": title})

        results = payload.get("results")
        if not isinstance(results, list):
            self._log.error("tmdb.search.malformed_payload", title=title)
            raise UpstreamUnavailableError("TMDb search response has no results list")

        if not results:
            self._log.info("tmdb.search.no_match", title=title)
            raise MetadataNotFoundError(f"No TMDb match for title {title!r}")

        try:
            match = _to_match(results[0])
        except (KeyError, TypeError, ValueError) as exc:
            self._log.error(
                "tmdb.search.malformed_result",
                title=title,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise UpstreamUnavailableError(
                f"TMDb search result for {title!r} is missing required fields"
            ) from exc

        self._log.info(
            "tmdb.search.matched",
            title=title,
            external_id=match.external_id,
            matched_title=match.title,
        )
        return match

    async def resolve_genre_names(self, genre_ids: list[int]) -> dict[int, str]:
        """Map each of ``genre_ids`` to its TMDb genre name.

        Ids absent from TMDb's genre list map to UNKNOWN_GENRE. The returned
        dict preserves the order of ``genre_ids``. No request is made for an
        empty list.

        Raises:
            UpstreamUnavailableError: the genre list could not be fetched.
        """
        if not genre_ids:
            return {}

        payload = await self._get_json("/genre/movie/list", {})

        try:
            known = {int(genre["id"]): str(genre["name"]) for genre in payload["genres"]}
        except (KeyError, TypeError, ValueError) as exc:
            self._log.error(
                "tmdb.genres.malformed_payload",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise UpstreamUnavailableError("TMDb genre list response is malformed") from exc

        return {genre_id: known.get(genre_id, UNKNOWN_GENRE) for genre_id in genre_ids}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET ``path`` with the key and language attached; return the JSON object."""
        request_params = {"api_key": self._api_key, "language": self._language, **params}

        try:
            response = await self._http.get(path, params=request_params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            self._log.error("tmdb.request.bad_status", path=path, status_code=status_code)
            raise UpstreamUnavailableError(
                f"TMDb returned HTTP {status_code} for {path}"
            ) from exc
        except httpx.HTTPError as exc:
            self._log.error(
                "tmdb.request.transport_error",
                path=path,
                error_type=type(exc).__name__,
            )
            raise UpstreamUnavailableError(
                f"TMDb request to {path} failed: {type(exc).__name__}"
            ) from exc
        except ValueError as exc:
            self._log.error("tmdb.request.invalid_json", path=path)
            raise UpstreamUnavailableError(f"TMDb returned invalid JSON for {path}") from exc

        if not isinstance(payload, dict):
            self._log.error("tmdb.request.unexpected_payload", path=path)
            raise UpstreamUnavailableError(f"TMDb returned an unexpected payload for {path}")

        return payload
