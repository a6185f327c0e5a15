"""Movie lifecycle service.

Applies the wishlist's mutating operations to one movie at a time:

    create()       — enrich a title from TMDb and store it as Queued
    transition()   — move a movie to another lifecycle state
    rate()         — record a 0–5 rating
    get()          — load one movie
    get_history()  — return a movie's audit history

Each mutating operation follows the same shape: load the current row,
validate against wishlist.domain.lifecycle, then persist the change together
with exactly one history entry in a single repository call. A rejected
operation performs no write.

Error classification:
    ItemNotFoundError         → no movie with that id
    ConflictError             → duplicate title / TMDb id on create
    InvalidTransitionError    → lifecycle rule violated
    InvalidArgumentError      → bad rating / state name / blank title
    UpstreamUnavailableError  → TMDb unreachable or no match on create
    PersistenceError          → database failure (see services.errors)
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Union

import sqlalchemy.exc
import structlog

from wishlist.config import constants
from wishlist.domain.exceptions import (
    DuplicateExternalIdError,
    DuplicateTitleError,
    InvalidArgumentError,
    InvalidTransitionError,
    ItemNotFoundError,
    MetadataNotFoundError,
    UpstreamUnavailableError,
)
from wishlist.domain.lifecycle import (
    CREATED_ACTION,
    check_can_rate,
    check_transition,
    parse_state,
    rating_action,
    transition_action,
    validate_rating,
)
from wishlist.domain.models import HistoryEntry, Movie, MovieState
from wishlist.infra.repositories import MovieRepository
from wishlist.infra.tmdb import UNKNOWN_GENRE, TMDbClient
from wishlist.services.errors import classify_sqlalchemy_error, db_errors

MovieId = Union[uuid.UUID, str]


def _parse_movie_id(movie_id: MovieId) -> uuid.UUID:
    """Return ``movie_id`` as a UUID; a malformed id cannot name any movie."""
    if isinstance(movie_id, uuid.UUID):
        return movie_id
    try:
        return uuid.UUID(str(movie_id))
    except ValueError as exc:
        raise ItemNotFoundError(f"Movie {movie_id!r} not found") from exc


def _elapsed_ms(started_at: float) -> int:
    return int((time.monotonic() - started_at) * 1000)


class LifecycleService:
    """Validates and applies lifecycle operations on single movies.

    The repository and metadata client are stateless collaborators; one
    service instance per request is cheap and holds no cross-request state.
    """

    def __init__(self, repository: MovieRepository, metadata: TMDbClient) -> None:
        self._repo = repository
        self._metadata = metadata

    def _logger(self, operation: str, **context: Any) -> Any:
        return structlog.get_logger().bind(
            service=constants.SERVICE_NAME,
            component="lifecycle",
            operation=operation,
            **context,
        )

    async def _load(self, movie_id: uuid.UUID, log: Any, event: str) -> Movie:
        with db_errors(log, event):
            movie = await self._repo.get(movie_id)

        if movie is None:
            log.warning(f"{event}.not_found")
            raise ItemNotFoundError(f"Movie {movie_id} not found")

        return movie

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, movie_id: MovieId) -> Movie:
        """Return the movie with ``movie_id``.

        Raises:
            ItemNotFoundError: no such movie.
        """
        parsed_id = _parse_movie_id(movie_id)
        log = self._logger("get", movie_id=str(parsed_id))
        return await self._load(parsed_id, log, "lifecycle.get")

    async def get_history(self, movie_id: MovieId) -> list[HistoryEntry]:
        """Return the movie's history, oldest entry first, exactly as stored.

        Raises:
            ItemNotFoundError: no such movie.
        """
        parsed_id = _parse_movie_id(movie_id)
        log = self._logger("get_history", movie_id=str(parsed_id))
        movie = await self._load(parsed_id, log, "lifecycle.get_history")
        return list(movie.history)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, title: str) -> Movie:
        """Add a movie to the wishlist by title.

        Steps:
            1. Reject a title already on the list (case-insensitive).
            2. Look the title up on TMDb; take the first match.
            3. Reject a TMDb id already on the list.
            4. Resolve genre ids to names.
            5. Insert the movie as Queued with its "added to wishlist" entry.

        Nothing is written unless every step succeeds.

        Raises:
            InvalidArgumentError: blank title.
            DuplicateTitleError: title already listed.
            UpstreamUnavailableError: TMDb failed or had no match.
            DuplicateExternalIdError: TMDb id already listed (also raised
                when a concurrent create wins the insert race).
        """
        if not isinstance(title, str) or not title.strip():
            raise InvalidArgumentError("A title is required to add a movie")
        title = title.strip()

        log = self._logger("create", title=title)
        log.info("lifecycle.create.starting", status="starting")
        started_at = time.monotonic()

        with db_errors(log, "lifecycle.create"):
            existing = await self._repo.find_by_title(title)
        if existing is not None:
            log.warning("lifecycle.create.duplicate_title", existing_movie_id=str(existing.id))
            raise DuplicateTitleError(f"{title!r} is already on the wishlist")

        try:
            match = await self._metadata.lookup_by_title(title)
        except MetadataNotFoundError as exc:
            log.warning("lifecycle.create.no_metadata", status="failed")
            raise UpstreamUnavailableError(f"No metadata found for {title!r}") from exc
        except UpstreamUnavailableError as exc:
            log.error("lifecycle.create.upstream_unavailable", status="failed", error=str(exc))
            raise

        with db_errors(log, "lifecycle.create"):
            existing = await self._repo.find_by_external_id(match.external_id)
        if existing is not None:
            log.warning(
                "lifecycle.create.duplicate_external_id",
                external_id=match.external_id,
                existing_movie_id=str(existing.id),
            )
            raise DuplicateExternalIdError(
                f"{match.title!r} (TMDb id {match.external_id}) is already on the wishlist"
            )

        try:
            genre_names = await self._metadata.resolve_genre_names(match.genre_ids)
        except UpstreamUnavailableError as exc:
            log.error("lifecycle.create.upstream_unavailable", status="failed", error=str(exc))
            raise

        movie = Movie(
            external_id=match.external_id,
            title=match.title,
            synopsis=match.synopsis,
            release_year=match.release_year,
            genres=[genre_names.get(genre_id, UNKNOWN_GENRE) for genre_id in match.genre_ids],
            state=MovieState.QUEUED,
            rating=None,
            history=[HistoryEntry(action=CREATED_ACTION)],
        )

        try:
            created = await self._repo.create(movie)
        except sqlalchemy.exc.IntegrityError as exc:
            # Only uq_movies_external_id can fire here: a concurrent create won.
            log.warning(
                "lifecycle.create.duplicate_external_id",
                external_id=match.external_id,
                error_type=type(exc).__name__,
            )
            raise DuplicateExternalIdError(
                f"TMDb id {match.external_id} is already on the wishlist"
            ) from exc
        except sqlalchemy.exc.SQLAlchemyError as exc:
            domain_exc = classify_sqlalchemy_error(exc)
            log.error(
                "lifecycle.create.db_error",
                status="failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise domain_exc from exc

        log.info(
            "lifecycle.create.completed",
            status="completed",
            movie_id=str(created.id),
            external_id=created.external_id,
            duration_ms=_elapsed_ms(started_at),
        )
        return created

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def transition(
        self, movie_id: MovieId, target_state: Union[MovieState, str]
    ) -> Movie:
        """Move a movie to ``target_state`` and record the move in its history.

        Raises:
            InvalidArgumentError: ``target_state`` is not a state name.
            ItemNotFoundError: no such movie.
            InvalidTransitionError: the lifecycle table rejects the move.
        """
        target = parse_state(target_state)
        parsed_id = _parse_movie_id(movie_id)
        log = self._logger("transition", movie_id=str(parsed_id), target_state=target.value)
        log.info("lifecycle.transition.starting", status="starting")
        started_at = time.monotonic()

        movie = await self._load(parsed_id, log, "lifecycle.transition")

        try:
            check_transition(movie.state, target)
        except InvalidTransitionError as exc:
            log.warning(
                "lifecycle.transition.rejected",
                current_state=movie.state.value,
                reason=str(exc),
            )
            raise

        entry = HistoryEntry(action=transition_action(target))
        with db_errors(log, "lifecycle.transition"):
            updated = await self._repo.update_state(parsed_id, target, entry)

        if updated is None:
            log.warning("lifecycle.transition.not_found")
            raise ItemNotFoundError(f"Movie {parsed_id} not found")

        log.info(
            "lifecycle.transition.completed",
            status="completed",
            previous_state=movie.state.value,
            history_length=len(updated.history),
            duration_ms=_elapsed_ms(started_at),
        )
        return updated

    async def rate(self, movie_id: MovieId, rating: float) -> Movie:
        """Record ``rating`` for a movie and note it in its history.

        The movie's state is left untouched: rating a Watched movie does not
        make it Rated.

        Raises:
            ItemNotFoundError: no such movie.
            InvalidTransitionError: the movie is still Queued.
            InvalidArgumentError: ``rating`` is not a number in [0, 5].
        """
        parsed_id = _parse_movie_id(movie_id)
        log = self._logger("rate", movie_id=str(parsed_id))
        log.info("lifecycle.rate.starting", status="starting", rating=rating)
        started_at = time.monotonic()

        movie = await self._load(parsed_id, log, "lifecycle.rate")

        try:
            check_can_rate(movie.state)
            value = validate_rating(rating)
        except (InvalidArgumentError, InvalidTransitionError) as exc:
            log.warning(
                "lifecycle.rate.rejected",
                current_state=movie.state.value,
                reason=str(exc),
                error_type=type(exc).__name__,
            )
            raise

        entry = HistoryEntry(action=rating_action(value))
        with db_errors(log, "lifecycle.rate"):
            updated = await self._repo.update_rating(parsed_id, value, entry)

        if updated is None:
            log.warning("lifecycle.rate.not_found")
            raise ItemNotFoundError(f"Movie {parsed_id} not found")

        log.info(
            "lifecycle.rate.completed",
            status="completed",
            rating=value,
            history_length=len(updated.history),
            duration_ms=_elapsed_ms(started_at),
        )
        return updated
