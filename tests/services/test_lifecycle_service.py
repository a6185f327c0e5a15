"""Unit tests for wishlist.services.lifecycle — LifecycleService.

Coverage targets
----------------
- create():
    Success: Queued, unrated, enriched from TMDb, one "added to wishlist" entry
    Duplicate title (case-insensitive) → DuplicateTitleError, no lookup
    Different title resolving to a stored TMDb id → DuplicateExternalIdError
    No TMDb match / TMDb unreachable → UpstreamUnavailableError, nothing written
    Unknown genre ids → "unknown genre"
    Insert race (IntegrityError) → DuplicateExternalIdError
    Other SQLAlchemy errors → PersistenceError subclasses
- transition():
    Full review path; rejected moves leave the movie untouched
    Unknown state name → InvalidArgumentError
- rate():
    Bounds, Queued rejection, NotFound before argument checks
    Rating does not change state
- get() / get_history():
    Unknown or malformed id → ItemNotFoundError
    History is returned in stored order

Design decisions
----------------
- The repository and TMDb client are in-memory fakes (tests/fakes.py); the
  fake repository raises sqlalchemy IntegrityError on a duplicate
  external_id exactly as the real unique constraint would.
- Driver failures are injected by replacing a single repository method with
  an AsyncMock whose side_effect is a SQLAlchemy exception.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest
import sqlalchemy.exc

from tests.fakes import FakeMetadataSource, InMemoryMovieRepository, unreachable
from wishlist.domain.exceptions import (
    ConflictError,
    DuplicateExternalIdError,
    DuplicateTitleError,
    InvalidArgumentError,
    InvalidTransitionError,
    ItemNotFoundError,
    PersistenceTransientError,
    PersistenceValidationError,
    UpstreamUnavailableError,
)
from wishlist.domain.models import MovieState
from wishlist.infra.tmdb import UNKNOWN_GENRE
from wishlist.services.lifecycle import LifecycleService


@pytest.fixture()
def service(repo: InMemoryMovieRepository, metadata: FakeMetadataSource) -> LifecycleService:
    return LifecycleService(repo, metadata)  # type: ignore[arg-type]


async def _watched(service: LifecycleService, title: str = "Interstellar") -> uuid.UUID:
    movie = await service.create(title)
    await service.transition(movie.id, MovieState.WATCHED)
    return movie.id


# ---------------------------------------------------------------------------
# TestCreate
# ---------------------------------------------------------------------------


class TestCreate:
    async def test_creates_queued_enriched_movie(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        movie = await service.create("Interstellar")

        assert movie.state is MovieState.QUEUED
        assert movie.rating is None
        assert movie.external_id == "157336"
        assert movie.title == "Interstellar"
        assert movie.release_year == 2014
        assert movie.synopsis
        assert movie.genres == ["Adventure", "Drama", "Science Fiction"]
        assert [entry.action for entry in movie.history] == ["added to wishlist"]
        assert movie.id in repo.rows

    async def test_history_timestamp_is_utc(self, service: LifecycleService) -> None:
        movie = await service.create("Interstellar")
        assert movie.history[0].timestamp.utcoffset() is not None
        assert movie.history[0].timestamp.utcoffset().total_seconds() == 0

    async def test_title_is_stripped(
        self, service: LifecycleService, metadata: FakeMetadataSource
    ) -> None:
        await service.create("  Arrival  ")
        assert metadata.lookups == ["Arrival"]

    @pytest.mark.parametrize("title", ["", "   "])
    async def test_blank_title_rejected(
        self, service: LifecycleService, repo: InMemoryMovieRepository, title: str
    ) -> None:
        with pytest.raises(InvalidArgumentError):
            await service.create(title)
        assert repo.writes == 0

    async def test_duplicate_title_is_conflict_case_insensitive(
        self,
        service: LifecycleService,
        repo: InMemoryMovieRepository,
        metadata: FakeMetadataSource,
    ) -> None:
        await service.create("Interstellar")

        with pytest.raises(DuplicateTitleError):
            await service.create("INTERSTELLAR")

        assert len(repo.rows) == 1
        # The second request never reached TMDb.
        assert metadata.lookups == ["Interstellar"]

    async def test_duplicate_external_id_is_conflict(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        await service.create("Interstellar")

        with pytest.raises(DuplicateExternalIdError):
            await service.create("Interstellar (2014)")

        assert len(repo.rows) == 1

    async def test_no_match_is_upstream_unavailable(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        with pytest.raises(UpstreamUnavailableError):
            await service.create("A Film Nobody Has Heard Of")
        assert repo.writes == 0

    async def test_unreachable_lookup_writes_nothing(
        self,
        service: LifecycleService,
        repo: InMemoryMovieRepository,
        metadata: FakeMetadataSource,
    ) -> None:
        metadata.lookup_error = unreachable()

        with pytest.raises(UpstreamUnavailableError):
            await service.create("Interstellar")

        assert repo.rows == {}
        assert repo.writes == 0

    async def test_unreachable_genre_list_writes_nothing(
        self,
        service: LifecycleService,
        repo: InMemoryMovieRepository,
        metadata: FakeMetadataSource,
    ) -> None:
        metadata.genre_error = unreachable()

        with pytest.raises(UpstreamUnavailableError):
            await service.create("Interstellar")

        assert repo.writes == 0

    async def test_unknown_genre_id_is_named_unknown(self, service: LifecycleService) -> None:
        movie = await service.create("The Godfather")
        assert movie.genres == ["Drama", "Crime", UNKNOWN_GENRE]

    async def test_movie_without_genres(self, service: LifecycleService) -> None:
        movie = await service.create("Paddington 2")
        assert movie.genres == []

    async def test_insert_race_maps_to_duplicate_external_id(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        # Another request inserted the same TMDb id between check and insert.
        repo.find_by_external_id = AsyncMock(return_value=None)  # type: ignore[method-assign]
        await service.create("Interstellar")

        with pytest.raises(DuplicateExternalIdError) as exc_info:
            await service.create("Interstellar (2014)")

        assert isinstance(exc_info.value, ConflictError)
        assert isinstance(exc_info.value.__cause__, sqlalchemy.exc.IntegrityError)

    async def test_operational_error_on_insert_is_transient(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        repo.create = AsyncMock(  # type: ignore[method-assign]
            side_effect=sqlalchemy.exc.OperationalError("stmt", {}, Exception("conn reset"))
        )
        with pytest.raises(PersistenceTransientError):
            await service.create("Interstellar")

    async def test_operational_error_on_title_check_is_transient(
        self,
        service: LifecycleService,
        repo: InMemoryMovieRepository,
        metadata: FakeMetadataSource,
    ) -> None:
        repo.find_by_title = AsyncMock(  # type: ignore[method-assign]
            side_effect=sqlalchemy.exc.OperationalError("stmt", {}, Exception("timeout"))
        )
        with pytest.raises(PersistenceTransientError):
            await service.create("Interstellar")
        assert metadata.lookups == []


# ---------------------------------------------------------------------------
# TestTransition
# ---------------------------------------------------------------------------


class TestTransition:
    async def test_full_review_path(self, service: LifecycleService) -> None:
        movie = await service.create("Interstellar")

        movie = await service.transition(movie.id, MovieState.WATCHED)
        assert movie.state is MovieState.WATCHED

        with pytest.raises(InvalidTransitionError):
            await service.transition(movie.id, MovieState.RECOMMENDED)

        movie = await service.rate(movie.id, 4)
        assert movie.rating == 4
        assert movie.state is MovieState.WATCHED

        movie = await service.transition(movie.id, MovieState.RATED)
        movie = await service.transition(movie.id, MovieState.RECOMMENDED)

        assert movie.state is MovieState.RECOMMENDED
        assert movie.rating == 4
        assert [entry.action for entry in movie.history] == [
            "added to wishlist",
            "moved to state: Watched",
            "rated: 4",
            "moved to state: Rated",
            "moved to state: Recommended",
        ]

    async def test_accepts_state_name_string(self, service: LifecycleService) -> None:
        movie = await service.create("Arrival")
        movie = await service.transition(str(movie.id), "Watched")
        assert movie.state is MovieState.WATCHED

    async def test_rejected_move_leaves_movie_untouched(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        movie_id = await _watched(service)
        before = repo.rows[movie_id]
        writes = repo.writes

        with pytest.raises(InvalidTransitionError):
            await service.transition(movie_id, MovieState.RECOMMENDED)

        assert repo.rows[movie_id] == before
        assert repo.writes == writes

    async def test_rated_from_queued_rejected(self, service: LifecycleService) -> None:
        movie = await service.create("Interstellar")
        with pytest.raises(InvalidTransitionError):
            await service.transition(movie.id, MovieState.RATED)

    async def test_not_recommended_from_queued_rejected(self, service: LifecycleService) -> None:
        movie = await service.create("Interstellar")
        with pytest.raises(InvalidTransitionError):
            await service.transition(movie.id, MovieState.NOT_RECOMMENDED)

    async def test_queued_is_never_a_target(self, service: LifecycleService) -> None:
        movie = await service.create("Interstellar")
        with pytest.raises(InvalidTransitionError):
            await service.transition(movie.id, MovieState.QUEUED)

    async def test_watched_to_watched_records_entry(self, service: LifecycleService) -> None:
        movie_id = await _watched(service)
        movie = await service.transition(movie_id, MovieState.WATCHED)
        assert len(movie.history) == 3

    async def test_verdict_can_change(self, service: LifecycleService) -> None:
        movie_id = await _watched(service)
        await service.transition(movie_id, MovieState.RATED)
        await service.transition(movie_id, MovieState.RECOMMENDED)
        movie = await service.transition(movie_id, MovieState.NOT_RECOMMENDED)
        assert movie.state is MovieState.NOT_RECOMMENDED

    async def test_unknown_state_name(self, service: LifecycleService) -> None:
        movie = await service.create("Interstellar")
        with pytest.raises(InvalidArgumentError):
            await service.transition(movie.id, "Abandoned")

    async def test_unknown_movie(self, service: LifecycleService) -> None:
        with pytest.raises(ItemNotFoundError):
            await service.transition(uuid.uuid4(), MovieState.WATCHED)

    async def test_row_deleted_between_load_and_update(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        movie = await service.create("Interstellar")
        repo.update_state = AsyncMock(return_value=None)  # type: ignore[method-assign]
        with pytest.raises(ItemNotFoundError):
            await service.transition(movie.id, MovieState.WATCHED)


# ---------------------------------------------------------------------------
# TestRate
# ---------------------------------------------------------------------------


class TestRate:
    @pytest.mark.parametrize("rating", [0, 2.5, 5])
    async def test_in_range(self, service: LifecycleService, rating: float) -> None:
        movie_id = await _watched(service)
        movie = await service.rate(movie_id, rating)
        assert movie.rating == rating
        assert movie.history[-1].action == f"rated: {float(rating):g}"

    @pytest.mark.parametrize("rating", [-1, 5.5, 6, float("nan")])
    async def test_out_of_range_rejected(
        self, service: LifecycleService, repo: InMemoryMovieRepository, rating: float
    ) -> None:
        movie_id = await _watched(service)
        writes = repo.writes

        with pytest.raises(InvalidArgumentError):
            await service.rate(movie_id, rating)

        assert repo.rows[movie_id].rating is None
        assert repo.writes == writes

    async def test_queued_movie_cannot_be_rated(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        movie = await service.create("Interstellar")

        with pytest.raises(InvalidTransitionError):
            await service.rate(movie.id, 4)

        assert repo.rows[movie.id].rating is None
        assert len(repo.rows[movie.id].history) == 1

    async def test_queued_state_checked_before_value(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        movie = await service.create("Interstellar")

        with pytest.raises(InvalidTransitionError):
            await service.rate(movie.id, 7)

        assert repo.rows[movie.id].rating is None

    async def test_unknown_movie_checked_before_value(self, service: LifecycleService) -> None:
        with pytest.raises(ItemNotFoundError):
            await service.rate(uuid.uuid4(), 99)

    async def test_rating_does_not_change_state(self, service: LifecycleService) -> None:
        movie_id = await _watched(service)
        movie = await service.rate(movie_id, 3)
        assert movie.state is MovieState.WATCHED

    async def test_re_rating_overwrites(self, service: LifecycleService) -> None:
        movie_id = await _watched(service)
        await service.rate(movie_id, 3)
        movie = await service.rate(movie_id, 4.5)
        assert movie.rating == 4.5
        assert [e.action for e in movie.history][-2:] == ["rated: 3", "rated: 4.5"]

    async def test_history_keeps_full_precision(self, service: LifecycleService) -> None:
        movie_id = await _watched(service)
        movie = await service.rate(movie_id, 4.1234567)
        assert movie.history[-1].action == "rated: 4.1234567"

    async def test_row_deleted_between_load_and_update(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        movie_id = await _watched(service)
        repo.update_rating = AsyncMock(return_value=None)  # type: ignore[method-assign]
        with pytest.raises(ItemNotFoundError):
            await service.rate(movie_id, 4)

    async def test_recommended_still_requires_rated_state(
        self, service: LifecycleService
    ) -> None:
        movie_id = await _watched(service)
        await service.rate(movie_id, 5)
        with pytest.raises(InvalidTransitionError):
            await service.transition(movie_id, MovieState.RECOMMENDED)


# ---------------------------------------------------------------------------
# TestReads
# ---------------------------------------------------------------------------


class TestReads:
    async def test_get(self, service: LifecycleService) -> None:
        created = await service.create("Interstellar")
        assert await service.get(created.id) == created

    async def test_get_unknown(self, service: LifecycleService) -> None:
        with pytest.raises(ItemNotFoundError):
            await service.get(uuid.uuid4())

    async def test_malformed_id_is_not_found(self, service: LifecycleService) -> None:
        with pytest.raises(ItemNotFoundError):
            await service.get("not-a-uuid")

    async def test_history_grows_by_one_per_mutation(self, service: LifecycleService) -> None:
        movie = await service.create("Interstellar")
        lengths = [len(await service.get_history(movie.id))]

        await service.transition(movie.id, MovieState.WATCHED)
        lengths.append(len(await service.get_history(movie.id)))
        await service.rate(movie.id, 4)
        lengths.append(len(await service.get_history(movie.id)))

        assert lengths == [1, 2, 3]

    async def test_history_is_chronological(self, service: LifecycleService) -> None:
        movie_id = await _watched(service)
        await service.rate(movie_id, 4)
        await service.transition(movie_id, MovieState.RATED)

        history = await service.get_history(movie_id)
        timestamps = [entry.timestamp for entry in history]
        assert timestamps == sorted(timestamps)

    async def test_failed_operations_do_not_touch_history(
        self, service: LifecycleService
    ) -> None:
        movie = await service.create("Interstellar")
        for attempt in (
            service.transition(movie.id, MovieState.RECOMMENDED),
            service.rate(movie.id, 3),
        ):
            with pytest.raises(InvalidTransitionError):
                await attempt
        assert len(await service.get_history(movie.id)) == 1

    async def test_get_history_unknown(self, service: LifecycleService) -> None:
        with pytest.raises(ItemNotFoundError):
            await service.get_history(uuid.uuid4())

    async def test_read_failure_is_transient(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        repo.get = AsyncMock(  # type: ignore[method-assign]
            side_effect=sqlalchemy.exc.OperationalError("stmt", {}, Exception("db down"))
        )
        with pytest.raises(PersistenceTransientError):
            await service.get(uuid.uuid4())

    async def test_integrity_error_on_update_is_validation_error(
        self, service: LifecycleService, repo: InMemoryMovieRepository
    ) -> None:
        movie = await service.create("Interstellar")
        repo.update_state = AsyncMock(  # type: ignore[method-assign]
            side_effect=sqlalchemy.exc.IntegrityError("stmt", {}, Exception("ck_movies_state"))
        )
        with pytest.raises(PersistenceValidationError):
            await service.transition(movie.id, MovieState.WATCHED)
