"""Database repository layer.

Repositories provide typed, async methods for reading and writing domain
models to Postgres via SQLAlchemy Core. They do not log and do not contain
business logic — they are pure data access objects.

Responsibilities:
  - Construct and execute SQL statements.
  - Map result rows to domain model instances.
  - Let SQLAlchemy exceptions propagate to callers (services) which then
    classify them as domain errors.

What repositories do NOT do:
  - They do not catch exceptions.
  - They do not log.
  - They do not validate lifecycle rules.
  - They do not own transactions (each method is one atomic transaction via
    get_connection(), which uses engine.begin()).

History appends are never read-modify-write: the mutating UPDATE evaluates
``history || <entry>`` server-side, so concurrent writers on one row cannot
drop each other's entries and an entry is never stored without its mutation.

Classes:
    MovieRepository — create(), get(), find_by_title(), find_by_external_id(),
                      update_state(), update_rating(), list(), count_all()
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from wishlist.domain.models import (
    SORTABLE_FIELDS,
    CatalogQuery,
    HistoryEntry,
    Movie,
    MovieState,
    SortOrder,
)
from wishlist.infra.db import get_connection
from wishlist.infra.tables import movies_table

# Sort names map to columns through this table only; a caller-supplied string
# never reaches the ORDER BY clause directly.
_SORT_COLUMNS: dict[str, sa.Column[Any]] = {
    name: movies_table.c[name] for name in SORTABLE_FIELDS
}


def _row_to_movie(row: sa.engine.Row) -> Movie:  # type: ignore[type-arg]
    """Map a SQLAlchemy result row to a Movie domain model."""
    return Movie(
        id=row.id,
        external_id=row.external_id,
        title=row.title,
        synopsis=row.synopsis,
        release_year=row.release_year,
        genres=list(row.genres or []),
        state=MovieState(row.state),
        rating=row.rating,
        owner_id=row.owner_id,
        history=[HistoryEntry.model_validate(entry) for entry in row.history],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _history_payload(entries: list[HistoryEntry]) -> list[dict[str, Any]]:
    """Serialise history entries to the JSONB shape ({action, ISO-8601 timestamp})."""
    return [entry.model_dump(mode="json") for entry in entries]


def _appended_history(entry: HistoryEntry) -> sa.ColumnElement[Any]:
    """Return ``history || '[<entry>]'::jsonb`` for use in an UPDATE ... SET."""
    return movies_table.c.history.op("||", return_type=JSONB)(
        sa.literal(_history_payload([entry]), type_=JSONB)
    )


def build_list_statement(query: CatalogQuery) -> sa.Select[Any]:
    """Build the SELECT for one page of a catalog listing.

    Filters:
        state       → exact match
        min_rating  → ``rating >= min_rating``; skipped when None or 0, so a
                      zero threshold also lists unrated movies

    Ordering is by the requested column with ``id`` as a tiebreaker so that
    consecutive pages never overlap or skip rows. Postgres sorts NULLs last
    ascending and first descending; unrated movies follow that rule when
    ordering by ``rating``.

    Raises:
        KeyError: ``query.sort_by`` is not in SORTABLE_FIELDS. The catalog
            service validates the name before calling the repository.
    """
    sort_column = _SORT_COLUMNS[query.sort_by]
    ordering = (
        sort_column.desc() if query.sort_order is SortOrder.DESC else sort_column.asc()
    )

    stmt = sa.select(movies_table)

    if query.state is not None:
        stmt = stmt.where(movies_table.c.state == query.state.value)

    if query.min_rating:
        stmt = stmt.where(movies_table.c.rating >= query.min_rating)

    return (
        stmt.order_by(ordering, movies_table.c.id.asc())
        .offset(query.offset)
        .limit(query.limit)
    )


# ---------------------------------------------------------------------------
# MovieRepository
# ---------------------------------------------------------------------------


class MovieRepository:
    """Data access layer for the ``movies`` table."""

    async def create(self, movie: Movie) -> Movie:
        """Insert a new movie row, including its initial history.

        The row and its first history entry are written by one INSERT, so
        there is never a committed movie without a history entry.

        ``created_at`` / ``updated_at`` are left to the server default.

        Args:
            movie: Fully populated Movie (state, owner_id, history set by caller).

        Returns:
            The stored Movie as returned by ``INSERT ... RETURNING``.

        Raises:
            sqlalchemy.exc.IntegrityError: ``external_id`` already stored.
            sqlalchemy.exc.SQLAlchemyError: Other DB errors, propagated to caller.
        """
        stmt = (
            sa.insert(movies_table)
            .values(
                id=movie.id,
                external_id=movie.external_id,
                title=movie.title,
                synopsis=movie.synopsis,
                release_year=movie.release_year,
                genres=list(movie.genres),
                state=movie.state.value,
                rating=movie.rating,
                owner_id=movie.owner_id,
                history=_history_payload(movie.history),
            )
            .returning(movies_table)
        )

        async with get_connection() as conn:
            result = await conn.execute(stmt)

        row = result.fetchone()
        assert row is not None, "INSERT ... RETURNING returned no row"  # noqa: S101
        return _row_to_movie(row)

    async def get(self, movie_id: uuid.UUID) -> Optional[Movie]:
        """Return the movie with ``movie_id``, or None."""
        stmt = sa.select(movies_table).where(movies_table.c.id == movie_id)

        async with get_connection() as conn:
            result = await conn.execute(stmt)

        row = result.fetchone()
        return _row_to_movie(row) if row is not None else None

    async def find_by_title(self, title: str) -> Optional[Movie]:
        """Return a movie whose title matches ``title`` case-insensitively, or None."""
        stmt = (
            sa.select(movies_table)
            .where(sa.func.lower(movies_table.c.title) == title.lower())
            .limit(1)
        )

        async with get_connection() as conn:
            result = await conn.execute(stmt)

        row = result.fetchone()
        return _row_to_movie(row) if row is not None else None

    async def find_by_external_id(self, external_id: str) -> Optional[Movie]:
        """Return the movie stored under a TMDb id, or None."""
        stmt = sa.select(movies_table).where(
            movies_table.c.external_id == external_id
        )

        async with get_connection() as conn:
            result = await conn.execute(stmt)

        row = result.fetchone()
        return _row_to_movie(row) if row is not None else None

    async def update_state(
        self,
        movie_id: uuid.UUID,
        state: MovieState,
        entry: HistoryEntry,
    ) -> Optional[Movie]:
        """Set ``state`` and append ``entry`` to the history in one UPDATE.

        Returns:
            The updated Movie, or None if no row matched ``movie_id``.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: Propagated to caller.
        """
        stmt = (
            sa.update(movies_table)
            .where(movies_table.c.id == movie_id)
            .values(
                state=state.value,
                history=_appended_history(entry),
                updated_at=sa.func.now(),
            )
            .returning(movies_table)
        )

        async with get_connection() as conn:
            result = await conn.execute(stmt)

        row = result.fetchone()
        return _row_to_movie(row) if row is not None else None

    async def update_rating(
        self,
        movie_id: uuid.UUID,
        rating: float,
        entry: HistoryEntry,
    ) -> Optional[Movie]:
        """Set ``rating`` and append ``entry`` to the history in one UPDATE.

        Returns:
            The updated Movie, or None if no row matched ``movie_id``.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: Propagated to caller.
        """
        stmt = (
            sa.update(movies_table)
            .where(movies_table.c.id == movie_id)
            .values(
                rating=rating,
                history=_appended_history(entry),
                updated_at=sa.func.now(),
            )
            .returning(movies_table)
        )

        async with get_connection() as conn:
            result = await conn.execute(stmt)

        row = result.fetchone()
        return _row_to_movie(row) if row is not None else None

    async def list(self, query: CatalogQuery) -> list[Movie]:
        """Return one page of movies for ``query`` (see build_list_statement).

        Raises:
            sqlalchemy.exc.SQLAlchemyError: Propagated to caller.
        """
        stmt = build_list_statement(query)

        async with get_connection() as conn:
            result = await conn.execute(stmt)

        return [_row_to_movie(row) for row in result.fetchall()]

    async def count_all(self) -> int:
        """Return the number of movies in the collection, ignoring any filter."""
        stmt = sa.select(sa.func.count()).select_from(movies_table)

        async with get_connection() as conn:
            result = await conn.execute(stmt)

        return int(result.scalar_one())
