"""Catalog listing service.

Turns a CatalogQuery into one page of movies plus paging totals.

Totals are computed over the whole collection, not the filtered subset:
``total_movies`` is an unfiltered count and ``total_pages`` is
``ceil(total_movies / limit)``. A filtered listing can therefore report more
pages than it has rows for.
"""

from __future__ import annotations

import math
import time
from typing import Optional

import structlog

from wishlist.config import constants
from wishlist.domain.exceptions import InvalidArgumentError
from wishlist.domain.models import SORTABLE_FIELDS, CatalogQuery, MoviePage
from wishlist.infra.repositories import MovieRepository
from wishlist.services.errors import db_errors


class CatalogService:
    """Filtered, sorted, paginated views over the movie collection."""

    def __init__(self, repository: MovieRepository) -> None:
        self._repo = repository

    async def list_movies(self, query: Optional[CatalogQuery] = None) -> MoviePage:
        """Return the page of movies selected by ``query``.

        Raises:
            InvalidArgumentError: ``query.sort_by`` is not a sortable field.
            PersistenceError: database failure.
        """
        query = query or CatalogQuery()

        log = structlog.get_logger().bind(
            service=constants.SERVICE_NAME,
            component="catalog",
            page=query.page,
            limit=query.limit,
            sort_by=query.sort_by,
            sort_order=query.sort_order.value,
            state_filter=query.state.value if query.state else None,
            min_rating=query.min_rating,
        )

        if query.sort_by not in SORTABLE_FIELDS:
            log.warning("catalog.list.invalid_sort_field")
            raise InvalidArgumentError(
                f"Cannot sort by {query.sort_by!r}; expected one of: "
                f"{', '.join(sorted(SORTABLE_FIELDS))}"
            )

        log.info("catalog.list.starting", status="starting")
        started_at = time.monotonic()

        with db_errors(log, "catalog.list"):
            movies = await self._repo.list(query)
            total_movies = await self._repo.count_all()

        page = MoviePage(
            movies=movies,
            total_movies=total_movies,
            total_pages=math.ceil(total_movies / query.limit),
            current_page=query.page,
        )

        log.info(
            "catalog.list.completed",
            status="completed",
            count=len(movies),
            total_movies=page.total_movies,
            total_pages=page.total_pages,
            duration_ms=int((time.monotonic() - started_at) * 1000),
        )
        return page
