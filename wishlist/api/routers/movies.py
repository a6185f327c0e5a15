"""Movie wishlist endpoints.

Exposes:
    POST  /movies                       — Add a movie by title (TMDb enrichment).
    GET   /movies                       — List movies with filters, sorting and paging.
    GET   /movies/{movie_id}            — Return one movie.
    PATCH /movies/{movie_id}/state      — Move a movie to another lifecycle state.
    PATCH /movies/{movie_id}/rating     — Rate a movie from 0 to 5.
    GET   /movies/{movie_id}/history    — Return a movie's audit history.

Domain errors are converted to HTTP errors here and nowhere else:

    ItemNotFoundError          → 404
    ConflictError              → 409
    InvalidTransitionError     → 409
    InvalidArgumentError       → 400
    UpstreamUnavailableError   → 503
    PersistenceTransientError  → 503
    any other WishlistError    → 500
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

import structlog
from fastapi import APIRouter, HTTPException, Path, Query, status

from wishlist.api.dependencies import CatalogServiceDep, LifecycleServiceDep
from wishlist.api.models import (
    CreateMovieRequest,
    HistoryEntryResponse,
    HistoryResponse,
    MovieResponse,
    MoviesPageResponse,
    RateMovieRequest,
    UpdateStateRequest,
)
from wishlist.config import constants
from wishlist.domain.exceptions import (
    ConflictError,
    InvalidArgumentError,
    InvalidTransitionError,
    ItemNotFoundError,
    PersistenceTransientError,
    UpstreamUnavailableError,
    WishlistError,
)
from wishlist.domain.models import (
    DEFAULT_PAGE_LIMIT,
    CatalogQuery,
    HistoryEntry,
    Movie,
    MovieState,
    SortOrder,
)

router = APIRouter(prefix="/movies", tags=["movies"])

_STATUS_BY_ERROR: tuple[tuple[type[WishlistError], int], ...] = (
    (ItemNotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST),
    (UpstreamUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def _http_error(exc: WishlistError, log: Any, event: str) -> HTTPException:
    """Map a domain error to the HTTPException the endpoint should raise."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            log.warning(
                f"{event}.rejected",
                status_code=status_code,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return HTTPException(status_code=status_code, detail=str(exc))

    log.error(
        f"{event}.db_error",
        error=str(exc),
        error_type=type(exc).__name__,
    )
    if isinstance(exc, PersistenceTransientError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database temporarily unavailable. Please retry.",
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected database error occurred.",
    )


def _to_history_response(entries: list[HistoryEntry]) -> list[HistoryEntryResponse]:
    return [HistoryEntryResponse(action=e.action, timestamp=e.timestamp) for e in entries]


def _to_movie_response(m: Movie) -> MovieResponse:
    """Map a Movie domain model to its API response shape."""
    return MovieResponse(
        id=m.id,
        external_id=m.external_id,
        title=m.title,
        synopsis=m.synopsis,
        release_year=m.release_year,
        genres=list(m.genres),
        state=m.state,
        rating=m.rating,
        owner_id=m.owner_id,
        history=_to_history_response(m.history),
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def _logger(endpoint: str, **context: Any) -> Any:
    return structlog.get_logger().bind(
        service=constants.SERVICE_NAME,
        endpoint=endpoint,
        **context,
    )


@router.post(
    "",
    response_model=MovieResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a movie to the wishlist",
    description=(
        "Looks the title up on TMDb, stores the first match as Queued and "
        "records an 'added to wishlist' history entry. Fails with 409 if the "
        "title or the resolved TMDb movie is already listed and with 503 if "
        "TMDb is unavailable or has no match."
    ),
)
async def create_movie(
    request: CreateMovieRequest,
    service: LifecycleServiceDep,
) -> MovieResponse:
    log = _logger("/movies", title=request.title)
    log.info("api.movies.create.request", status="starting")

    try:
        movie = await service.create(request.title)
    except WishlistError as exc:
        raise _http_error(exc, log, "api.movies.create") from exc

    log.info("api.movies.create.response", status="completed", movie_id=str(movie.id))
    return _to_movie_response(movie)


@router.get(
    "",
    response_model=MoviesPageResponse,
    status_code=status.HTTP_200_OK,
    summary="List wishlist movies",
    description=(
        "Returns one page of movies. `state` filters by exact lifecycle state and "
        "`min_rating` keeps movies rated at least that high. `total_movies` and "
        "`total_pages` describe the whole collection, not the filtered subset."
    ),
)
async def list_movies(
    service: CatalogServiceDep,
    page: int = Query(default=1, description="1-indexed page number; values below 1 mean 1."),
    limit: int = Query(
        default=DEFAULT_PAGE_LIMIT,
        description="Movies per page; values below 1 mean the default.",
    ),
    sort_by: str = Query(
        default="created_at",
        description=(
            "Field to sort by: created_at, updated_at, title, release_year, "
            "rating, state or external_id."
        ),
    ),
    sort_order: SortOrder = Query(default=SortOrder.ASC, description="asc or desc."),
    state: Optional[MovieState] = Query(default=None, description="Exact lifecycle state."),
    min_rating: Optional[float] = Query(
        default=None, ge=0, le=5, description="Only movies rated at least this high."
    ),
) -> MoviesPageResponse:
    log = _logger("/movies", page=page, limit=limit, sort_by=sort_by)
    log.info("api.movies.list.request", status="starting")

    try:
        result = await service.list_movies(
            CatalogQuery(
                page=page,
                limit=limit,
                sort_by=sort_by,
                sort_order=sort_order,
                state=state,
                min_rating=min_rating,
            )
        )
    except WishlistError as exc:
        raise _http_error(exc, log, "api.movies.list") from exc

    log.info("api.movies.list.response", status="completed", count=len(result.movies))
    return MoviesPageResponse(
        movies=[_to_movie_response(m) for m in result.movies],
        total_movies=result.total_movies,
        total_pages=result.total_pages,
        current_page=result.current_page,
    )


@router.get(
    "/{movie_id}",
    response_model=MovieResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a movie",
)
async def get_movie(
    service: LifecycleServiceDep,
    movie_id: uuid.UUID = Path(description="Movie id returned by POST /movies."),
) -> MovieResponse:
    log = _logger("/movies/{movie_id}", movie_id=str(movie_id))

    try:
        movie = await service.get(movie_id)
    except WishlistError as exc:
        raise _http_error(exc, log, "api.movies.get") from exc

    return _to_movie_response(movie)


@router.patch(
    "/{movie_id}/state",
    response_model=MovieResponse,
    status_code=status.HTTP_200_OK,
    summary="Change a movie's lifecycle state",
    description=(
        "Watched is allowed from any state; Rated requires the movie to have "
        "been watched; Recommended and NotRecommended require Rated. Rejected "
        "moves return 409 and leave the movie unchanged."
    ),
)
async def update_movie_state(
    request: UpdateStateRequest,
    service: LifecycleServiceDep,
    movie_id: uuid.UUID = Path(description="Movie id returned by POST /movies."),
) -> MovieResponse:
    log = _logger("/movies/{movie_id}/state", movie_id=str(movie_id), target_state=request.state.value)
    log.info("api.movies.state.request", status="starting")

    try:
        movie = await service.transition(movie_id, request.state)
    except WishlistError as exc:
        raise _http_error(exc, log, "api.movies.state") from exc

    log.info("api.movies.state.response", status="completed", state=movie.state.value)
    return _to_movie_response(movie)


@router.patch(
    "/{movie_id}/rating",
    response_model=MovieResponse,
    status_code=status.HTTP_200_OK,
    summary="Rate a movie",
    description=(
        "Records a rating from 0 to 5. The movie must have left Queued. "
        "Rating does not change the lifecycle state."
    ),
)
async def rate_movie(
    request: RateMovieRequest,
    service: LifecycleServiceDep,
    movie_id: uuid.UUID = Path(description="Movie id returned by POST /movies."),
) -> MovieResponse:
    log = _logger("/movies/{movie_id}/rating", movie_id=str(movie_id), rating=request.rating)
    log.info("api.movies.rating.request", status="starting")

    try:
        movie = await service.rate(movie_id, request.rating)
    except WishlistError as exc:
        raise _http_error(exc, log, "api.movies.rating") from exc

    log.info("api.movies.rating.response", status="completed")
    return _to_movie_response(movie)


@router.get(
    "/{movie_id}/history",
    response_model=HistoryResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a movie's history",
    description="Returns every recorded mutation of the movie, oldest first.",
)
async def get_movie_history(
    service: LifecycleServiceDep,
    movie_id: uuid.UUID = Path(description="Movie id returned by POST /movies."),
) -> HistoryResponse:
    log = _logger("/movies/{movie_id}/history", movie_id=str(movie_id))

    try:
        entries = await service.get_history(movie_id)
    except WishlistError as exc:
        raise _http_error(exc, log, "api.movies.history") from exc

    return HistoryResponse(history=_to_history_response(entries), count=len(entries))
