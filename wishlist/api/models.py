"""API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
These models are separate from domain models to maintain clean architecture:

    - Domain models (wishlist.domain.models) represent business entities
    - API models (this module) represent HTTP contracts

Ratings are deliberately unbounded here: range checks live in the lifecycle
rules so that an out-of-range rating is a 400 from the domain, not a 422
from request parsing.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from wishlist.domain.models import MovieState


# ---------------------------------------------------------------------------
# POST /movies
# ---------------------------------------------------------------------------


class CreateMovieRequest(BaseModel):
    """Request body for POST /movies."""

    title: str = Field(
        min_length=1,
        description="Title to look up on TMDb. The first search result is stored.",
    )


# ---------------------------------------------------------------------------
# PATCH /movies/{movie_id}/state and /rating
# ---------------------------------------------------------------------------


class UpdateStateRequest(BaseModel):
    """Request body for PATCH /movies/{movie_id}/state."""

    state: MovieState = Field(
        description="Target lifecycle state: Watched, Rated, Recommended or NotRecommended.",
    )


class RateMovieRequest(BaseModel):
    """Request body for PATCH /movies/{movie_id}/rating."""

    rating: float = Field(description="Rating from 0 to 5 (inclusive).")


# ---------------------------------------------------------------------------
# Movie responses
# ---------------------------------------------------------------------------


class HistoryEntryResponse(BaseModel):
    action: str
    timestamp: datetime


class MovieResponse(BaseModel):
    """Response body for a single movie."""

    id: uuid.UUID
    external_id: str = Field(description="TMDb movie id.")
    title: str
    synopsis: Optional[str] = None
    release_year: Optional[int] = None
    genres: list[str]
    state: MovieState
    rating: Optional[float] = Field(default=None, description="None until the movie is rated.")
    owner_id: uuid.UUID
    history: list[HistoryEntryResponse]
    created_at: datetime
    updated_at: datetime


class MoviesPageResponse(BaseModel):
    """Response envelope for GET /movies."""

    movies: list[MovieResponse]
    total_movies: int = Field(
        description="Number of movies in the whole collection (filters are not applied)."
    )
    total_pages: int = Field(description="ceil(total_movies / limit).")
    current_page: int


class HistoryResponse(BaseModel):
    """Response envelope for GET /movies/{movie_id}/history."""

    history: list[HistoryEntryResponse]
    count: int = Field(description="Number of history entries returned.")
