"""Domain models.

Pure data layer — no infrastructure, no configuration, no I/O.
Every other layer imports from here; this module imports nothing internal.

Pydantic v2 is used for:
  - Field validation at construction time
  - JSON serialisation (JSONB history column, API responses)
  - OpenAPI schema generation (FastAPI)

All models are frozen (immutable). A mutation of a movie item is expressed by
the repository returning a fresh instance hydrated from the updated row, never
by editing an instance in place.

Serialisation notes:
  - UUID fields serialise to/from strings automatically (Pydantic v2 default)
  - datetime fields serialise to ISO-8601 strings automatically, which is the
    format history entries are stored in inside the JSONB column
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Page size used when the caller gives none (or a non-positive one).
DEFAULT_PAGE_LIMIT = 10

# Entity fields a listing may be ordered by. Anything else is rejected before
# a statement is built.
SORTABLE_FIELDS: frozenset[str] = frozenset(
    {
        "created_at",
        "updated_at",
        "title",
        "release_year",
        "rating",
        "state",
        "external_id",
    }
)


def _utcnow() -> datetime:
    """Return the current UTC time.

    Defined as a module-level function so it can be used as a default_factory
    inside Pydantic models.
    """
    return datetime.now(tz=timezone.utc)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class MovieState(str, Enum):
    """Review lifecycle of a wishlist item.

    Inherits from str so that JSON serialisation produces the raw value
    ("Queued", "Watched", …) without a custom encoder.

      QUEUED          → on the list, not yet seen (initial state)
      WATCHED         → seen; may now be rated
      RATED           → rating recorded and confirmed
      RECOMMENDED     → verdict: worth watching
      NOT_RECOMMENDED → verdict: not worth watching

    See wishlist.domain.lifecycle for the transition table.
    """

    QUEUED = "Queued"
    WATCHED = "Watched"
    RATED = "Rated"
    RECOMMENDED = "Recommended"
    NOT_RECOMMENDED = "NotRecommended"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# ---------------------------------------------------------------------------
# HistoryEntry
# ---------------------------------------------------------------------------


class HistoryEntry(BaseModel):
    """One immutable audit record describing a single mutation of a movie."""

    model_config = ConfigDict(frozen=True)

    action: str = Field(description="Human-readable description of the mutation.")
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="UTC timestamp when the mutation was applied.",
    )


# ---------------------------------------------------------------------------
# Movie
# ---------------------------------------------------------------------------


class Movie(BaseModel):
    """A movie on the wishlist — the aggregate root.

    `external_id` is the canonical business key (the TMDb movie id) — all
    duplicate detection keys on this field, not on `id`.

    `history` is append-only and ordered chronologically. The repository is
    the only writer; it appends inside the same statement that applies the
    mutation the entry describes.
    """

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    external_id: str = Field(description="TMDb movie id. Unique business key.")
    title: str = Field(description="Title as resolved by the metadata source.")
    synopsis: Optional[str] = Field(default=None)
    release_year: Optional[int] = Field(default=None)
    genres: list[str] = Field(
        default_factory=list,
        description="Genre names in the order the metadata source lists them.",
    )
    state: MovieState = Field(
        default=MovieState.QUEUED,
        description="Current lifecycle state.",
    )
    rating: Optional[float] = Field(
        default=None,
        ge=0,
        le=5,
        description="Rating from 0 to 5. None until the movie has been rated.",
    )
    owner_id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        description="Opaque owner identifier generated at creation. Not used for access control.",
    )
    history: list[HistoryEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Metadata enrichment
# ---------------------------------------------------------------------------


class MetadataMatch(BaseModel):
    """Descriptive fields resolved for a title by the metadata source."""

    model_config = ConfigDict(frozen=True)

    external_id: str
    title: str
    synopsis: Optional[str] = None
    release_year: Optional[int] = None
    genre_ids: list[int] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Catalog queries
# ---------------------------------------------------------------------------


class CatalogQuery(BaseModel):
    """Filter, sort and pagination options for listing movies.

    Out-of-range page and limit values are normalised rather than rejected so
    the engine never computes a negative offset:

      page  < 1   → 1
      limit < 1   → DEFAULT_PAGE_LIMIT

    Larger limits are honoured as given.

    `sort_by` is checked against SORTABLE_FIELDS by the catalog service.
    """

    model_config = ConfigDict(frozen=True)

    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT
    sort_by: str = "created_at"
    sort_order: SortOrder = SortOrder.ASC
    state: Optional[MovieState] = None
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)

    @field_validator("page")
    @classmethod
    def _clamp_page(cls, value: int) -> int:
        return max(value, 1)

    @field_validator("limit")
    @classmethod
    def _default_limit(cls, value: int) -> int:
        return value if value >= 1 else DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class MoviePage(BaseModel):
    """One page of a catalog listing.

    `total_movies` counts the whole collection, not the filtered subset, so
    `total_pages` can overstate the number of pages a filtered listing has.
    """

    model_config = ConfigDict(frozen=True)

    movies: list[Movie]
    total_movies: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    current_page: int = Field(ge=1)
