"""Domain layer public API.

Import domain types from here rather than from wishlist.domain.models directly.
This keeps the internal module structure free to change without breaking callers.
"""

from wishlist.domain.exceptions import (
    ConflictError,
    InvalidArgumentError,
    InvalidTransitionError,
    ItemNotFoundError,
    UpstreamUnavailableError,
    WishlistError,
)
from wishlist.domain.models import (
    CatalogQuery,
    HistoryEntry,
    MetadataMatch,
    Movie,
    MoviePage,
    MovieState,
    SortOrder,
)

__all__ = [
    # Models
    "CatalogQuery",
    "HistoryEntry",
    "MetadataMatch",
    "Movie",
    "MoviePage",
    "MovieState",
    "SortOrder",
    # Exceptions
    "WishlistError",
    "ItemNotFoundError",
    "ConflictError",
    "InvalidTransitionError",
    "InvalidArgumentError",
    "UpstreamUnavailableError",
]
