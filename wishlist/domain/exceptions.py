"""Domain exceptions.

All application exceptions are domain-level. Infrastructure errors (httpx
transport failures, DB driver errors) are caught at the service or client
boundary and re-raised as the appropriate domain exception here.

Hierarchy:
    WishlistError                       — root for all application errors
    ├── ItemNotFoundError               — no movie item with the given id
    ├── ConflictError                   — uniqueness rule violated
    │   ├── DuplicateTitleError        — a movie with the same title is already listed
    │   └── DuplicateExternalIdError   — the resolved TMDb id is already listed
    ├── InvalidTransitionError          — lifecycle rule rejected the move
    ├── InvalidArgumentError            — malformed rating, state name, or missing input
    ├── MetadataError                   — enrichment source errors
    │   ├── MetadataNotFoundError      — lookup returned no match
    │   └── UpstreamUnavailableError   — enrichment source unreachable / unusable
    └── PersistenceError                — database persistence errors
        ├── PersistenceTransientError    — transient, safe to retry
        └── PersistenceValidationError   — non-retryable, indicates a bug

Rules:
- No bare `except` anywhere in the codebase — always catch a specific type.
- Infrastructure errors (httpx.HTTPError, SQLAlchemy exceptions) are mapped
  to domain errors at the service / client boundary; callers only see domain
  errors.
- The API layer is the only place that turns these into HTTP status codes.
"""

from __future__ import annotations


class WishlistError(Exception):
    """Root exception for all application-level errors."""


# ---------------------------------------------------------------------------
# Lookup / uniqueness errors
# ---------------------------------------------------------------------------


class ItemNotFoundError(WishlistError):
    """Raised when no movie item exists for the requested id."""


class ConflictError(WishlistError):
    """Base class for uniqueness violations on creation."""


class DuplicateTitleError(ConflictError):
    """Raised when a movie with the same title is already on the wishlist.

    The comparison is case-insensitive and uses the title as typed by the
    caller, before enrichment.
    """


class DuplicateExternalIdError(ConflictError):
    """Raised when the TMDb id resolved for a new movie is already stored.

    This covers:
    - Two different input titles resolving to the same TMDb movie.
    - Two concurrent creations racing past the pre-insert check; the
      ``uq_movies_external_id`` constraint rejects the second insert.
    """


# ---------------------------------------------------------------------------
# Lifecycle errors
# ---------------------------------------------------------------------------


class InvalidTransitionError(WishlistError):
    """Raised when the lifecycle rules reject an operation for the current state.

    This covers:
    - Moving to Rated while still Queued.
    - Moving to Recommended / NotRecommended before reaching Rated.
    - Moving back to Queued.
    - Rating a movie that has not been watched.
    """


class InvalidArgumentError(WishlistError):
    """Raised for malformed input: out-of-range ratings, unknown state or
    sort-field names, blank titles."""


# ---------------------------------------------------------------------------
# Metadata enrichment errors
# ---------------------------------------------------------------------------


class MetadataError(WishlistError):
    """Base class for metadata enrichment errors."""


class MetadataNotFoundError(MetadataError):
    """Raised when the enrichment source has no match for a title.

    The lifecycle service re-raises this as UpstreamUnavailableError: from
    the caller's perspective an unresolvable title means the item cannot be
    enriched, exactly like an unreachable source.
    """


class UpstreamUnavailableError(MetadataError):
    """Raised when the enrichment source cannot be used.

    This covers:
    - Network / DNS failures and timeouts
    - Non-2xx responses (bad API key, rate limiting, server errors)
    - Payloads missing the fields the client relies on
    - No match for a title (re-raised from MetadataNotFoundError)
    """


# ---------------------------------------------------------------------------
# Persistence errors
# ---------------------------------------------------------------------------


class PersistenceError(WishlistError):
    """Base class for all database persistence errors."""


class PersistenceTransientError(PersistenceError):
    """Transient database error that is safe to retry.

    This covers:
    - Connection pool exhaustion
    - Connection lost mid-operation
    - Deadlock or lock timeout
    - Generic SQLAlchemy OperationalError
    """


class PersistenceValidationError(PersistenceError):
    """Non-retryable database error indicating a programming or schema bug.

    This covers:
    - Check constraint violations (state / rating out of domain)
    - Not-null constraint violations on required fields
    """
