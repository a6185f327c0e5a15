"""SQLAlchemy → domain error mapping for the service layer.

Repositories let driver errors propagate; services wrap every repository call
in ``db_errors`` so that callers only ever see PersistenceError subclasses.

Classification:
    IntegrityError   → PersistenceValidationError (non-retryable: constraint bug)
    OperationalError → PersistenceTransientError (retryable: connection / deadlock)
    All others       → PersistenceTransientError (conservative: retry is safe)
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import sqlalchemy.exc

from wishlist.domain.exceptions import PersistenceTransientError, PersistenceValidationError


def classify_sqlalchemy_error(
    exc: sqlalchemy.exc.SQLAlchemyError,
) -> PersistenceTransientError | PersistenceValidationError:
    """Map a SQLAlchemy exception to a domain persistence exception."""
    if isinstance(exc, sqlalchemy.exc.IntegrityError):
        return PersistenceValidationError(str(exc))
    return PersistenceTransientError(str(exc))


@contextmanager
def db_errors(log: Any, event: str) -> Iterator[None]:
    """Re-raise SQLAlchemy errors raised inside the block as domain errors.

    Logs ``<event>.db_error`` with the classification before raising.
    """
    try:
        yield
    except sqlalchemy.exc.SQLAlchemyError as exc:
        domain_exc = classify_sqlalchemy_error(exc)
        log.error(
            f"{event}.db_error",
            status="retryable" if isinstance(domain_exc, PersistenceTransientError) else "failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        raise domain_exc from exc
