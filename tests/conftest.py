"""Global pytest configuration.

Sets required environment variables at module level so that
``wishlist.config.constants`` can be imported without raising ``KeyError``.

``wishlist.config.constants`` reads ``os.environ["KEY"]`` (not ``.get``) at
import time. ``conftest.py`` files are loaded by pytest *before* test modules
are collected or imported, which makes this the only reliable injection point
for mandatory env vars.

Rules:
- Do NOT import from ``wishlist.*`` at module level here — constants must not
  be imported until after the env vars below have been applied.
- Use ``setdefault`` so that real env vars set by CI/CD or the developer's
  shell are not clobbered.
"""

from __future__ import annotations

import os

import pytest

# ---------------------------------------------------------------------------
# Mandatory environment variables consumed by wishlist.config.constants
# ---------------------------------------------------------------------------

_TEST_ENV: dict[str, str] = {
    # Database
    "DB_HOST": "localhost",
    "DB_PORT": "5432",
    "DB_NAME": "wishlist_test",
    "DB_USER": "test_user",
    "DB_PASSWORD": "test_password",
    # Observability
    "SERVICE_NAME": "movie-wishlist-test",
    "LOG_LEVEL": "ERROR",
    # Metadata enrichment
    "TMDB_API_KEY": "test-api-key",
    "TMDB_BASE_URL": "https://tmdb.test/3",
    "TMDB_LANGUAGE": "en-US",
    "TMDB_TIMEOUT_SECONDS": "2",
}

for _key, _value in _TEST_ENV.items():
    os.environ.setdefault(_key, _value)


@pytest.fixture()
def repo():
    """Empty in-memory movie repository."""
    from tests.fakes import InMemoryMovieRepository

    return InMemoryMovieRepository()


@pytest.fixture()
def metadata():
    """TMDb stand-in that knows a handful of titles."""
    from tests.fakes import FakeMetadataSource

    return FakeMetadataSource.with_defaults()
