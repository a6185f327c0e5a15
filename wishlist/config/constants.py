"""Constants module.

All configuration values are sourced exclusively from environment variables.
This module is the single gateway between the environment and the codebase:

    Environment variables
            │
            ▼
    wishlist.config.constants     ← os.environ["KEY"]
            │
            ▼
    All other modules             ← import from wishlist.config.constants

Rules:
- No module outside this file may call os.environ directly (Alembic's env.py
  is the one exception, see its docstring).
- os.environ["KEY"] is used (not .get) so that a missing variable raises
  KeyError at import time, causing a hard startup failure rather than a
  silent runtime error.
"""

import os

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

DB_HOST: str = os.environ["DB_HOST"]
DB_PORT: str = os.environ["DB_PORT"]
DB_NAME: str = os.environ["DB_NAME"]
DB_USER: str = os.environ["DB_USER"]
DB_PASSWORD: str = os.environ["DB_PASSWORD"]

# Async SQLAlchemy URL (asyncpg driver), used by the API at runtime.
DATABASE_URL: str = (
    f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

# ---------------------------------------------------------------------------
# Observability
# ---------------------------------------------------------------------------

SERVICE_NAME: str = os.environ["SERVICE_NAME"]
LOG_LEVEL: str = os.environ["LOG_LEVEL"]

# ---------------------------------------------------------------------------
# Metadata enrichment (The Movie Database)
# ---------------------------------------------------------------------------

TMDB_API_KEY: str = os.environ["TMDB_API_KEY"]

# Optional. Defaults to the public v3 API root.
TMDB_BASE_URL: str = os.environ.get("TMDB_BASE_URL", "https://api.themoviedb.org/3")

# Language for titles, synopses and genre names returned by TMDb.
TMDB_LANGUAGE: str = os.environ.get("TMDB_LANGUAGE", "en-US")

# Seconds before a TMDb request is abandoned and creation fails as upstream-unavailable.
TMDB_TIMEOUT_SECONDS: float = float(os.environ.get("TMDB_TIMEOUT_SECONDS", "10"))
