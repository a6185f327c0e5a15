"""SQLAlchemy Core table definitions.

All table objects are registered against the shared ``metadata`` instance from
``wishlist.infra.db`` so that Alembic's autogenerate can discover them and the
repository layer can reference them for queries.

No ORM declarative mapping is used. Domain models (Pydantic) are hydrated
manually from query result rows inside the repository layer, keeping the
domain layer free of SQLAlchemy concerns.

Tables:
    movies  — Wishlist items with their JSONB audit history (unique key: external_id)
"""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from wishlist.infra.db import metadata

# ---------------------------------------------------------------------------
# movies
# ---------------------------------------------------------------------------

movies_table: sa.Table = sa.Table(
    "movies",
    metadata,
    sa.Column(
        "id",
        sa.UUID(as_uuid=True),
        primary_key=True,
        # Python-side uuid.uuid4() is always passed on insert; server_default
        # covers direct SQL inserts only.
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    ),
    sa.Column("external_id", sa.VARCHAR(64), nullable=False),
    sa.Column("title", sa.TEXT, nullable=False),
    sa.Column("synopsis", sa.TEXT, nullable=True),
    sa.Column("release_year", sa.INTEGER, nullable=True),
    sa.Column(
        "genres",
        ARRAY(sa.TEXT),
        nullable=False,
        server_default=sa.text("'{}'::text[]"),
    ),
    # VARCHAR to match MovieState values: Queued, Watched, Rated, Recommended, NotRecommended
    sa.Column("state", sa.VARCHAR(32), nullable=False),
    sa.Column("rating", sa.DOUBLE_PRECISION, nullable=True),
    sa.Column("owner_id", sa.UUID(as_uuid=True), nullable=False),
    # Ordered list of {"action": str, "timestamp": ISO-8601 str}. Only ever
    # appended to with `history || <entry>` inside the mutating UPDATE.
    sa.Column(
        "history",
        JSONB,
        nullable=False,
        server_default=sa.text("'[]'::jsonb"),
    ),
    sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    ),
    sa.Column(
        "updated_at",
        sa.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    ),
    sa.UniqueConstraint("external_id", name="uq_movies_external_id"),
    sa.CheckConstraint(
        "state IN ('Queued', 'Watched', 'Rated', 'Recommended', 'NotRecommended')",
        name="ck_movies_state",
    ),
    sa.CheckConstraint(
        "rating IS NULL OR (rating >= 0 AND rating <= 5)",
        name="ck_movies_rating_range",
    ),
)

# Backs the case-insensitive duplicate-title check on creation.
sa.Index("ix_movies_title_lower", sa.func.lower(movies_table.c.title))
