"""Initial schema: movies table.

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates:
    movies  — Wishlist items with their JSONB audit history.

Notes:
    - gen_random_uuid() requires pgcrypto or Postgres 13+ (built-in).
    - All timestamps are WITH TIME ZONE for unambiguous UTC storage.
    - Constraints and indexes are named explicitly to allow future ALTER operations.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

# Revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.create_table(
        "movies",
        sa.Column(
            "id",
            sa.UUID(as_uuid=True),
            primary_key=True,
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
        sa.Column("state", sa.VARCHAR(32), nullable=False),
        sa.Column("rating", sa.DOUBLE_PRECISION, nullable=True),
        sa.Column("owner_id", sa.UUID(as_uuid=True), nullable=False),
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
    op.create_index("ix_movies_title_lower", "movies", [sa.text("lower(title)")])


def downgrade() -> None:
    op.drop_index("ix_movies_title_lower", table_name="movies")
    op.drop_table("movies")
