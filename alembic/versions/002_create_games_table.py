"""Create games table

Revision ID: 002
Revises: 001
Create Date: 2025-09-05 16:31:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create games table."""
    op.create_table(
        "games",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("hours_played", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'backlog'")),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("last_played_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("source", sa.Text(), nullable=False, server_default=sa.text("'manual'")),
        sa.Column("steam_app_id", sa.String(20), nullable=True),
        sa.Column("steam_name", sa.Text(), nullable=True),
        sa.Column("steam_playtime", sa.Float(), nullable=True),
        sa.Column("steam_last_played", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("steam_image_url", sa.Text(), nullable=True),
        sa.Column("is_hidden_on_steam", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.ForeignKeyConstraint(
            ["account_id"],
            ["accounts.id"],
            name="games_account_id_fkey",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "status IN ('playing', 'completed', 'dropped', 'backlog')",
            name="games_status_check",
        ),
        sa.CheckConstraint("source IN ('manual', 'steam')", name="games_source_check"),
        sa.CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 5)", name="games_rating_check"),
    )

    # Create indexes
    op.create_index("ix_games_account_id", "games", ["account_id"], unique=False)
    op.create_index("ix_games_steam_app_id", "games", ["steam_app_id"], unique=False)
    op.create_index("ix_games_source", "games", ["source"], unique=False)

    # One live entry per Steam app per account; soft deleted rows do not count
    op.create_index(
        "uq_games_account_steam_app_active",
        "games",
        ["account_id", "steam_app_id"],
        unique=True,
        postgresql_where=sa.text("is_deleted = false"),
    )


def downgrade() -> None:
    """Drop games table."""
    op.drop_index("uq_games_account_steam_app_active", table_name="games")
    op.drop_index("ix_games_source", table_name="games")
    op.drop_index("ix_games_steam_app_id", table_name="games")
    op.drop_index("ix_games_account_id", table_name="games")
    op.drop_table("games")
