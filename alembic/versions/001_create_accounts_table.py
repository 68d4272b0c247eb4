"""Create accounts table

Revision ID: 001
Revises:
Create Date: 2025-09-05 16:30:36.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts table."""
    # Enable pgcrypto extension
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "accounts",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("username", sa.String(20), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("steam_id", sa.String(17), nullable=True),
        sa.Column("steam_username", sa.Text(), nullable=True),
        sa.Column("steam_avatar_url", sa.Text(), nullable=True),
        sa.Column("steam_linked_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("steam_sync_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_steam_sync", sa.TIMESTAMP(timezone=True), nullable=True),
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
        sa.UniqueConstraint("email", name="accounts_email_key"),
        sa.UniqueConstraint("username", name="accounts_username_key"),
        sa.UniqueConstraint("steam_id", name="accounts_steam_id_key"),
    )


def downgrade() -> None:
    """Drop accounts table."""
    op.drop_table("accounts")
