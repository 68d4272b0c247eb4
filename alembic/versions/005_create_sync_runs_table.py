"""Create sync_runs table

Revision ID: 005
Revises: 004
Create Date: 2025-09-05 16:32:30.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create sync_runs table."""
    op.create_table(
        "sync_runs",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("games_processed", sa.Integer(), nullable=True),
        sa.Column("games_imported", sa.Integer(), nullable=True),
        sa.Column("games_updated", sa.Integer(), nullable=True),
        sa.Column("games_skipped", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "started_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["account_id"],
            ["accounts.id"],
            name="sync_runs_account_id_fkey",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint("status IN ('pending', 'success', 'error')", name="sync_runs_status_check"),
    )

    op.create_index("ix_sync_runs_account_id", "sync_runs", ["account_id"], unique=False)
    op.create_index("ix_sync_runs_status", "sync_runs", ["status"], unique=False)


def downgrade() -> None:
    """Drop sync_runs table."""
    op.drop_index("ix_sync_runs_status", table_name="sync_runs")
    op.drop_index("ix_sync_runs_account_id", table_name="sync_runs")
    op.drop_table("sync_runs")
