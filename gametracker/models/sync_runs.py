"""Steam library sync run audit trail using SQLAlchemy Core."""

from enum import Enum
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Table, Text, Uuid, func

from gametracker.core.timeutils import utcnow
from gametracker.models.accounts import metadata


class SyncStatus(str, Enum):
    """Sync run status."""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


sync_runs = Table(
    "sync_runs",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "account_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("status", Text, nullable=False, index=True),
    Column("games_processed", Integer),
    Column("games_imported", Integer),
    Column("games_updated", Integer),
    Column("games_skipped", Integer),
    Column("error_message", Text),
    Column("started_at", DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()),
    Column("completed_at", DateTime(timezone=True)),
    CheckConstraint("status IN ('pending', 'success', 'error')", name="sync_runs_status_check"),
)
