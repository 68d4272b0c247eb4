"""Library entry (game) model definition using SQLAlchemy Core."""

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    false,
    func,
)

from gametracker.core.timeutils import utcnow
from gametracker.models.accounts import metadata


class GameStatus(str, Enum):
    """Lifecycle status of a library entry."""

    PLAYING = "playing"
    COMPLETED = "completed"
    DROPPED = "dropped"
    BACKLOG = "backlog"


class GameSource(str, Enum):
    """Where a library entry came from."""

    MANUAL = "manual"
    STEAM = "steam"


games = Table(
    "games",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "account_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    # User-edited fields
    Column("title", String(200), nullable=False),
    Column("rating", Float),
    Column("hours_played", Float, nullable=False, default=0.0, server_default="0"),
    Column("status", Text, nullable=False, default=GameStatus.BACKLOG.value, server_default="backlog"),
    Column("image_url", Text),
    Column("last_played_at", DateTime(timezone=True)),
    Column("notes", Text),
    # Soft delete
    Column("is_deleted", Boolean, nullable=False, default=False, server_default=false()),
    # Provenance and Steam-reported values (kept apart from user edits)
    Column("source", Text, nullable=False, default=GameSource.MANUAL.value, server_default="manual"),
    Column("steam_app_id", String(20), index=True),
    Column("steam_name", Text),
    Column("steam_playtime", Float),  # minutes
    Column("steam_last_played", DateTime(timezone=True)),
    Column("steam_image_url", Text),
    Column("is_hidden_on_steam", Boolean, nullable=False, default=False, server_default=false()),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    ),
    CheckConstraint(
        "status IN ('playing', 'completed', 'dropped', 'backlog')",
        name="games_status_check",
    ),
    CheckConstraint("source IN ('manual', 'steam')", name="games_source_check"),
    CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 5)", name="games_rating_check"),
)

# At most one live entry per (account, Steam app)
Index(
    "uq_games_account_steam_app_active",
    games.c.account_id,
    games.c.steam_app_id,
    unique=True,
    postgresql_where=games.c.is_deleted == false(),
    sqlite_where=games.c.is_deleted == false(),
)
Index("ix_games_source", games.c.source)
