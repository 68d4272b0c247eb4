"""Account model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    Text,
    Uuid,
    false,
    func,
    true,
)

from gametracker.core.timeutils import utcnow

# Shared by every GameTracker table so foreign keys resolve within one MetaData
metadata = MetaData()

accounts = Table(
    "accounts",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Credentials
    Column("email", Text, nullable=False, unique=True),
    Column("username", String(20), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    # Visibility
    Column("is_public", Boolean, nullable=False, default=False, server_default=false()),
    # Linked Steam identity
    Column("steam_id", String(17), unique=True),
    Column("steam_username", Text),
    Column("steam_avatar_url", Text),
    Column("steam_linked_at", DateTime(timezone=True)),
    Column("steam_sync_enabled", Boolean, nullable=False, default=True, server_default=true()),
    Column("last_steam_sync", DateTime(timezone=True)),
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
)
