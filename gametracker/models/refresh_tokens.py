"""Refresh token model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Table, Text, Uuid, func

from gametracker.core.timeutils import utcnow
from gametracker.models.accounts import metadata

refresh_tokens = Table(
    "refresh_tokens",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("token", Text, nullable=False, unique=True),
    Column(
        "account_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("expires_at", DateTime(timezone=True), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()),
)
