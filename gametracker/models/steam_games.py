"""Steam catalog metadata cache using SQLAlchemy Core."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, Table, Text, func

from gametracker.core.timeutils import utcnow
from gametracker.models.accounts import metadata

steam_games = Table(
    "steam_games",
    metadata,
    Column("steam_app_id", String(20), primary_key=True),
    Column("name", Text, nullable=False),
    Column("header_image", Text),
    Column("short_description", Text),
    Column("developers", JSON, nullable=False, default=list),
    Column("publishers", JSON, nullable=False, default=list),
    Column("genres", JSON, nullable=False, default=list),
    Column("release_date", Text),
    Column("price", Text),
    Column("metacritic", Integer),
    # updated_at drives the 24 hour staleness check
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
