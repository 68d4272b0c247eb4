"""Public discovery schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from gametracker.core.pagination import PaginationMeta


class PopularType(str, Enum):
    """Which popularity rankings to return."""

    BOTH = "both"
    TOP_RATED = "top_rated"
    MOST_PLAYED = "most_played"


class DiscoveredGame(BaseModel):
    """A title aggregated across all public libraries."""

    id: str
    title: str
    average_rating: float | None = None
    total_hours_played: float
    total_players: int
    image_url: str | None = None


class RecentGame(DiscoveredGame):
    """Recently added title with the time it was last added."""

    recently_added_at: datetime


class PopularGamesResponse(BaseModel):
    """Top rated and most played titles."""

    top_rated: list[DiscoveredGame]
    most_played: list[DiscoveredGame]
    pagination: PaginationMeta | None = None


class RecentGamesResponse(BaseModel):
    """Recently added titles."""

    games: list[RecentGame]
    pagination: PaginationMeta


class GameSearchResponse(BaseModel):
    """Titles matching a search query."""

    games: list[DiscoveredGame]
    pagination: PaginationMeta


class PublicStats(BaseModel):
    """Platform-wide statistics over public libraries."""

    total_games: int
    total_players: int
    total_hours_played: float
    average_rating: float
