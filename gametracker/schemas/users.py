"""Public user directory schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from gametracker.core.pagination import PaginationMeta
from gametracker.models.games import GameStatus


class UserSearchResult(BaseModel):
    """Public account found by username search."""

    id: UUID
    username: str
    steam_username: str | None = None
    steam_avatar_url: str | None = None
    game_count: int
    joined_at: datetime


class UserSearchResponse(BaseModel):
    """Paginated user search results."""

    users: list[UserSearchResult]
    pagination: PaginationMeta


class PublicProfileStats(BaseModel):
    """Library statistics shown on a public profile."""

    total_games: int
    total_hours: float
    average_rating: float | None = None
    status_counts: dict[str, int]


class PublicProfile(BaseModel):
    """Public view of an account."""

    id: UUID
    username: str
    steam_username: str | None = None
    steam_avatar_url: str | None = None
    joined_at: datetime
    stats: PublicProfileStats


class ProfileGame(BaseModel):
    """Library entry as shown on a public profile."""

    id: UUID
    title: str
    rating: float | None = None
    hours_played: float
    status: GameStatus
    image_url: str | None = None
    last_played_at: datetime | None = None
    created_at: datetime


class UserProfileResponse(BaseModel):
    """Public profile with a page of the library."""

    user: PublicProfile
    games: list[ProfileGame]
    pagination: PaginationMeta


class TopHoursGame(BaseModel):
    """Entry ranked by hours played."""

    title: str
    hours_played: float
    image_url: str | None = None


class TopRatedGame(BaseModel):
    """Entry ranked by rating."""

    title: str
    rating: float
    image_url: str | None = None


class RecentActivity(BaseModel):
    """Entry ranked by last played time."""

    title: str
    last_played_at: datetime
    status: GameStatus
    image_url: str | None = None


class UserGameStatsResponse(BaseModel):
    """Detailed statistics for a public library."""

    top_games_by_hours: list[TopHoursGame]
    top_rated_games: list[TopRatedGame]
    recent_activity: list[RecentActivity]
