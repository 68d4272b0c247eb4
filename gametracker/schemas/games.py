"""Library entry schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from gametracker.core.pagination import PaginationMeta
from gametracker.models.games import GameSource, GameStatus


class GameSortField(str, Enum):
    """Columns a library listing can be ordered by."""

    TITLE = "title"
    RATING = "rating"
    HOURS_PLAYED = "hours_played"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    LAST_PLAYED_AT = "last_played_at"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


def _validate_rating(v: float | None) -> float | None:
    if v is not None and (v * 2) != int(v * 2):
        raise ValueError("Rating must be in steps of 0.5")
    return v


def _validate_image_url(v: str | None) -> str | None:
    if v is None:
        return v
    if not v.startswith(("http://", "https://", "/uploads/")):
        raise ValueError("Image URL must be an http(s) URL or an uploaded image path")
    return v


class GameBase(BaseModel):
    """Base library entry schema with user-editable fields."""

    title: str = Field(..., min_length=1, max_length=200)
    rating: float | None = Field(None, ge=0, le=5)
    hours_played: float = Field(0, ge=0)
    status: GameStatus = GameStatus.BACKLOG
    image_url: str | None = None
    notes: str | None = Field(None, max_length=1000)

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v: float | None) -> float | None:
        """Ratings use half-point granularity."""
        return _validate_rating(v)

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str | None) -> str | None:
        """Accept absolute URLs and locally uploaded images."""
        return _validate_image_url(v)


class GameCreate(GameBase):
    """Schema for adding a game manually."""


class GameUpdate(BaseModel):
    """Schema for a partial update of a library entry."""

    title: str | None = Field(None, min_length=1, max_length=200)
    rating: float | None = Field(None, ge=0, le=5)
    hours_played: float | None = Field(None, ge=0)
    status: GameStatus | None = None
    image_url: str | None = None
    notes: str | None = Field(None, max_length=1000)

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v: float | None) -> float | None:
        """Ratings use half-point granularity."""
        return _validate_rating(v)

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str | None) -> str | None:
        """Accept absolute URLs and locally uploaded images."""
        return _validate_image_url(v)

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "GameUpdate":
        """Title, hours and status may be omitted but never cleared."""
        for field in ("title", "hours_played", "status"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class GameResponse(BaseModel):
    """Library entry as returned to its owner."""

    id: UUID
    title: str
    rating: float | None = None
    hours_played: float
    status: GameStatus
    image_url: str | None = None
    last_played_at: datetime | None = None
    notes: str | None = None
    source: GameSource
    steam_app_id: str | None = None
    steam_name: str | None = None
    steam_playtime: float | None = None
    steam_last_played: datetime | None = None
    steam_image_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GameListResponse(BaseModel):
    """Paginated library listing."""

    games: list[GameResponse]
    pagination: PaginationMeta


class GameEnvelope(BaseModel):
    """Single library entry."""

    game: GameResponse


class GameMutationResponse(BaseModel):
    """Result of creating or updating a library entry."""

    message: str
    game: GameResponse


class GameStatsOverview(BaseModel):
    """Aggregate numbers over the owner's library."""

    total_games: int
    total_hours: float
    average_rating: float | None = None
    by_status: dict[str, int]


class GameStatsResponse(BaseModel):
    """Wrapper for library statistics."""

    stats: GameStatsOverview
