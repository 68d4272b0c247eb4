"""Steam integration schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from gametracker.models.sync_runs import SyncStatus
from gametracker.schemas.accounts import AccountSummary

STEAM_ID_PATTERN = r"^76561[0-9]{12}$"


class SteamAuthUrlResponse(BaseModel):
    """Provider redirect URL and the anti-forgery state bound to it."""

    auth_url: str
    state: str


class SteamLinkRequest(BaseModel):
    """Manual Steam link request."""

    steam_id: str = Field(..., pattern=STEAM_ID_PATTERN, description="64-bit Steam ID")


class SteamLinkedAccount(BaseModel):
    """Account with its freshly linked Steam identity."""

    id: UUID
    email: EmailStr
    username: str
    is_public: bool
    steam_id: str | None = None
    steam_username: str | None = None
    steam_avatar_url: str | None = None
    steam_linked_at: datetime | None = None
    steam_sync_enabled: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SteamLinkResponse(BaseModel):
    """Link result."""

    message: str
    user: SteamLinkedAccount


class SteamUnlinkResponse(BaseModel):
    """Unlink result."""

    message: str
    user: AccountSummary
    games_removed: bool


class SyncOptions(BaseModel):
    """Options controlling a library sync run."""

    skip_existing: bool = True
    update_playtime: bool = True
    minimum_playtime: float = Field(0, ge=0, description="Minutes")
    max_games_to_process: int | None = Field(None, ge=1, le=2000)


class SyncResult(BaseModel):
    """Outcome of a sync run, carrying per-item failures alongside counts."""

    success: bool
    games_processed: int = 0
    games_imported: int = 0
    games_updated: int = 0
    games_skipped: int = 0
    errors: list[str] = Field(default_factory=list)


class SyncResponse(BaseModel):
    """Sync endpoint response."""

    message: str
    result: SyncResult


class SyncRunResponse(BaseModel):
    """Recorded sync attempt."""

    id: UUID
    status: SyncStatus
    games_processed: int | None = None
    games_imported: int | None = None
    games_updated: int | None = None
    games_skipped: int | None = None
    error_message: str | None = None
    started_at: datetime
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}


class SyncStatusResponse(BaseModel):
    """Sync eligibility, settings and recent history."""

    can_sync: bool
    next_sync_time: datetime | None = None
    last_sync: datetime | None = None
    sync_enabled: bool
    steam_game_count: int
    history: list[SyncRunResponse]


class SteamSettingsUpdate(BaseModel):
    """Steam sync settings update."""

    steam_sync_enabled: bool


class SteamSettings(BaseModel):
    """Current Steam sync setting."""

    id: UUID
    steam_sync_enabled: bool


class SteamSettingsResponse(BaseModel):
    """Settings update result."""

    message: str
    user: SteamSettings


class SteamGameMetadata(BaseModel):
    """Cached Steam Store metadata for an app."""

    steam_app_id: str
    name: str
    header_image: str | None = None
    short_description: str | None = None
    developers: list[str] = Field(default_factory=list)
    publishers: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    release_date: str | None = None
    price: str | None = None
    metacritic: int | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SteamGameResponse(BaseModel):
    """Cached metadata envelope."""

    game: SteamGameMetadata


class SteamGameCacheResponse(BaseModel):
    """Result of refreshing cached metadata."""

    message: str
    game: SteamGameMetadata


class FixImagesResponse(BaseModel):
    """Result of backfilling missing cover images."""

    message: str
    updated_count: int
    total_found: int


class SteamProfile(BaseModel):
    """Linked Steam profile of the current account."""

    steam_id: str
    steam_username: str | None = None
    steam_avatar_url: str | None = None
    steam_linked_at: datetime | None = None
    steam_sync_enabled: bool
    last_steam_sync: datetime | None = None
    steam_game_count: int
    profile_url: str


class SteamProfileResponse(BaseModel):
    """Steam profile envelope."""

    profile: SteamProfile
