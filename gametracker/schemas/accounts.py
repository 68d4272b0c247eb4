"""Account schemas for request/response validation."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class AccountResponse(BaseModel):
    """Account as returned after login or registration."""

    id: UUID
    email: EmailStr
    username: str
    is_public: bool
    steam_id: str | None = None
    steam_username: str | None = None
    steam_avatar_url: str | None = None
    steam_linked_at: datetime | None = None
    steam_sync_enabled: bool = True
    last_steam_sync: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountDetail(AccountResponse):
    """Current account with library size."""

    updated_at: datetime
    game_count: int = 0


class AccountSummary(BaseModel):
    """Minimal account view returned by profile and unlink operations."""

    id: UUID
    email: EmailStr
    username: str
    is_public: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class MeResponse(BaseModel):
    """Response for the current account endpoint."""

    user: AccountDetail


class ProfileUpdate(BaseModel):
    """Schema for updating the current account's profile."""

    username: str | None = Field(None, min_length=3, max_length=20)
    is_public: bool | None = None


class ProfileUpdateResponse(BaseModel):
    """Profile update result."""

    message: str
    user: AccountSummary
