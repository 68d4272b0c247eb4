"""Authentication schemas."""

from pydantic import BaseModel, EmailStr, Field

from gametracker.schemas.accounts import AccountResponse


class RegisterRequest(BaseModel):
    """Account registration request."""

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=20)
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    """Email and password login request."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenRefresh(BaseModel):
    """Token refresh request schema."""

    refresh_token: str | None = None


class LogoutRequest(BaseModel):
    """Logout request; without a token every session of the account ends."""

    refresh_token: str | None = None


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    """Login and registration response with tokens and account info."""

    message: str
    user: AccountResponse
    tokens: TokenPair


class TokenRefreshResponse(BaseModel):
    """Rotated token pair."""

    message: str
    tokens: TokenPair


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
