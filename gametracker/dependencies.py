"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from gametracker.container import Services
from gametracker.core.exceptions import UnauthorizedException
from gametracker.core.security import TokenService
from gametracker.database import get_db
from gametracker.services.account_service import AccountService
from gametracker.services.auth_service import AuthService
from gametracker.services.steam_api import SteamApiClient
from gametracker.services.steam_auth import SteamIdentityVerifier
from gametracker.services.steam_sync import LibrarySynchronizer

# Missing credentials are reported as 401 by get_current_account, not 403
security = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    """Service container attached to the application."""
    return request.app.state.services


def get_token_service(services: Annotated[Services, Depends(get_services)]) -> TokenService:
    return services.token_service


def get_auth_service(services: Annotated[Services, Depends(get_services)]) -> AuthService:
    return services.auth_service


def get_steam_api_client(services: Annotated[Services, Depends(get_services)]) -> SteamApiClient:
    return services.steam_api


def get_steam_auth_service(services: Annotated[Services, Depends(get_services)]) -> SteamIdentityVerifier:
    return services.steam_auth


def get_library_synchronizer(services: Annotated[Services, Depends(get_services)]) -> LibrarySynchronizer:
    return services.synchronizer


async def get_current_account(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """
    Resolve the account behind a bearer access token.

    Args:
        credentials: Bearer token credentials
        tokens: Token service
        db: Database session

    Returns:
        Account data from database

    Raises:
        UnauthorizedException: If the token is missing, invalid or expired, or the account is gone
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Access token required", "TOKEN_REQUIRED")

    payload = tokens.verify_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedException("Invalid or expired token", "INVALID_TOKEN")

    account = await AccountService.get_by_id(db, payload.account_id)
    if not account:
        raise UnauthorizedException("User not found", "USER_NOT_FOUND")

    return account


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentAccount = Annotated[dict, Depends(get_current_account)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
SteamApi = Annotated[SteamApiClient, Depends(get_steam_api_client)]
SteamAuth = Annotated[SteamIdentityVerifier, Depends(get_steam_auth_service)]
Synchronizer = Annotated[LibrarySynchronizer, Depends(get_library_synchronizer)]
