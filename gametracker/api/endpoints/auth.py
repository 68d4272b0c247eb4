"""Authentication endpoints."""

from fastapi import APIRouter, status

from gametracker.dependencies import AuthServiceDep, CurrentAccount, DatabaseSession
from gametracker.schemas.accounts import (
    AccountResponse,
    MeResponse,
    ProfileUpdate,
    ProfileUpdateResponse,
)
from gametracker.schemas.auth import (
    AuthResponse,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    RegisterRequest,
    TokenRefresh,
    TokenRefreshResponse,
)
from gametracker.services.account_service import AccountService

router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def register(data: RegisterRequest, auth: AuthServiceDep, db: DatabaseSession) -> AuthResponse:
    """
    Create an account and sign it in.

    Args:
        data: Email, username and password
        auth: Auth service
        db: Database session

    Returns:
        Created account and token pair
    """
    account, tokens = await auth.register(db, data.email, data.username, data.password)
    return AuthResponse(
        message="User created successfully",
        user=AccountResponse.model_validate(account),
        tokens=tokens,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="Log in with email and password",
)
async def login(data: LoginRequest, auth: AuthServiceDep, db: DatabaseSession) -> AuthResponse:
    """
    Verify credentials and issue tokens.

    Returns:
        Account and token pair
    """
    account, tokens = await auth.login(db, data.email, data.password)
    return AuthResponse(
        message="Login successful",
        user=AccountResponse.model_validate(account),
        tokens=tokens,
    )


@router.post(
    "/refresh",
    response_model=TokenRefreshResponse,
    status_code=status.HTTP_200_OK,
    summary="Rotate tokens",
)
async def refresh_tokens(data: TokenRefresh, auth: AuthServiceDep, db: DatabaseSession) -> TokenRefreshResponse:
    """
    Exchange a refresh token for a new token pair.

    The presented refresh token is revoked.
    """
    tokens = await auth.refresh(db, data.refresh_token)
    return TokenRefreshResponse(message="Tokens refreshed successfully", tokens=tokens)


@router.get(
    "/me",
    response_model=MeResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current account",
)
async def get_me(current_account: CurrentAccount, db: DatabaseSession) -> MeResponse:
    """Get the authenticated account with its library size."""
    account = await AccountService.get_detail(db, current_account["id"])
    return MeResponse.model_validate({"user": account})


@router.post(
    "/logout",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Log out",
)
async def logout(
    current_account: CurrentAccount,
    auth: AuthServiceDep,
    db: DatabaseSession,
    data: LogoutRequest | None = None,
) -> MessageResponse:
    """Revoke the given refresh token, or all of them when none is given."""
    await auth.logout(db, current_account["id"], data.refresh_token if data else None)
    return MessageResponse(message="Logout successful")


@router.patch(
    "/profile",
    response_model=ProfileUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update profile",
)
async def update_profile(
    data: ProfileUpdate,
    current_account: CurrentAccount,
    db: DatabaseSession,
) -> ProfileUpdateResponse:
    """Change username and/or public visibility."""
    account = await AccountService.update_profile(db, current_account["id"], data)
    return ProfileUpdateResponse.model_validate({"message": "Profile updated successfully", "user": account})
