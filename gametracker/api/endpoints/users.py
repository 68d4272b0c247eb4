"""Public user directory endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from gametracker.core.pagination import build_pagination, clamp_pagination
from gametracker.dependencies import DatabaseSession
from gametracker.schemas.users import UserGameStatsResponse, UserProfileResponse, UserSearchResponse
from gametracker.services.profile_service import ProfileService

router = APIRouter()

USER_PAGE_MAX = 50


@router.get(
    "/search",
    response_model=UserSearchResponse,
    status_code=status.HTTP_200_OK,
    summary="Search users",
)
async def search_users(
    db: DatabaseSession,
    q: str = Query(..., min_length=1, max_length=50, description="Username search"),
    page: str | None = Query(None),
    limit: str | None = Query(None),
) -> UserSearchResponse:
    """Search public accounts by username."""
    params = clamp_pagination(page, limit, max_limit=USER_PAGE_MAX)
    users, total = await ProfileService.search_users(db, q, params)
    return UserSearchResponse.model_validate({"users": users, "pagination": build_pagination(params, total)})


@router.get(
    "/{account_id}/profile",
    response_model=UserProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Public profile",
)
async def get_profile(
    account_id: UUID,
    db: DatabaseSession,
    page: str | None = Query(None),
    limit: str | None = Query(None),
) -> UserProfileResponse:
    """
    Public profile with statistics and a page of the library.

    Raises:
        NotFoundException: If the account does not exist or is private
    """
    params = clamp_pagination(page, limit, max_limit=USER_PAGE_MAX)
    profile, library, total = await ProfileService.get_profile(db, account_id, params)
    return UserProfileResponse.model_validate(
        {"user": profile, "games": library, "pagination": build_pagination(params, total)}
    )


@router.get(
    "/{account_id}/games/stats",
    response_model=UserGameStatsResponse,
    status_code=status.HTTP_200_OK,
    summary="Public library statistics",
)
async def get_game_stats(account_id: UUID, db: DatabaseSession) -> UserGameStatsResponse:
    """Top games by hours and rating plus recent activity of a public library."""
    return UserGameStatsResponse.model_validate(await ProfileService.get_game_stats(db, account_id))
