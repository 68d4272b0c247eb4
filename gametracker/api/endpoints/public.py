"""Public discovery endpoints."""

from fastapi import APIRouter, Query, status

from gametracker.core.pagination import build_pagination, clamp_pagination
from gametracker.dependencies import DatabaseSession
from gametracker.schemas.public import (
    GameSearchResponse,
    PopularGamesResponse,
    PopularType,
    PublicStats,
    RecentGamesResponse,
)
from gametracker.services.public_service import PublicService

router = APIRouter()


@router.get(
    "/games/popular",
    response_model=PopularGamesResponse,
    status_code=status.HTTP_200_OK,
    summary="Popular games",
)
async def popular_games(
    db: DatabaseSession,
    page: str | None = Query(None),
    limit: str | None = Query(None),
    kind: str | None = Query(None, alias="type", description="both, top_rated or most_played"),
) -> PopularGamesResponse:
    """
    Top rated and most played titles across public libraries.

    Pagination is only reported when a single ranking is requested.
    """
    try:
        popular_type = PopularType(kind) if kind else PopularType.BOTH
    except ValueError:
        popular_type = PopularType.BOTH

    params = clamp_pagination(page, limit)
    top_rated, most_played, total = await PublicService.popular_games(db, params, popular_type)

    return PopularGamesResponse.model_validate(
        {
            "top_rated": top_rated,
            "most_played": most_played,
            "pagination": build_pagination(params, total) if total is not None else None,
        }
    )


@router.get(
    "/games/recent",
    response_model=RecentGamesResponse,
    status_code=status.HTTP_200_OK,
    summary="Recently added games",
)
async def recent_games(
    db: DatabaseSession,
    page: str | None = Query(None),
    limit: str | None = Query(None),
) -> RecentGamesResponse:
    """Titles added to public libraries in the last 30 days."""
    params = clamp_pagination(page, limit)
    items, total = await PublicService.recent_games(db, params)
    return RecentGamesResponse.model_validate({"games": items, "pagination": build_pagination(params, total)})


@router.get(
    "/games/search",
    response_model=GameSearchResponse,
    status_code=status.HTTP_200_OK,
    summary="Search games",
)
async def search_games(
    db: DatabaseSession,
    q: str = Query(..., min_length=1, max_length=100, description="Title search"),
    page: str | None = Query(None),
    limit: str | None = Query(None),
) -> GameSearchResponse:
    """
    Search titles in public libraries.

    Args:
        db: Database session
        q: Case-insensitive title substring
        page: Page number
        limit: Items per page

    Returns:
        Matching titles grouped across libraries
    """
    params = clamp_pagination(page, limit)
    items, total = await PublicService.search_games(db, q, params)
    return GameSearchResponse.model_validate({"games": items, "pagination": build_pagination(params, total)})


@router.get(
    "/stats",
    response_model=PublicStats,
    status_code=status.HTTP_200_OK,
    summary="Platform statistics",
)
async def platform_stats(db: DatabaseSession) -> PublicStats:
    """Platform-wide totals over public libraries."""
    return PublicStats.model_validate(await PublicService.platform_stats(db))
