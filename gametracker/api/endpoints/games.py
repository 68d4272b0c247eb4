"""Library management endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from gametracker.core.pagination import build_pagination, clamp_pagination
from gametracker.dependencies import CurrentAccount, DatabaseSession
from gametracker.models.games import GameStatus
from gametracker.schemas.auth import MessageResponse
from gametracker.schemas.games import (
    GameCreate,
    GameEnvelope,
    GameListResponse,
    GameMutationResponse,
    GameSortField,
    GameStatsResponse,
    GameUpdate,
    SortOrder,
)
from gametracker.services.game_service import GameService

router = APIRouter()


def _sort_field(value: str | None) -> GameSortField:
    try:
        return GameSortField(value)
    except ValueError:
        return GameSortField.UPDATED_AT


def _sort_order(value: str | None) -> SortOrder:
    try:
        return SortOrder(value)
    except ValueError:
        return SortOrder.DESC


@router.get(
    "",
    response_model=GameListResponse,
    status_code=status.HTTP_200_OK,
    summary="List library entries",
)
async def list_games(
    current_account: CurrentAccount,
    db: DatabaseSession,
    page: str | None = Query(None, description="Page number"),
    limit: str | None = Query(None, description="Items per page"),
    game_status: GameStatus | None = Query(None, alias="status", description="Filter by status"),
    search: str | None = Query(None, description="Case-insensitive title search"),
    sort_by: str | None = Query(None, description="Sort column"),
    sort_order: str | None = Query(None, description="asc or desc"),
) -> GameListResponse:
    """
    List the current account's games with filtering and pagination.

    Unknown sort parameters fall back to the most recently updated first.

    Args:
        current_account: Current authenticated account
        db: Database session
        page: Page number
        limit: Items per page
        game_status: Optional status filter
        search: Optional title search
        sort_by: Sort column
        sort_order: Sort direction

    Returns:
        Page of library entries
    """
    params = clamp_pagination(page, limit)
    items, total = await GameService.list_games(
        db,
        current_account["id"],
        params,
        status=game_status,
        search=search or None,
        sort_by=_sort_field(sort_by),
        sort_order=_sort_order(sort_order),
    )
    return GameListResponse.model_validate({"games": items, "pagination": build_pagination(params, total)})


@router.get(
    "/stats/overview",
    response_model=GameStatsResponse,
    status_code=status.HTTP_200_OK,
    summary="Library statistics",
)
async def get_stats(current_account: CurrentAccount, db: DatabaseSession) -> GameStatsResponse:
    """Totals, average rating and per-status counts for the current account."""
    stats = await GameService.get_stats(db, current_account["id"])
    return GameStatsResponse.model_validate({"stats": stats})


@router.get(
    "/{game_id}",
    response_model=GameEnvelope,
    status_code=status.HTTP_200_OK,
    summary="Get library entry",
)
async def get_game(game_id: UUID, current_account: CurrentAccount, db: DatabaseSession) -> GameEnvelope:
    """
    Get a single library entry owned by the current account.

    Raises:
        NotFoundException: If the entry does not exist or belongs to someone else
    """
    game = await GameService.get_game(db, current_account["id"], game_id)
    return GameEnvelope.model_validate({"game": game})


@router.post(
    "",
    response_model=GameMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a game",
)
async def create_game(data: GameCreate, current_account: CurrentAccount, db: DatabaseSession) -> GameMutationResponse:
    """Add a game to the library manually."""
    game = await GameService.create_game(db, current_account["id"], data)
    return GameMutationResponse.model_validate({"message": "Game added successfully", "game": game})


@router.patch(
    "/{game_id}",
    response_model=GameMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Update a game",
)
async def update_game(
    game_id: UUID,
    data: GameUpdate,
    current_account: CurrentAccount,
    db: DatabaseSession,
) -> GameMutationResponse:
    """
    Partially update a library entry.

    Args:
        game_id: Entry ID
        data: Fields to change
        current_account: Current authenticated account
        db: Database session

    Returns:
        Updated entry
    """
    game = await GameService.update_game(db, current_account["id"], game_id, data)
    return GameMutationResponse.model_validate({"message": "Game updated successfully", "game": game})


@router.delete(
    "/{game_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete a game",
)
async def delete_game(game_id: UUID, current_account: CurrentAccount, db: DatabaseSession) -> MessageResponse:
    """Soft delete a library entry and remove its uploaded image."""
    await GameService.delete_game(db, current_account["id"], game_id)
    return MessageResponse(message="Game deleted successfully")
