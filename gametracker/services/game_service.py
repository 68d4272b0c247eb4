"""Game library service for business logic."""

from uuid import UUID

import structlog
from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gametracker.core.exceptions import NotFoundException
from gametracker.core.pagination import PaginationParams
from gametracker.core.timeutils import utcnow
from gametracker.core.uploads import delete_image_by_url
from gametracker.models.games import GameSource, GameStatus, games
from gametracker.schemas.games import GameCreate, GameSortField, GameUpdate, SortOrder

logger = structlog.get_logger(__name__)

# Columns whose NULLs sort last when descending and first when ascending
_NULLABLE_SORT_FIELDS = {GameSortField.RATING, GameSortField.LAST_PLAYED_AT}


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class GameService:
    """Service for an account's own library entries."""

    @staticmethod
    def _owned(account_id: UUID, game_id: UUID | None = None) -> list:
        conditions = [games.c.account_id == account_id, games.c.is_deleted.is_(False)]
        if game_id is not None:
            conditions.append(games.c.id == game_id)
        return conditions

    @staticmethod
    async def _release_image(db: AsyncSession, account_id: UUID, image_url: str | None) -> None:
        """Delete a no longer referenced upload that belongs to the account."""
        if not image_url:
            return
        still_used = await db.scalar(
            select(func.count())
            .select_from(games)
            .where(games.c.image_url == image_url, games.c.is_deleted.is_(False))
        )
        if not still_used:
            delete_image_by_url(image_url, account_id)

    @staticmethod
    async def list_games(
        db: AsyncSession,
        account_id: UUID,
        pagination: PaginationParams,
        status: GameStatus | None = None,
        search: str | None = None,
        sort_by: GameSortField = GameSortField.UPDATED_AT,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> tuple[list[dict], int]:
        """
        List library entries of an account.

        Args:
            db: Database session
            account_id: Owner of the library
            pagination: Clamped page and limit
            status: Optional status filter
            search: Optional case-insensitive title substring
            sort_by: Sort column
            sort_order: Sort direction

        Returns:
            Tuple of (page of entries, total count)
        """
        conditions = GameService._owned(account_id)
        if status is not None:
            conditions.append(games.c.status == status.value)
        if search:
            conditions.append(games.c.title.ilike(f"%{escape_like(search)}%", escape="\\"))

        column = games.c[sort_by.value]
        descending = sort_order == SortOrder.DESC
        order = column.desc() if descending else column.asc()
        order_by = [order]
        if sort_by in _NULLABLE_SORT_FIELDS:
            order_by = [order.nulls_last() if descending else order.nulls_first(), games.c.updated_at.desc()]

        query = (
            select(games)
            .where(and_(*conditions))
            .order_by(*order_by)
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await db.execute(query)
        items = [dict(row) for row in result.mappings().all()]

        count_result = await db.execute(select(func.count()).select_from(games).where(and_(*conditions)))
        return items, count_result.scalar_one()

    @staticmethod
    async def get_game(db: AsyncSession, account_id: UUID, game_id: UUID) -> dict:
        """
        Get a single non-deleted entry owned by the account.

        Raises:
            NotFoundException: If the entry does not exist, is deleted or belongs to someone else
        """
        result = await db.execute(select(games).where(and_(*GameService._owned(account_id, game_id))))
        game = result.mappings().first()
        if not game:
            raise NotFoundException("Game not found", "GAME_NOT_FOUND")
        return dict(game)

    @staticmethod
    async def create_game(db: AsyncSession, account_id: UUID, data: GameCreate) -> dict:
        """Add a manually entered game."""
        values = data.model_dump()
        values["status"] = data.status.value
        query = (
            games.insert()
            .values(account_id=account_id, source=GameSource.MANUAL.value, **values)
            .returning(games)
        )
        result = await db.execute(query)
        game = result.mappings().first()
        await db.commit()

        if not game:
            raise ValueError("Failed to create game")

        logger.info("game_created", account_id=str(account_id), game_id=str(game["id"]))
        return dict(game)

    @staticmethod
    async def update_game(db: AsyncSession, account_id: UUID, game_id: UUID, data: GameUpdate) -> dict:
        """
        Apply a partial update.

        Moving to playing or completed stamps the last played time; replacing a
        locally uploaded cover removes the old file.
        """
        existing = await GameService.get_game(db, account_id, game_id)

        update_data = data.model_dump(exclude_unset=True)
        if "status" in update_data:
            update_data["status"] = data.status.value  # type: ignore[union-attr]
            if data.status in (GameStatus.PLAYING, GameStatus.COMPLETED):
                update_data["last_played_at"] = utcnow()

        update_data["updated_at"] = utcnow()
        query = update(games).where(games.c.id == game_id).values(**update_data).returning(games)
        result = await db.execute(query)
        game = result.mappings().first()
        await db.commit()

        if not game:
            raise NotFoundException("Game not found", "GAME_NOT_FOUND")

        if "image_url" in update_data and existing["image_url"] != game["image_url"]:
            await GameService._release_image(db, account_id, existing["image_url"])
        return dict(game)

    @staticmethod
    async def delete_game(db: AsyncSession, account_id: UUID, game_id: UUID) -> None:
        """Soft delete an entry and remove its uploaded cover, if any."""
        existing = await GameService.get_game(db, account_id, game_id)

        await db.execute(
            update(games).where(games.c.id == game_id).values(is_deleted=True, updated_at=utcnow())
        )
        await db.commit()
        logger.info("game_deleted", account_id=str(account_id), game_id=str(game_id))
        await GameService._release_image(db, account_id, existing["image_url"])

    @staticmethod
    async def get_stats(db: AsyncSession, account_id: UUID) -> dict:
        """
        Aggregate the account's library.

        Returns:
            Totals, the average over rated entries and counts per status
        """
        conditions = and_(*GameService._owned(account_id))

        by_status_result = await db.execute(
            select(games.c.status, func.count().label("count"), func.sum(games.c.hours_played).label("hours"))
            .where(conditions)
            .group_by(games.c.status)
        )
        rows = by_status_result.mappings().all()

        average_result = await db.execute(select(func.avg(games.c.rating)).where(conditions))
        average_rating = average_result.scalar_one()

        return {
            "total_games": sum(row["count"] for row in rows),
            "total_hours": round(sum(row["hours"] or 0 for row in rows), 1),
            "average_rating": round(float(average_rating), 1) if average_rating is not None else None,
            "by_status": {row["status"]: row["count"] for row in rows},
        }
