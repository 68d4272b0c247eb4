"""Public user directory service."""

from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gametracker.core.exceptions import NotFoundException
from gametracker.core.pagination import PaginationParams
from gametracker.models.accounts import accounts
from gametracker.models.games import GameStatus, games
from gametracker.services.game_service import escape_like

STATS_LIST_SIZE = 10


class ProfileService:
    """Service for browsing public accounts and their libraries."""

    @staticmethod
    def _live_games(account_id: UUID) -> list:
        return [games.c.account_id == account_id, games.c.is_deleted.is_(False)]

    @staticmethod
    async def _get_public_account(db: AsyncSession, account_id: UUID) -> dict:
        result = await db.execute(
            select(accounts).where(and_(accounts.c.id == account_id, accounts.c.is_public.is_(True)))
        )
        account = result.mappings().first()
        if not account:
            raise NotFoundException("User not found or profile is private", "USER_NOT_FOUND")
        return dict(account)

    @staticmethod
    async def search_users(db: AsyncSession, query: str, pagination: PaginationParams) -> tuple[list[dict], int]:
        """
        Search public accounts by username.

        Args:
            db: Database session
            query: Case-insensitive username substring
            pagination: Clamped page and limit

        Returns:
            Tuple of (page of accounts with game counts, total count)
        """
        conditions = and_(
            accounts.c.is_public.is_(True),
            accounts.c.username.ilike(f"%{escape_like(query)}%", escape="\\"),
        )

        game_count = (
            select(func.count())
            .select_from(games)
            .where(and_(games.c.account_id == accounts.c.id, games.c.is_deleted.is_(False)))
            .scalar_subquery()
            .label("game_count")
        )
        result = await db.execute(
            select(
                accounts.c.id,
                accounts.c.username,
                accounts.c.steam_username,
                accounts.c.steam_avatar_url,
                accounts.c.created_at.label("joined_at"),
                game_count,
            )
            .where(conditions)
            .order_by(accounts.c.username.asc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        users = [dict(row) for row in result.mappings().all()]

        count_result = await db.execute(select(func.count()).select_from(accounts).where(conditions))
        return users, count_result.scalar_one()

    @staticmethod
    async def get_profile(
        db: AsyncSession, account_id: UUID, pagination: PaginationParams
    ) -> tuple[dict, list[dict], int]:
        """
        Public profile with statistics and a page of the library.

        Raises:
            NotFoundException: If the account does not exist or is private
        """
        account = await ProfileService._get_public_account(db, account_id)
        live = and_(*ProfileService._live_games(account_id))

        result = await db.execute(
            select(
                games.c.id,
                games.c.title,
                games.c.rating,
                games.c.hours_played,
                games.c.status,
                games.c.image_url,
                games.c.last_played_at,
                games.c.created_at,
            )
            .where(live)
            .order_by(games.c.last_played_at.desc().nulls_last(), games.c.updated_at.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        library = [dict(row) for row in result.mappings().all()]

        aggregates = await db.execute(
            select(
                func.count(games.c.id).label("total_games"),
                func.sum(games.c.hours_played).label("total_hours"),
                func.avg(games.c.rating).label("average_rating"),
            ).where(live)
        )
        totals = aggregates.mappings().one()

        breakdown = await db.execute(
            select(games.c.status, func.count(games.c.id).label("count")).where(live).group_by(games.c.status)
        )
        status_counts = {status.value: 0 for status in GameStatus}
        for row in breakdown.mappings().all():
            status_counts[row["status"]] = row["count"]

        profile = {
            "id": account["id"],
            "username": account["username"],
            "steam_username": account["steam_username"],
            "steam_avatar_url": account["steam_avatar_url"],
            "joined_at": account["created_at"],
            "stats": {
                "total_games": totals["total_games"] or 0,
                "total_hours": round(float(totals["total_hours"] or 0), 1),
                "average_rating": (
                    round(float(totals["average_rating"]), 1) if totals["average_rating"] is not None else None
                ),
                "status_counts": status_counts,
            },
        }
        return profile, library, totals["total_games"] or 0

    @staticmethod
    async def get_game_stats(db: AsyncSession, account_id: UUID) -> dict:
        """Top entries by hours and rating plus recent activity of a public account."""
        await ProfileService._get_public_account(db, account_id)
        live = ProfileService._live_games(account_id)

        by_hours = await db.execute(
            select(games.c.title, games.c.hours_played, games.c.image_url)
            .where(and_(*live, games.c.hours_played > 0))
            .order_by(games.c.hours_played.desc())
            .limit(STATS_LIST_SIZE)
        )
        by_rating = await db.execute(
            select(games.c.title, games.c.rating, games.c.image_url)
            .where(and_(*live, games.c.rating.is_not(None)))
            .order_by(games.c.rating.desc())
            .limit(STATS_LIST_SIZE)
        )
        recent = await db.execute(
            select(games.c.title, games.c.last_played_at, games.c.status, games.c.image_url)
            .where(and_(*live, games.c.last_played_at.is_not(None)))
            .order_by(games.c.last_played_at.desc())
            .limit(STATS_LIST_SIZE)
        )

        return {
            "top_games_by_hours": [
                {**row, "hours_played": round(row["hours_played"], 1)} for row in by_hours.mappings().all()
            ],
            "top_rated_games": [dict(row) for row in by_rating.mappings().all()],
            "recent_activity": [dict(row) for row in recent.mappings().all()],
        }
