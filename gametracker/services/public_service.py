"""Discovery service aggregating titles across public libraries."""

import math
from datetime import timedelta

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gametracker.core.pagination import PaginationParams
from gametracker.core.timeutils import as_utc, utcnow
from gametracker.models.accounts import accounts
from gametracker.models.games import games
from gametracker.schemas.public import PopularType
from gametracker.services.game_service import escape_like

TOP_RATED_MIN_AVERAGE = 4.0
TOP_RATED_MIN_RATINGS = 2
MOST_PLAYED_MIN_HOURS = 10
MOST_PLAYED_PREVIEW_SIZE = 10
RECENT_WINDOW = timedelta(days=30)


def _round1(value: float | None) -> float | None:
    return round(float(value), 1) if value is not None else None


def _group_by_title(rows: list[dict]) -> list[dict]:
    """Fold entries sharing a title into one discovery item, keeping first-seen order."""
    groups: dict[str, dict] = {}
    for row in rows:
        group = groups.get(row["title"])
        if group is None:
            group = groups[row["title"]] = {
                "id": str(row["id"]),
                "title": row["title"],
                "image_url": row["image_url"],
                "ratings": [],
                "total_hours_played": 0.0,
                "total_players": 0,
                "recently_added_at": as_utc(row.get("created_at")),
            }

        if row["rating"] is not None:
            group["ratings"].append(row["rating"])
        group["total_hours_played"] += row["hours_played"] or 0
        group["total_players"] += 1

        created_at = as_utc(row.get("created_at"))
        if created_at and group["recently_added_at"] and created_at > group["recently_added_at"]:
            group["recently_added_at"] = created_at

    items = []
    for group in groups.values():
        ratings = group.pop("ratings")
        group["average_rating"] = _round1(sum(ratings) / len(ratings)) if ratings else None
        group["total_hours_played"] = round(group["total_hours_played"], 1)
        items.append(group)
    return items


class PublicService:
    """Service for anonymous discovery endpoints."""

    @staticmethod
    def _public_games() -> list:
        return [games.c.is_deleted.is_(False), accounts.c.is_public.is_(True)]

    @staticmethod
    def _from_public():
        return games.join(accounts, accounts.c.id == games.c.account_id)

    @staticmethod
    def _top_rated_query():
        return (
            select(
                games.c.title,
                func.avg(games.c.rating).label("average_rating"),
                func.sum(games.c.hours_played).label("total_hours_played"),
                func.count(games.c.id).label("total_players"),
            )
            .select_from(PublicService._from_public())
            .where(and_(*PublicService._public_games(), games.c.rating.is_not(None)))
            .group_by(games.c.title)
            .having(
                and_(
                    func.avg(games.c.rating) >= TOP_RATED_MIN_AVERAGE,
                    func.count(games.c.id) >= TOP_RATED_MIN_RATINGS,
                )
            )
        )

    @staticmethod
    def _most_played_query():
        return (
            select(
                games.c.title,
                func.avg(games.c.rating).label("average_rating"),
                func.sum(games.c.hours_played).label("total_hours_played"),
                func.count(games.c.id).label("total_players"),
            )
            .select_from(PublicService._from_public())
            .where(and_(*PublicService._public_games()))
            .group_by(games.c.title)
            .having(func.sum(games.c.hours_played) >= MOST_PLAYED_MIN_HOURS)
        )

    @staticmethod
    async def _with_samples(db: AsyncSession, groups: list[dict], kind: str) -> list[dict]:
        """Attach a sample entry id and cover image to each title group."""
        items = []
        for group in groups:
            result = await db.execute(
                select(games.c.id, games.c.image_url)
                .select_from(PublicService._from_public())
                .where(and_(*PublicService._public_games(), games.c.title == group["title"]))
                .order_by(games.c.created_at)
                .limit(1)
            )
            sample = result.mappings().first()
            items.append(
                {
                    "id": str(sample["id"]) if sample else f"{group['title']}-{kind}",
                    "title": group["title"],
                    "average_rating": _round1(group["average_rating"]),
                    "total_hours_played": _round1(group["total_hours_played"]) or 0.0,
                    "total_players": group["total_players"],
                    "image_url": sample["image_url"] if sample else None,
                }
            )
        return items

    @staticmethod
    async def _count_groups(db: AsyncSession, query) -> int:
        result = await db.execute(select(func.count()).select_from(query.subquery()))
        return result.scalar_one()

    @staticmethod
    async def popular_games(
        db: AsyncSession,
        pagination: PaginationParams,
        kind: PopularType = PopularType.BOTH,
    ) -> tuple[list[dict], list[dict], int | None]:
        """
        Rank titles by average rating and by total hours.

        With ``kind=both`` the top rated list gets half a page (rounded up) at
        half the offset and the most played list is a fixed preview of ten.

        Returns:
            Tuple of (top rated, most played, total count when a single kind is requested)
        """
        top_rated: list[dict] = []
        most_played: list[dict] = []

        if kind in (PopularType.BOTH, PopularType.TOP_RATED):
            if kind == PopularType.TOP_RATED:
                limit, offset = pagination.limit, pagination.offset
            else:
                limit, offset = math.ceil(pagination.limit / 2), pagination.offset // 2
            query = (
                PublicService._top_rated_query()
                .order_by(func.avg(games.c.rating).desc(), games.c.title)
                .offset(offset)
                .limit(limit)
            )
            result = await db.execute(query)
            top_rated = await PublicService._with_samples(
                db, [dict(row) for row in result.mappings().all()], "top_rated"
            )

        if kind in (PopularType.BOTH, PopularType.MOST_PLAYED):
            if kind == PopularType.MOST_PLAYED:
                limit, offset = pagination.limit, pagination.offset
            else:
                limit, offset = MOST_PLAYED_PREVIEW_SIZE, 0
            query = (
                PublicService._most_played_query()
                .order_by(func.sum(games.c.hours_played).desc(), games.c.title)
                .offset(offset)
                .limit(limit)
            )
            result = await db.execute(query)
            most_played = await PublicService._with_samples(
                db, [dict(row) for row in result.mappings().all()], "most_played"
            )

        total = None
        if kind == PopularType.TOP_RATED:
            total = await PublicService._count_groups(db, PublicService._top_rated_query())
        elif kind == PopularType.MOST_PLAYED:
            total = await PublicService._count_groups(db, PublicService._most_played_query())

        return top_rated, most_played, total

    @staticmethod
    async def recent_games(db: AsyncSession, pagination: PaginationParams) -> tuple[list[dict], int]:
        """Titles added to public libraries in the last 30 days, newest first."""
        conditions = and_(*PublicService._public_games(), games.c.created_at >= utcnow() - RECENT_WINDOW)

        result = await db.execute(
            select(
                games.c.id,
                games.c.title,
                games.c.rating,
                games.c.hours_played,
                games.c.image_url,
                games.c.created_at,
            )
            .select_from(PublicService._from_public())
            .where(conditions)
            .order_by(games.c.created_at.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        items = _group_by_title([dict(row) for row in result.mappings().all()])
        items.sort(key=lambda item: item["recently_added_at"], reverse=True)

        count_result = await db.execute(
            select(func.count()).select_from(PublicService._from_public()).where(conditions)
        )
        return items, count_result.scalar_one()

    @staticmethod
    async def search_games(db: AsyncSession, query: str, pagination: PaginationParams) -> tuple[list[dict], int]:
        """Case-insensitive title search across public libraries."""
        conditions = and_(
            *PublicService._public_games(),
            games.c.title.ilike(f"%{escape_like(query)}%", escape="\\"),
        )

        result = await db.execute(
            select(games.c.id, games.c.title, games.c.rating, games.c.hours_played, games.c.image_url)
            .select_from(PublicService._from_public())
            .where(conditions)
            .order_by(games.c.title.asc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        items = _group_by_title([dict(row) for row in result.mappings().all()])
        for item in items:
            item.pop("recently_added_at", None)
        items.sort(key=lambda item: item["title"].lower())

        count_result = await db.execute(
            select(func.count()).select_from(PublicService._from_public()).where(conditions)
        )
        return items, count_result.scalar_one()

    @staticmethod
    async def platform_stats(db: AsyncSession) -> dict:
        """Unique titles, public players, total hours and average rating."""
        public_games = and_(*PublicService._public_games())

        titles = (
            select(games.c.title)
            .select_from(PublicService._from_public())
            .where(public_games)
            .group_by(games.c.title)
        )
        total_games = await PublicService._count_groups(db, titles)

        players_result = await db.execute(
            select(func.count()).select_from(accounts).where(accounts.c.is_public.is_(True))
        )

        aggregates = await db.execute(
            select(
                func.sum(games.c.hours_played).label("hours"),
                func.avg(games.c.rating).label("rating"),
            )
            .select_from(PublicService._from_public())
            .where(public_games)
        )
        row = aggregates.mappings().one()

        return {
            "total_games": total_games,
            "total_players": players_result.scalar_one(),
            "total_hours_played": _round1(row["hours"]) or 0.0,
            "average_rating": _round1(row["rating"]) or 0.0,
        }
