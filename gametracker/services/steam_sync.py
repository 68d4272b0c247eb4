"""Steam library synchronization."""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Literal
from uuid import UUID

import structlog
from pydantic import BaseModel
from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gametracker.core.timeutils import as_utc, utcnow
from gametracker.models.accounts import accounts
from gametracker.models.games import GameSource, GameStatus, games
from gametracker.models.steam_games import steam_games
from gametracker.models.sync_runs import SyncStatus, sync_runs
from gametracker.schemas.steam import SyncOptions, SyncResult
from gametracker.services.steam_api import SteamApiClient, SteamOwnedGame

logger = structlog.get_logger(__name__)

STEAM_CDN_URL = "https://cdn.akamai.steamstatic.com/steam/apps"

SYNC_COOLDOWN = timedelta(minutes=5)
METADATA_TTL = timedelta(hours=24)
DEFAULT_MAX_GAMES = 1000

RECENTLY_PLAYED_DAYS = 7
COMPLETED_PLAYTIME_MINUTES = 600

ItemOutcome = Literal["imported", "updated", "skipped"]


class SyncAbortedError(Exception):
    """A sync run cannot proceed for this account."""


class SyncEligibility(BaseModel):
    """Whether an account may start a sync now."""

    can_sync: bool
    next_sync_time: datetime | None = None


def steam_header_image_url(app_id: str | int) -> str:
    """Deterministic header image on the Steam CDN."""
    return f"{STEAM_CDN_URL}/{app_id}/header.jpg"


def _from_epoch(value: int | None) -> datetime | None:
    return datetime.fromtimestamp(value, tz=UTC) if value else None


def infer_status(
    playtime_minutes: float,
    last_played_epoch: int | None,
    now: datetime | None = None,
) -> GameStatus:
    """
    Guess an initial status for a newly imported game.

    Args:
        playtime_minutes: Total playtime reported by Steam
        last_played_epoch: Last played time in epoch seconds, if any
        now: Reference time, defaults to the current time

    Returns:
        Playing when played in the last week, completed when played for more
        than ten hours, backlog otherwise
    """
    if playtime_minutes == 0:
        return GameStatus.BACKLOG

    last_played = _from_epoch(last_played_epoch)
    if last_played is None:
        return GameStatus.BACKLOG

    now = now or utcnow()
    days_since_played = (now - last_played).total_seconds() / 86400

    if days_since_played < RECENTLY_PLAYED_DAYS:
        return GameStatus.PLAYING

    if playtime_minutes > COMPLETED_PLAYTIME_MINUTES:
        return GameStatus.COMPLETED

    return GameStatus.BACKLOG


class LibrarySynchronizer:
    """Reconcile a Steam library with an account's game collection."""

    def __init__(self, steam_api: SteamApiClient, batch_size: int = 50, batch_delay: float = 0.1):
        """
        Initialize the synchronizer.

        Args:
            steam_api: Steam client
            batch_size: Items processed between pauses
            batch_delay: Pause between batches in seconds
        """
        self.steam_api = steam_api
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def _start_run(self, db: AsyncSession, account_id: UUID) -> UUID:
        result = await db.execute(
            sync_runs.insert()
            .values(account_id=account_id, status=SyncStatus.PENDING.value, started_at=utcnow())
            .returning(sync_runs.c.id)
        )
        run_id = result.scalar_one()
        await db.commit()
        return run_id

    async def _finish_run(self, db: AsyncSession, run_id: UUID, status: SyncStatus, **values) -> None:
        await db.execute(
            update(sync_runs)
            .where(sync_runs.c.id == run_id)
            .values(status=status.value, completed_at=utcnow(), **values)
        )
        await db.commit()

    async def sync_library(
        self,
        db: AsyncSession,
        account_id: UUID,
        options: SyncOptions | None = None,
    ) -> SyncResult:
        """
        Import and update an account's Steam games.

        Per-item failures are collected in the result and do not stop the run.
        Any other failure marks the run as errored and returns a zero-count
        failure summary.

        Args:
            db: Database session
            account_id: Account to sync
            options: Sync options, defaults apply when omitted

        Returns:
            Counts of processed, imported, updated and skipped games plus errors
        """
        options = options or SyncOptions()
        run_id = await self._start_run(db, account_id)
        log = logger.bind(account_id=str(account_id), sync_run_id=str(run_id))
        log.info("steam_sync_started", options=options.model_dump())

        try:
            result = await db.execute(
                select(accounts.c.steam_id, accounts.c.steam_sync_enabled).where(accounts.c.id == account_id)
            )
            account = result.mappings().first()

            if not account or not account["steam_id"]:
                raise SyncAbortedError("User does not have a linked Steam account")
            if not account["steam_sync_enabled"]:
                raise SyncAbortedError("Steam sync is disabled for this user")

            owned = await self.steam_api.get_owned_games(account["steam_id"])
            if owned is None:
                raise SyncAbortedError("Failed to fetch Steam games or profile is private")

            items = owned.games[: options.max_games_to_process or DEFAULT_MAX_GAMES]
            summary = SyncResult(success=True)

            for start in range(0, len(items), self.batch_size):
                for item in items[start : start + self.batch_size]:
                    try:
                        outcome = await self._process_item(db, account_id, item, options)
                        await db.commit()
                    except Exception as e:
                        await db.rollback()
                        message = f"Failed to process game {item.name or item.appid}: {e}"
                        summary.errors.append(message)
                        log.warning("steam_item_failed", app_id=item.appid, error=str(e))
                        continue

                    summary.games_processed += 1
                    if outcome == "imported":
                        summary.games_imported += 1
                    elif outcome == "updated":
                        summary.games_updated += 1
                    else:
                        summary.games_skipped += 1

                if start + self.batch_size < len(items):
                    await asyncio.sleep(self.batch_delay)

            await db.execute(
                update(accounts)
                .where(accounts.c.id == account_id)
                .values(last_steam_sync=utcnow(), updated_at=utcnow())
            )
            await self._finish_run(
                db,
                run_id,
                SyncStatus.SUCCESS,
                games_processed=summary.games_processed,
                games_imported=summary.games_imported,
                games_updated=summary.games_updated,
                games_skipped=summary.games_skipped,
            )

            log.info(
                "steam_sync_completed",
                processed=summary.games_processed,
                imported=summary.games_imported,
                updated=summary.games_updated,
                skipped=summary.games_skipped,
                errors=len(summary.errors),
            )
            return summary

        except Exception as e:
            await db.rollback()
            message = str(e) or "Unknown sync error"
            await self._finish_run(db, run_id, SyncStatus.ERROR, error_message=message)
            log.error("steam_sync_failed", error=message)
            return SyncResult(success=False, errors=[message])

    async def _process_item(
        self,
        db: AsyncSession,
        account_id: UUID,
        item: SteamOwnedGame,
        options: SyncOptions,
    ) -> ItemOutcome:
        """Create, update or skip the library entry for one owned app."""
        app_id = str(item.appid)
        playtime = item.playtime_forever or 0

        if playtime < options.minimum_playtime:
            return "skipped"

        result = await db.execute(
            select(
                games.c.id,
                games.c.hours_played,
                games.c.steam_playtime,
                games.c.image_url,
                games.c.steam_image_url,
            ).where(
                and_(
                    games.c.account_id == account_id,
                    games.c.steam_app_id == app_id,
                    games.c.is_deleted.is_(False),
                )
            )
        )
        existing = result.mappings().first()
        last_played = _from_epoch(item.rtime_last_played)
        image_url = steam_header_image_url(app_id)

        if existing is None:
            await db.execute(
                games.insert().values(
                    account_id=account_id,
                    title=item.name or "Unknown Game",
                    source=GameSource.STEAM.value,
                    steam_app_id=app_id,
                    steam_name=item.name,
                    steam_playtime=playtime,
                    hours_played=playtime / 60,
                    steam_last_played=last_played,
                    last_played_at=last_played,
                    image_url=image_url,
                    steam_image_url=image_url,
                    status=infer_status(playtime, item.rtime_last_played).value,
                )
            )
            return "imported"

        if not options.update_playtime:
            return "skipped"

        values: dict = {"steam_playtime": playtime, "updated_at": utcnow()}
        if last_played is not None:
            values["steam_last_played"] = last_played

        # Hours only ever ratchet upwards from Steam-reported playtime
        if playtime > (existing["steam_playtime"] or 0):
            values["hours_played"] = max(existing["hours_played"], playtime / 60)

        if not existing["image_url"] or not existing["steam_image_url"]:
            values["image_url"] = image_url
            values["steam_image_url"] = image_url

        await db.execute(update(games).where(games.c.id == existing["id"]).values(**values))
        return "updated"

    async def can_sync(self, db: AsyncSession, account_id: UUID, now: datetime | None = None) -> SyncEligibility:
        """Enforce the per-account cooldown measured from the latest pending or successful run."""
        result = await db.execute(
            select(sync_runs.c.started_at)
            .where(
                and_(
                    sync_runs.c.account_id == account_id,
                    sync_runs.c.status.in_([SyncStatus.PENDING.value, SyncStatus.SUCCESS.value]),
                )
            )
            .order_by(sync_runs.c.started_at.desc())
            .limit(1)
        )
        started_at = as_utc(result.scalar_one_or_none())
        if started_at is None:
            return SyncEligibility(can_sync=True)

        next_sync_time = started_at + SYNC_COOLDOWN
        if (now or utcnow()) < next_sync_time:
            return SyncEligibility(can_sync=False, next_sync_time=next_sync_time)

        return SyncEligibility(can_sync=True)

    async def get_sync_history(self, db: AsyncSession, account_id: UUID, limit: int = 10) -> list[dict]:
        """Most recent sync runs, newest first."""
        result = await db.execute(
            select(sync_runs)
            .where(sync_runs.c.account_id == account_id)
            .order_by(sync_runs.c.started_at.desc())
            .limit(limit)
        )
        return [dict(row) for row in result.mappings().all()]

    async def cache_app_metadata(self, db: AsyncSession, app_id: str) -> None:
        """
        Refresh cached Store metadata for an app.

        Rows updated within the last 24 hours are left alone. Failures are
        logged and swallowed.
        """
        try:
            result = await db.execute(select(steam_games.c.updated_at).where(steam_games.c.steam_app_id == app_id))
            existing = result.first()
            if existing is not None and as_utc(existing.updated_at) > utcnow() - METADATA_TTL:
                return

            details = await self.steam_api.get_app_details(app_id)
            if not details or not details.success or not details.data:
                logger.info("steam_metadata_unavailable", app_id=app_id)
                return

            data = details.data
            values = {
                "name": data.name,
                "header_image": data.header_image,
                "short_description": data.short_description,
                "developers": data.developers,
                "publishers": data.publishers,
                "genres": [genre.description for genre in data.genres],
                "release_date": data.release_date.date if data.release_date else None,
                "price": data.price_overview.final_formatted if data.price_overview else None,
                "metacritic": data.metacritic.score if data.metacritic else None,
                "updated_at": utcnow(),
            }

            if existing is None:
                await db.execute(steam_games.insert().values(steam_app_id=app_id, **values))
            else:
                await db.execute(update(steam_games).where(steam_games.c.steam_app_id == app_id).values(**values))
            await db.commit()
            logger.info("steam_metadata_cached", app_id=app_id)
        except Exception as e:
            await db.rollback()
            logger.error("steam_metadata_cache_failed", app_id=app_id, error=str(e))

    async def fix_missing_images(self, db: AsyncSession, account_id: UUID) -> tuple[int, int]:
        """
        Backfill header images on Steam entries missing a cover.

        Returns:
            Tuple of (entries updated, entries found without an image)
        """
        result = await db.execute(
            select(games.c.id, games.c.steam_app_id).where(
                and_(
                    games.c.account_id == account_id,
                    games.c.source == GameSource.STEAM.value,
                    games.c.is_deleted.is_(False),
                    or_(
                        games.c.image_url.is_(None),
                        games.c.steam_image_url.is_(None),
                        games.c.image_url == "",
                        games.c.steam_image_url == "",
                    ),
                )
            )
        )
        found = result.mappings().all()

        updated = 0
        for row in found:
            if not row["steam_app_id"]:
                continue
            image_url = steam_header_image_url(row["steam_app_id"])
            await db.execute(
                update(games)
                .where(games.c.id == row["id"])
                .values(image_url=image_url, steam_image_url=image_url, updated_at=utcnow())
            )
            updated += 1

        await db.commit()
        logger.info("steam_images_fixed", account_id=str(account_id), updated=updated, found=len(found))
        return updated, len(found)

    async def get_cached_metadata(self, db: AsyncSession, app_id: str) -> dict | None:
        """Cached Store metadata for an app, if any."""
        result = await db.execute(select(steam_games).where(steam_games.c.steam_app_id == app_id))
        row = result.mappings().first()
        return dict(row) if row else None
