"""Linking and unlinking Steam identities on accounts."""

from uuid import UUID

import structlog
from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gametracker.core.exceptions import (
    AppException,
    BadRequestException,
    ConflictException,
    NotFoundException,
)
from gametracker.core.timeutils import utcnow
from gametracker.models.accounts import accounts
from gametracker.models.games import GameSource, games
from gametracker.services.account_service import AccountService
from gametracker.services.steam_api import SteamApiClient, SteamPlayerSummary

logger = structlog.get_logger(__name__)

STEAM_PROFILE_URL = "https://steamcommunity.com/profiles"


class SteamAccountService:
    """Service for the Steam identity fields of an account."""

    @staticmethod
    async def ensure_not_linked_elsewhere(db: AsyncSession, account_id: UUID, steam_id: str) -> None:
        """
        Refuse a Steam ID already linked to a different account.

        Raises:
            ConflictException: If another account holds the Steam ID
        """
        result = await db.execute(
            select(accounts.c.id).where(and_(accounts.c.steam_id == steam_id, accounts.c.id != account_id))
        )
        if result.first():
            raise ConflictException("This Steam account is already linked to another user", "STEAM_ALREADY_LINKED")

    @staticmethod
    async def link(db: AsyncSession, account_id: UUID, steam_id: str, summary: SteamPlayerSummary) -> dict:
        """Store the Steam identity and profile details on the account."""
        now = utcnow()
        result = await db.execute(
            update(accounts)
            .where(accounts.c.id == account_id)
            .values(
                steam_id=steam_id,
                steam_username=summary.personaname,
                steam_avatar_url=summary.avatarfull,
                steam_linked_at=now,
                steam_sync_enabled=True,
                updated_at=now,
            )
            .returning(accounts)
        )
        account = result.mappings().first()
        if not account:
            raise NotFoundException("User not found", "USER_NOT_FOUND")
        await db.commit()

        logger.info("steam_account_linked", account_id=str(account_id), steam_id=steam_id)
        return dict(account)

    @staticmethod
    async def link_with_lookup(
        db: AsyncSession, steam_api: SteamApiClient, account_id: UUID, steam_id: str
    ) -> dict:
        """
        Validate a Steam ID against Steam and link it.

        Raises:
            ConflictException: If the Steam ID belongs to another account
            BadRequestException: If Steam knows no such public profile
        """
        await SteamAccountService.ensure_not_linked_elsewhere(db, account_id, steam_id)

        summary = await steam_api.get_player_summary(steam_id)
        if summary is None:
            raise BadRequestException("Invalid Steam ID or profile is private", "STEAM_PROFILE_INVALID")

        return await SteamAccountService.link(db, account_id, steam_id, summary)

    @staticmethod
    async def unlink(db: AsyncSession, account_id: UUID, keep_games: bool = False) -> dict:
        """
        Clear the Steam identity; imported games are soft deleted unless kept.

        Raises:
            BadRequestException: If no Steam account is linked
        """
        account = await AccountService.get_by_id(db, account_id)
        if not account or not account["steam_id"]:
            raise BadRequestException("No Steam account linked", "NO_STEAM_ACCOUNT")

        now = utcnow()
        if not keep_games:
            await db.execute(
                update(games)
                .where(and_(games.c.account_id == account_id, games.c.source == GameSource.STEAM.value))
                .values(is_deleted=True, updated_at=now)
            )

        result = await db.execute(
            update(accounts)
            .where(accounts.c.id == account_id)
            .values(
                steam_id=None,
                steam_username=None,
                steam_avatar_url=None,
                steam_linked_at=None,
                steam_sync_enabled=False,
                last_steam_sync=None,
                updated_at=now,
            )
            .returning(accounts)
        )
        updated = dict(result.mappings().one())
        await db.commit()

        logger.info("steam_account_unlinked", account_id=str(account_id), games_removed=not keep_games)
        return updated

    @staticmethod
    async def set_sync_enabled(db: AsyncSession, account_id: UUID, enabled: bool) -> dict:
        """Turn library sync on or off for the account."""
        result = await db.execute(
            update(accounts)
            .where(accounts.c.id == account_id)
            .values(steam_sync_enabled=enabled, updated_at=utcnow())
            .returning(accounts.c.id, accounts.c.steam_sync_enabled)
        )
        account = result.mappings().first()
        if not account:
            raise NotFoundException("User not found", "USER_NOT_FOUND")
        await db.commit()
        return dict(account)

    @staticmethod
    async def get_profile(
        db: AsyncSession, steam_api: SteamApiClient, account_id: UUID, refresh: bool = False
    ) -> dict:
        """
        Linked Steam profile, optionally refreshed from Steam.

        A failed refresh falls back to the stored profile details.

        Raises:
            NotFoundException: If no Steam account is linked
        """
        account = await AccountService.get_by_id(db, account_id)
        if not account or not account["steam_id"]:
            raise NotFoundException("No Steam account linked", "NO_STEAM_ACCOUNT")

        steam_username = account["steam_username"]
        steam_avatar_url = account["steam_avatar_url"]

        if refresh:
            try:
                summary = await steam_api.get_player_summary(account["steam_id"])
            except AppException as e:
                logger.warning("steam_profile_refresh_failed", account_id=str(account_id), error=e.message)
                summary = None

            if summary is not None:
                steam_username = summary.personaname
                steam_avatar_url = summary.avatarfull or steam_avatar_url
                await db.execute(
                    update(accounts)
                    .where(accounts.c.id == account_id)
                    .values(steam_username=steam_username, steam_avatar_url=steam_avatar_url, updated_at=utcnow())
                )
                await db.commit()

        return {
            "steam_id": account["steam_id"],
            "steam_username": steam_username,
            "steam_avatar_url": steam_avatar_url,
            "steam_linked_at": account["steam_linked_at"],
            "steam_sync_enabled": account["steam_sync_enabled"],
            "last_steam_sync": account["last_steam_sync"],
            "steam_game_count": await AccountService.count_games(db, account_id, GameSource.STEAM),
            "profile_url": f"{STEAM_PROFILE_URL}/{account['steam_id']}",
        }
