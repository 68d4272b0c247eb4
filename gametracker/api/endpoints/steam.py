"""Steam integration endpoints."""

import html
import json
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, RedirectResponse

from gametracker.config import settings
from gametracker.core.exceptions import AppException, ConflictException, NotFoundException, RateLimitException
from gametracker.dependencies import CurrentAccount, DatabaseSession, SteamApi, SteamAuth, Synchronizer
from gametracker.models.games import GameSource
from gametracker.schemas.steam import (
    FixImagesResponse,
    SteamAuthUrlResponse,
    SteamGameCacheResponse,
    SteamGameResponse,
    SteamLinkedAccount,
    SteamLinkRequest,
    SteamLinkResponse,
    SteamProfileResponse,
    SteamSettingsResponse,
    SteamSettingsUpdate,
    SteamUnlinkResponse,
    SyncOptions,
    SyncResponse,
    SyncStatusResponse,
)
from gametracker.services.account_service import AccountService
from gametracker.services.steam_account_service import SteamAccountService

logger = structlog.get_logger(__name__)

router = APIRouter()

SYNC_HISTORY_SIZE = 5

_POPUP_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>{title}</title>
  <style>
    body {{
      font-family: Arial, sans-serif;
      display: flex;
      justify-content: center;
      align-items: center;
      height: 100vh;
      margin: 0;
      background: {background};
      color: white;
    }}
    .container {{
      text-align: center;
      padding: 2rem;
      background: rgba(255, 255, 255, 0.1);
      border-radius: 10px;
      max-width: 400px;
    }}
  </style>
</head>
<body>
  <div class="container">
    <h2>{heading}</h2>
    <p>{body}</p>
    <p>This window will close automatically...</p>
  </div>
  <script>
    if (window.opener) {{
      window.opener.postMessage({message}, {origin});
    }}
    setTimeout(() => {{
      window.close();
    }}, {close_after});
  </script>
</body>
</html>
"""


def _frontend_origin() -> str:
    origins = settings.cors_origins
    return origins[0] if origins else settings.frontend_url


def _script_json(value: object) -> str:
    # Keep "</script>" sequences out of inline script blocks
    return json.dumps(jsonable_encoder(value)).replace("<", "\\u003c")


def _popup_page(title: str, heading: str, body: str, message: dict, background: str, close_after: int) -> str:
    return _POPUP_PAGE.format(
        title=html.escape(title),
        heading=html.escape(heading),
        body=html.escape(body),
        message=_script_json(message),
        origin=_script_json(_frontend_origin()),
        background=background,
        close_after=close_after,
    )


def _settings_redirect(error: str) -> RedirectResponse:
    url = f"{_frontend_origin().rstrip('/')}/settings?{urlencode({'steamError': error})}"
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/auth/url",
    response_model=SteamAuthUrlResponse,
    status_code=status.HTTP_200_OK,
    summary="Start Steam sign-in",
)
async def get_auth_url(current_account: CurrentAccount, steam_auth: SteamAuth) -> SteamAuthUrlResponse:
    """
    Generate a Steam OpenID sign-in URL bound to the current account.

    The state token is valid for ten minutes and can be used once.
    """
    auth_url = steam_auth.generate_auth_url(current_account["id"])
    return SteamAuthUrlResponse(auth_url=auth_url.url, state=auth_url.state)


@router.get(
    "/auth/callback",
    response_class=HTMLResponse,
    summary="Steam sign-in callback",
    include_in_schema=False,
)
async def auth_callback(
    request: Request,
    db: DatabaseSession,
    steam_auth: SteamAuth,
    steam_api: SteamApi,
):
    """
    Complete a Steam sign-in started from the popup window.

    Verification failures render a page that reports the error to the
    opener; lookup and conflict failures redirect to the settings page.
    On success the Steam identity is linked and the page reports the
    updated account to the opener.
    """
    result = await steam_auth.verify_callback(request.query_params)

    if not result.success or result.account_id is None:
        error = result.error or "Steam authentication failed"
        logger.warning("steam_callback_rejected", error=error)
        return HTMLResponse(
            _popup_page(
                title="Steam Authentication Failed",
                heading="Steam Authentication Failed",
                body=error,
                message={"type": "STEAM_AUTH_ERROR", "error": error},
                background="linear-gradient(135deg, #dc2626 0%, #ef4444 100%)",
                close_after=3000,
            )
        )

    try:
        summary = await steam_api.get_player_summary(result.steam_id)
    except AppException as e:
        logger.warning("steam_callback_lookup_failed", error=e.message, code=e.code)
        return _settings_redirect(e.message)
    if summary is None:
        return _settings_redirect("Failed to fetch Steam player data")

    try:
        await SteamAccountService.ensure_not_linked_elsewhere(db, result.account_id, result.steam_id)
    except ConflictException as e:
        return _settings_redirect(e.message)

    account = await SteamAccountService.link(db, result.account_id, result.steam_id, summary)
    user = SteamLinkedAccount.model_validate(account).model_dump(mode="json")

    return HTMLResponse(
        _popup_page(
            title="Steam Authentication Successful",
            heading="Steam Account Linked!",
            body=f'Your Steam account "{account["steam_username"]}" has been successfully linked.',
            message={
                "type": "STEAM_AUTH_SUCCESS",
                "data": {
                    "steamLinked": True,
                    "steamUsername": account["steam_username"] or "",
                    "user": user,
                },
            },
            background="linear-gradient(135deg, #1e3c72 0%, #2a5298 100%)",
            close_after=2000,
        )
    )


@router.post(
    "/link",
    response_model=SteamLinkResponse,
    status_code=status.HTTP_200_OK,
    summary="Link a Steam ID",
)
async def link_steam(
    data: SteamLinkRequest,
    current_account: CurrentAccount,
    db: DatabaseSession,
    steam_api: SteamApi,
) -> SteamLinkResponse:
    """
    Link a Steam account by its 64-bit ID without the sign-in flow.

    Raises:
        ConflictException: If the Steam ID is linked to another account
        BadRequestException: If the profile does not exist or is private
    """
    account = await SteamAccountService.link_with_lookup(db, steam_api, current_account["id"], data.steam_id)
    return SteamLinkResponse.model_validate({"message": "Steam account linked successfully", "user": account})


@router.delete(
    "/unlink",
    response_model=SteamUnlinkResponse,
    status_code=status.HTTP_200_OK,
    summary="Unlink Steam",
)
async def unlink_steam(
    current_account: CurrentAccount,
    db: DatabaseSession,
    keep_games: bool = Query(False, description="Keep imported Steam games in the library"),
) -> SteamUnlinkResponse:
    """Remove the Steam identity; imported games are soft deleted unless kept."""
    account = await SteamAccountService.unlink(db, current_account["id"], keep_games)
    return SteamUnlinkResponse.model_validate(
        {"message": "Steam account unlinked successfully", "user": account, "games_removed": not keep_games}
    )


@router.post(
    "/sync",
    response_model=SyncResponse,
    status_code=status.HTTP_200_OK,
    summary="Sync Steam library",
)
async def sync_library(
    current_account: CurrentAccount,
    db: DatabaseSession,
    synchronizer: Synchronizer,
    options: SyncOptions | None = None,
) -> SyncResponse:
    """
    Import and update games from the linked Steam library.

    Args:
        current_account: Current authenticated account
        db: Database session
        synchronizer: Library synchronizer
        options: Sync options

    Returns:
        Sync summary; per-game failures are listed in ``errors``

    Raises:
        RateLimitException: If the previous sync was less than five minutes ago
    """
    eligibility = await synchronizer.can_sync(db, current_account["id"])
    if not eligibility.can_sync:
        raise RateLimitException(
            "Sync rate limited. Please wait before syncing again.",
            "SYNC_RATE_LIMITED",
            extra={"next_sync_time": eligibility.next_sync_time},
        )

    result = await synchronizer.sync_library(db, current_account["id"], options)
    return SyncResponse(message="Steam library sync completed", result=result)


@router.get(
    "/sync/status",
    response_model=SyncStatusResponse,
    status_code=status.HTTP_200_OK,
    summary="Sync status",
)
async def sync_status(
    current_account: CurrentAccount,
    db: DatabaseSession,
    synchronizer: Synchronizer,
) -> SyncStatusResponse:
    """Cooldown state, last sync and recent sync history."""
    account_id = current_account["id"]
    history = await synchronizer.get_sync_history(db, account_id, SYNC_HISTORY_SIZE)
    eligibility = await synchronizer.can_sync(db, account_id)

    return SyncStatusResponse.model_validate(
        {
            "can_sync": eligibility.can_sync,
            "next_sync_time": eligibility.next_sync_time,
            "last_sync": current_account["last_steam_sync"],
            "sync_enabled": current_account["steam_sync_enabled"],
            "steam_game_count": await AccountService.count_games(db, account_id, GameSource.STEAM),
            "history": history,
        }
    )


@router.patch(
    "/settings",
    response_model=SteamSettingsResponse,
    status_code=status.HTTP_200_OK,
    summary="Update Steam settings",
)
async def update_settings(
    data: SteamSettingsUpdate,
    current_account: CurrentAccount,
    db: DatabaseSession,
) -> SteamSettingsResponse:
    """Enable or disable library sync."""
    account = await SteamAccountService.set_sync_enabled(db, current_account["id"], data.steam_sync_enabled)
    return SteamSettingsResponse.model_validate({"message": "Steam settings updated successfully", "user": account})


@router.get(
    "/games/{app_id}",
    response_model=SteamGameResponse,
    status_code=status.HTTP_200_OK,
    summary="Cached Steam game",
)
async def get_steam_game(
    app_id: str,
    current_account: CurrentAccount,
    db: DatabaseSession,
    synchronizer: Synchronizer,
) -> SteamGameResponse:
    """Cached Store metadata for a Steam app."""
    game = await synchronizer.get_cached_metadata(db, app_id)
    if not game:
        raise NotFoundException("Steam game not found in cache", "STEAM_GAME_NOT_CACHED")
    return SteamGameResponse.model_validate({"game": game})


@router.post(
    "/games/{app_id}/cache",
    response_model=SteamGameCacheResponse,
    status_code=status.HTTP_200_OK,
    summary="Cache Steam game metadata",
)
async def cache_steam_game(
    app_id: str,
    current_account: CurrentAccount,
    db: DatabaseSession,
    synchronizer: Synchronizer,
) -> SteamGameCacheResponse:
    """Fetch and cache Store metadata for a Steam app."""
    await synchronizer.cache_app_metadata(db, app_id)

    game = await synchronizer.get_cached_metadata(db, app_id)
    if not game:
        raise NotFoundException("Failed to cache Steam game or game not found", "CACHE_FAILED")
    return SteamGameCacheResponse.model_validate({"message": "Steam game cached successfully", "game": game})


@router.post(
    "/fix-images",
    response_model=FixImagesResponse,
    status_code=status.HTTP_200_OK,
    summary="Backfill Steam images",
)
async def fix_images(
    current_account: CurrentAccount,
    db: DatabaseSession,
    synchronizer: Synchronizer,
) -> FixImagesResponse:
    """Set header images on Steam games that have no cover."""
    updated, found = await synchronizer.fix_missing_images(db, current_account["id"])
    return FixImagesResponse(
        message=f"Fixed images for {updated} Steam games",
        updated_count=updated,
        total_found=found,
    )


@router.get(
    "/profile",
    response_model=SteamProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Linked Steam profile",
)
async def get_steam_profile(
    current_account: CurrentAccount,
    db: DatabaseSession,
    steam_api: SteamApi,
    refresh: bool = Query(False, description="Refresh profile details from Steam"),
) -> SteamProfileResponse:
    """
    Linked Steam profile of the current account.

    Raises:
        NotFoundException: If no Steam account is linked
    """
    profile = await SteamAccountService.get_profile(db, steam_api, current_account["id"], refresh)
    return SteamProfileResponse.model_validate({"profile": profile})
