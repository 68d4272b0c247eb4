"""Steam Web API and Store API client."""

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError

from gametracker.core.exceptions import RateLimitException, UpstreamServiceException
from gametracker.core.stores import RateLimitStatus, RateLimitStore

logger = structlog.get_logger(__name__)

USER_AGENT = "GameTracker/1.0"

# Public profile used to check that an API key is accepted
KEY_CHECK_STEAM_ID = "76561197960287930"


class SteamPlayerSummary(BaseModel):
    """Player profile as reported by ISteamUser/GetPlayerSummaries."""

    steamid: str
    personaname: str
    avatar: str | None = None
    avatarmedium: str | None = None
    avatarfull: str | None = None
    profileurl: str | None = None
    personastate: int = 0
    communityvisibilitystate: int = 0
    profilestate: int | None = None
    lastlogoff: int | None = None


class SteamOwnedGame(BaseModel):
    """One owned app from IPlayerService/GetOwnedGames."""

    appid: int
    name: str | None = None
    playtime_forever: int = 0
    img_icon_url: str | None = None
    img_logo_url: str | None = None
    rtime_last_played: int | None = None


class SteamOwnedGames(BaseModel):
    """Owned apps of a player."""

    game_count: int = 0
    games: list[SteamOwnedGame] = Field(default_factory=list)


class SteamGenre(BaseModel):
    description: str


class SteamReleaseDate(BaseModel):
    date: str | None = None


class SteamPriceOverview(BaseModel):
    final_formatted: str | None = None


class SteamMetacritic(BaseModel):
    score: int | None = None


class SteamAppData(BaseModel):
    """Subset of Store API app details used for the metadata cache."""

    name: str
    short_description: str | None = None
    header_image: str | None = None
    developers: list[str] = Field(default_factory=list)
    publishers: list[str] = Field(default_factory=list)
    genres: list[SteamGenre] = Field(default_factory=list)
    release_date: SteamReleaseDate | None = None
    price_overview: SteamPriceOverview | None = None
    metacritic: SteamMetacritic | None = None


class SteamAppDetails(BaseModel):
    """Store API appdetails entry."""

    success: bool
    data: SteamAppData | None = None


class SteamApiClient:
    """
    Client for the Steam Web API and Store API.

    Web API calls are counted against a shared sliding-window limiter; Store
    API lookups are not.
    """

    PLAYER_SUMMARIES_URL = "http://api.steampowered.com/ISteamUser/GetPlayerSummaries/v0002/"
    OWNED_GAMES_URL = "http://api.steampowered.com/IPlayerService/GetOwnedGames/v0001/"
    APP_DETAILS_URL = "https://store.steampowered.com/api/appdetails"

    def __init__(
        self,
        api_key: str,
        rate_limiter: RateLimitStore,
        http_client: httpx.AsyncClient,
        request_delay: float = 1.0,
        timeout: float = 10.0,
    ):
        """
        Initialize the client.

        Args:
            api_key: Steam Web API key
            rate_limiter: Shared call window for Web API requests
            http_client: Shared HTTP client
            request_delay: Pause between Store API calls in batch lookups
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key
        self.rate_limiter = rate_limiter
        self.http = http_client
        self.request_delay = request_delay
        self.timeout = timeout

    def _check_rate_limit(self) -> None:
        if not self.rate_limiter.try_acquire():
            status = self.rate_limiter.status()
            logger.warning("steam_api_rate_limited", reset_at=status.reset_at)
            raise RateLimitException(
                "Steam API rate limit exceeded",
                "STEAM_RATE_LIMITED",
                extra={"reset_at": status.reset_at},
            )

    async def _get_json(self, operation: str, url: str, params: dict[str, Any]) -> Any:
        """
        Perform a GET request and decode the JSON body.

        Raises:
            UpstreamServiceException: On network errors, non-2xx responses or invalid JSON
        """
        try:
            response = await self.http.get(
                url,
                params=params,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("steam_api_request_failed", operation=operation, error=str(e))
            raise UpstreamServiceException(operation, f"Failed to {operation.replace('_', ' ')}") from e

    async def get_player_summary(self, steam_id: str) -> SteamPlayerSummary | None:
        """
        Fetch a player's profile summary.

        Returns:
            Summary, or None when Steam knows no such player

        Raises:
            RateLimitException: If the shared call window is full
            UpstreamServiceException: If Steam cannot be reached
        """
        self._check_rate_limit()
        data = await self._get_json(
            "fetch_player_summary",
            self.PLAYER_SUMMARIES_URL,
            {"key": self.api_key, "steamids": steam_id},
        )

        players = ((data or {}).get("response") or {}).get("players") or []
        if not players:
            return None

        try:
            return SteamPlayerSummary.model_validate(players[0])
        except ValidationError as e:
            raise UpstreamServiceException("fetch_player_summary", "Unexpected Steam player data") from e

    async def get_owned_games(self, steam_id: str, include_app_info: bool = True) -> SteamOwnedGames | None:
        """
        Fetch the apps a player owns.

        Returns:
            Owned apps, or None when the library is not visible (private profile)

        Raises:
            RateLimitException: If the shared call window is full
            UpstreamServiceException: If Steam cannot be reached
        """
        self._check_rate_limit()
        data = await self._get_json(
            "fetch_owned_games",
            self.OWNED_GAMES_URL,
            {
                "key": self.api_key,
                "steamid": steam_id,
                "include_appinfo": 1 if include_app_info else 0,
                "include_played_free_games": 1,
            },
        )

        # Private libraries come back as an empty "response" object
        payload = (data or {}).get("response") or {}
        if "game_count" not in payload:
            return None

        try:
            return SteamOwnedGames.model_validate(payload)
        except ValidationError as e:
            raise UpstreamServiceException("fetch_owned_games", "Unexpected Steam library data") from e

    async def get_app_details(self, app_id: str | int) -> SteamAppDetails | None:
        """Fetch Store details for an app; any failure yields None."""
        try:
            data = await self._get_json(
                "fetch_app_details",
                self.APP_DETAILS_URL,
                {"appids": app_id, "filters": "basic"},
            )
            entry = (data or {}).get(str(app_id))
            if not entry:
                return None
            return SteamAppDetails.model_validate(entry)
        except (UpstreamServiceException, ValidationError, AttributeError) as e:
            logger.warning("steam_app_details_unavailable", app_id=str(app_id), error=str(e))
            return None

    async def get_batch_app_details(
        self,
        app_ids: list[str | int],
        on_progress: Callable[[int, int], None] | None = None,
    ) -> dict[str, SteamAppDetails]:
        """
        Fetch Store details for several apps one at a time.

        Args:
            app_ids: Apps to look up
            on_progress: Called with (done, total) after every app

        Returns:
            Details of the apps that resolved successfully, keyed by app id
        """
        results: dict[str, SteamAppDetails] = {}
        total = len(app_ids)

        for index, app_id in enumerate(app_ids):
            details = await self.get_app_details(app_id)
            if details and details.success:
                results[str(app_id)] = details

            if on_progress:
                on_progress(index + 1, total)

            if index < total - 1:
                await asyncio.sleep(self.request_delay)

        return results

    async def validate_api_key(self) -> bool:
        """Check that the configured key is accepted by the Web API."""
        if not self.api_key:
            return False

        try:
            data = await self._get_json(
                "validate_api_key",
                self.PLAYER_SUMMARIES_URL,
                {"key": self.api_key, "steamids": KEY_CHECK_STEAM_ID},
            )
        except UpstreamServiceException:
            return False

        players = ((data or {}).get("response") or {}).get("players") or []
        return len(players) > 0

    def get_rate_limit_status(self) -> RateLimitStatus:
        """Remaining Web API calls in the current window."""
        return self.rate_limiter.status()
