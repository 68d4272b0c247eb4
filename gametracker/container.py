"""Construction of long-lived service objects."""

from dataclasses import dataclass

import httpx
import structlog

from gametracker.config import Settings
from gametracker.core.redis_client import (
    RedisCsrfTokenStore,
    RedisRateLimitStore,
    get_redis_client,
)
from gametracker.core.security import TokenService
from gametracker.core.stores import (
    CsrfTokenStore,
    InMemoryCsrfTokenStore,
    InMemoryRateLimitStore,
    RateLimitStore,
)
from gametracker.services.auth_service import AuthService
from gametracker.services.steam_api import USER_AGENT, SteamApiClient
from gametracker.services.steam_auth import SteamIdentityVerifier
from gametracker.services.steam_sync import LibrarySynchronizer

logger = structlog.get_logger(__name__)

RATE_LIMIT_WINDOW_SECONDS = 60.0


@dataclass
class Services:
    """Service instances shared by every request."""

    http_client: httpx.AsyncClient
    token_service: TokenService
    auth_service: AuthService
    steam_api: SteamApiClient
    steam_auth: SteamIdentityVerifier
    synchronizer: LibrarySynchronizer

    async def aclose(self) -> None:
        """Release network resources."""
        await self.http_client.aclose()


def build_stores(settings: Settings) -> tuple[RateLimitStore, CsrfTokenStore]:
    """Pick in-process or Redis-backed shared state."""
    if settings.state_backend == "redis":
        client = get_redis_client()
        logger.info("shared_state_backend", backend="redis")
        return (
            RedisRateLimitStore(client, limit=settings.steam_api_rate_limit, window=RATE_LIMIT_WINDOW_SECONDS),
            RedisCsrfTokenStore(client),
        )

    logger.info("shared_state_backend", backend="memory")
    return (
        InMemoryRateLimitStore(limit=settings.steam_api_rate_limit, window=RATE_LIMIT_WINDOW_SECONDS),
        InMemoryCsrfTokenStore(),
    )


def build_services(
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
    rate_limiter: RateLimitStore | None = None,
    csrf_store: CsrfTokenStore | None = None,
) -> Services:
    """
    Build every shared service once.

    Args:
        settings: Application settings
        http_client: Optional HTTP client override
        rate_limiter: Optional Steam call window override
        csrf_store: Optional link token store override

    Returns:
        Wired service container
    """
    if rate_limiter is None or csrf_store is None:
        default_limiter, default_csrf = build_stores(settings)
        rate_limiter = rate_limiter or default_limiter
        csrf_store = csrf_store or default_csrf

    http_client = http_client or httpx.AsyncClient(
        timeout=settings.steam_http_timeout,
        headers={"User-Agent": USER_AGENT},
    )

    token_service = TokenService.from_settings(settings)
    steam_api = SteamApiClient(
        api_key=settings.steam_api_key,
        rate_limiter=rate_limiter,
        http_client=http_client,
        timeout=settings.steam_http_timeout,
    )
    steam_auth = SteamIdentityVerifier(
        csrf_store=csrf_store,
        http_client=http_client,
        return_url=settings.steam_return_url,
        realm=settings.steam_auth_realm,
        timeout=settings.steam_http_timeout,
    )

    return Services(
        http_client=http_client,
        token_service=token_service,
        auth_service=AuthService(token_service),
        steam_api=steam_api,
        steam_auth=steam_auth,
        synchronizer=LibrarySynchronizer(steam_api),
    )
