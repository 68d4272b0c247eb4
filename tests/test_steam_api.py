"""Tests for the Steam Web API client."""

import httpx
import pytest

from gametracker.core.exceptions import RateLimitException, UpstreamServiceException
from gametracker.core.stores import InMemoryRateLimitStore
from gametracker.services.steam_api import USER_AGENT, SteamApiClient

STEAM_ID = "76561198000000001"

PLAYER = {
    "steamid": STEAM_ID,
    "personaname": "Gordon",
    "avatarfull": "https://avatars.example/full.jpg",
    "communityvisibilitystate": 3,
}


def make_client(handler, limit: int = 200) -> SteamApiClient:
    return SteamApiClient(
        api_key="test-key",
        rate_limiter=InMemoryRateLimitStore(limit=limit, window=60.0),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        request_delay=0,
    )


@pytest.mark.asyncio
async def test_get_player_summary() -> None:
    """Test a player summary is parsed and the request carries key and user agent."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"response": {"players": [PLAYER]}})

    client = make_client(handler)
    summary = await client.get_player_summary(STEAM_ID)

    assert summary is not None
    assert summary.personaname == "Gordon"
    assert seen[0].url.params["key"] == "test-key"
    assert seen[0].url.params["steamids"] == STEAM_ID
    assert seen[0].headers["User-Agent"] == USER_AGENT


@pytest.mark.asyncio
async def test_get_player_summary_unknown_player() -> None:
    client = make_client(lambda request: httpx.Response(200, json={"response": {"players": []}}))
    assert await client.get_player_summary(STEAM_ID) is None


@pytest.mark.asyncio
async def test_get_owned_games() -> None:
    payload = {
        "response": {
            "game_count": 2,
            "games": [
                {"appid": 620, "name": "Portal 2", "playtime_forever": 900, "rtime_last_played": 1700000000},
                {"appid": 400, "name": "Portal", "playtime_forever": 0},
            ],
        }
    }
    client = make_client(lambda request: httpx.Response(200, json=payload))

    owned = await client.get_owned_games(STEAM_ID)

    assert owned is not None
    assert owned.game_count == 2
    assert [game.appid for game in owned.games] == [620, 400]
    assert owned.games[1].rtime_last_played is None


@pytest.mark.asyncio
async def test_get_owned_games_private_profile() -> None:
    """Test an empty response object means the library is not visible."""
    client = make_client(lambda request: httpx.Response(200, json={"response": {}}))
    assert await client.get_owned_games(STEAM_ID) is None


@pytest.mark.asyncio
async def test_upstream_failure_raises() -> None:
    client = make_client(lambda request: httpx.Response(500, text="oops"))

    with pytest.raises(UpstreamServiceException) as exc_info:
        await client.get_owned_games(STEAM_ID)

    assert exc_info.value.status_code == 502
    assert exc_info.value.code == "UPSTREAM_ERROR"


@pytest.mark.asyncio
async def test_rate_limit_refuses_before_calling_steam() -> None:
    """Test calls beyond the window are refused without a request."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"response": {"players": [PLAYER]}})

    client = make_client(handler, limit=1)
    await client.get_player_summary(STEAM_ID)

    with pytest.raises(RateLimitException) as exc_info:
        await client.get_player_summary(STEAM_ID)

    assert exc_info.value.code == "STEAM_RATE_LIMITED"
    assert "reset_at" in exc_info.value.extra
    assert len(seen) == 1
    assert client.get_rate_limit_status().remaining == 0


@pytest.mark.asyncio
async def test_get_app_details_never_raises() -> None:
    client = make_client(lambda request: httpx.Response(503))
    assert await client.get_app_details(620) is None


@pytest.mark.asyncio
async def test_get_app_details_not_rate_limited() -> None:
    payload = {"620": {"success": True, "data": {"name": "Portal 2", "genres": [{"description": "Puzzle"}]}}}
    client = make_client(lambda request: httpx.Response(200, json=payload), limit=0)

    details = await client.get_app_details(620)

    assert details is not None
    assert details.data.name == "Portal 2"
    assert details.data.genres[0].description == "Puzzle"


@pytest.mark.asyncio
async def test_batch_app_details_omits_failures_and_reports_progress() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        app_id = request.url.params["appids"]
        if app_id == "2":
            return httpx.Response(200, json={"2": {"success": False}})
        return httpx.Response(200, json={app_id: {"success": True, "data": {"name": f"App {app_id}"}}})

    progress: list[tuple[int, int]] = []
    client = make_client(handler)

    results = await client.get_batch_app_details(
        [1, 2, 3], on_progress=lambda done, total: progress.append((done, total))
    )

    assert set(results) == {"1", "3"}
    assert progress == [(1, 3), (2, 3), (3, 3)]


@pytest.mark.asyncio
async def test_validate_api_key() -> None:
    client = make_client(lambda request: httpx.Response(200, json={"response": {"players": [PLAYER]}}))
    assert await client.validate_api_key() is True

    failing = make_client(lambda request: httpx.Response(403))
    assert await failing.validate_api_key() is False
