"""Tests for the public user directory."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import insert

from gametracker.models import games


@pytest.fixture
async def players(create_account, db_session) -> dict:
    """Public and private accounts with a few library entries."""
    gamer = await create_account(email="gamer@example.com", username="gamer_one")
    other = await create_account(email="other@example.com", username="gamer_two")
    private = await create_account(email="private@example.com", username="gamer_private", is_public=False)

    now = datetime.now(UTC)
    entries = [
        {"title": "Hades", "rating": 5, "hours_played": 40, "status": "completed", "last_played_at": now},
        {"title": "Celeste", "rating": 3.5, "hours_played": 8.25, "status": "playing"},
        {
            "title": "Doom",
            "hours_played": 0,
            "status": "backlog",
            "last_played_at": now - timedelta(days=3),
        },
        {"title": "Removed", "rating": 1, "hours_played": 99, "status": "dropped", "is_deleted": True},
    ]
    for entry in entries:
        await db_session.execute(insert(games).values(account_id=gamer["id"], **entry))
    await db_session.commit()

    return {"gamer": gamer, "other": other, "private": private}


@pytest.mark.asyncio
async def test_search_users(client: AsyncClient, players: dict) -> None:
    """Test search is case-insensitive and skips private accounts."""
    response = await client.get("/api/users/search", params={"q": "GAMER"})

    assert response.status_code == 200
    data = response.json()
    assert [user["username"] for user in data["users"]] == ["gamer_one", "gamer_two"]
    assert data["pagination"]["total_count"] == 2

    counts = {user["username"]: user["game_count"] for user in data["users"]}
    assert counts == {"gamer_one": 3, "gamer_two": 0}
    assert all(user["joined_at"] for user in data["users"])


@pytest.mark.asyncio
async def test_search_users_caps_page_size(client: AsyncClient, players: dict) -> None:
    response = await client.get("/api/users/search", params={"q": "gamer", "limit": 500})

    assert response.status_code == 200
    assert response.json()["pagination"]["limit"] == 50


@pytest.mark.asyncio
async def test_search_users_requires_query(client: AsyncClient) -> None:
    response = await client.get("/api/users/search")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_profile(client: AsyncClient, players: dict) -> None:
    """Test public profile statistics and library page."""
    response = await client.get(f"/api/users/{players['gamer']['id']}/profile")

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["username"] == "gamer_one"

    stats = data["user"]["stats"]
    assert stats["total_games"] == 3
    assert stats["total_hours"] == 48.2
    assert stats["average_rating"] == 4.2
    assert stats["status_counts"] == {"playing": 1, "completed": 1, "dropped": 0, "backlog": 1}

    titles = [game["title"] for game in data["games"]]
    assert titles[:2] == ["Hades", "Doom"]
    assert "Removed" not in titles
    assert data["pagination"]["total_count"] == 3


@pytest.mark.asyncio
async def test_get_profile_empty_library(client: AsyncClient, players: dict) -> None:
    response = await client.get(f"/api/users/{players['other']['id']}/profile")

    assert response.status_code == 200
    stats = response.json()["user"]["stats"]
    assert stats["total_games"] == 0
    assert stats["total_hours"] == 0
    assert stats["average_rating"] is None
    assert set(stats["status_counts"].values()) == {0}


@pytest.mark.asyncio
async def test_get_profile_private_or_unknown(client: AsyncClient, players: dict) -> None:
    for account_id in (players["private"]["id"], uuid4()):
        response = await client.get(f"/api/users/{account_id}/profile")
        assert response.status_code == 404
        assert response.json()["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_get_game_stats(client: AsyncClient, players: dict) -> None:
    """Test top lists and recent activity."""
    response = await client.get(f"/api/users/{players['gamer']['id']}/games/stats")

    assert response.status_code == 200
    data = response.json()
    assert [game["title"] for game in data["top_games_by_hours"]] == ["Hades", "Celeste"]
    assert data["top_games_by_hours"][1]["hours_played"] == 8.2
    assert [game["title"] for game in data["top_rated_games"]] == ["Hades", "Celeste"]
    assert [game["title"] for game in data["recent_activity"]] == ["Hades", "Doom"]


@pytest.mark.asyncio
async def test_get_game_stats_private(client: AsyncClient, players: dict) -> None:
    response = await client.get(f"/api/users/{players['private']['id']}/games/stats")
    assert response.status_code == 404
