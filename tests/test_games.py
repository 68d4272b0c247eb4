"""Tests for library management endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient


async def add_game(client: AsyncClient, headers: dict, **data) -> dict:
    payload = {"title": "Celeste", **data}
    response = await client.post("/api/games", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["game"]


@pytest.mark.asyncio
async def test_create_game(client: AsyncClient, auth_headers: dict, sample_game_data: dict) -> None:
    """Test adding a game manually."""
    response = await client.post("/api/games", json=sample_game_data, headers=auth_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Game added successfully"
    game = data["game"]
    assert game["title"] == "Hollow Knight"
    assert game["rating"] == 4.5
    assert game["status"] == "completed"
    assert game["source"] == "manual"
    assert "id" in game


@pytest.mark.asyncio
async def test_create_game_defaults(client: AsyncClient, auth_headers: dict) -> None:
    game = await add_game(client, auth_headers)

    assert game["status"] == "backlog"
    assert game["hours_played"] == 0
    assert game["rating"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"title": ""},
        {"title": "x" * 201},
        {"title": "Celeste", "rating": 3.3},
        {"title": "Celeste", "rating": 5.5},
        {"title": "Celeste", "hours_played": -1},
        {"title": "Celeste", "status": "wishlist"},
        {"title": "Celeste", "image_url": "ftp://example.com/cover.png"},
        {"title": "Celeste", "notes": "x" * 1001},
    ],
)
async def test_create_game_validation(client: AsyncClient, auth_headers: dict, payload: dict) -> None:
    response = await client.post("/api/games", json=payload, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_games_require_auth(client: AsyncClient) -> None:
    response = await client.get("/api/games")
    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_REQUIRED"


@pytest.mark.asyncio
async def test_list_games_with_filters(client: AsyncClient, auth_headers: dict) -> None:
    """Test status filter, title search and pagination."""
    await add_game(client, auth_headers, title="Hades", status="playing")
    await add_game(client, auth_headers, title="Hades II", status="backlog")
    await add_game(client, auth_headers, title="Celeste", status="playing")

    response = await client.get("/api/games", params={"status": "playing"}, headers=auth_headers)
    assert {game["title"] for game in response.json()["games"]} == {"Hades", "Celeste"}

    response = await client.get("/api/games", params={"search": "hades"}, headers=auth_headers)
    assert response.json()["pagination"]["total_count"] == 2

    response = await client.get("/api/games", params={"page": 2, "limit": 2}, headers=auth_headers)
    data = response.json()
    assert len(data["games"]) == 1
    assert data["pagination"] == {
        "page": 2,
        "limit": 2,
        "total_count": 3,
        "total_pages": 2,
        "has_next": False,
        "has_prev": True,
    }


@pytest.mark.asyncio
async def test_list_games_search_escapes_wildcards(client: AsyncClient, auth_headers: dict) -> None:
    await add_game(client, auth_headers, title="100% Orange Juice")
    await add_game(client, auth_headers, title="Portal")

    response = await client.get("/api/games", params={"search": "%"}, headers=auth_headers)

    assert [game["title"] for game in response.json()["games"]] == ["100% Orange Juice"]


@pytest.mark.asyncio
async def test_list_games_sorting(client: AsyncClient, auth_headers: dict) -> None:
    """Test rating sort puts unrated games last when descending."""
    await add_game(client, auth_headers, title="Unrated")
    await add_game(client, auth_headers, title="Great", rating=5)
    await add_game(client, auth_headers, title="Fine", rating=3)

    response = await client.get(
        "/api/games",
        params={"sort_by": "rating", "sort_order": "desc"},
        headers=auth_headers,
    )
    assert [game["title"] for game in response.json()["games"]] == ["Great", "Fine", "Unrated"]

    response = await client.get("/api/games", params={"sort_by": "title", "sort_order": "asc"}, headers=auth_headers)
    assert [game["title"] for game in response.json()["games"]] == ["Fine", "Great", "Unrated"]


@pytest.mark.asyncio
async def test_list_games_clamps_bad_parameters(client: AsyncClient, auth_headers: dict) -> None:
    await add_game(client, auth_headers)

    response = await client.get(
        "/api/games",
        params={"page": "zero", "limit": "5000", "sort_by": "nonsense", "sort_order": "sideways"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    pagination = response.json()["pagination"]
    assert pagination["page"] == 1
    assert pagination["limit"] == 100


@pytest.mark.asyncio
async def test_get_game(client: AsyncClient, auth_headers: dict) -> None:
    game = await add_game(client, auth_headers)

    response = await client.get(f"/api/games/{game['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["game"]["id"] == game["id"]


@pytest.mark.asyncio
async def test_get_game_of_other_account(
    client: AsyncClient,
    auth_headers: dict,
    create_account,
    headers_for,
) -> None:
    """Test entries are only visible to their owner."""
    game = await add_game(client, auth_headers)
    other = await create_account(email="other@example.com", username="other")

    response = await client.get(f"/api/games/{game['id']}", headers=headers_for(other))

    assert response.status_code == 404
    assert response.json()["code"] == "GAME_NOT_FOUND"


@pytest.mark.asyncio
async def test_get_game_not_found(client: AsyncClient, auth_headers: dict) -> None:
    response = await client.get(f"/api/games/{uuid4()}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_game(client: AsyncClient, auth_headers: dict) -> None:
    """Test a partial update and last played stamping."""
    game = await add_game(client, auth_headers)
    assert game["last_played_at"] is None

    response = await client.patch(
        f"/api/games/{game['id']}",
        json={"status": "playing", "hours_played": 3.5},
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.json()["game"]
    assert updated["status"] == "playing"
    assert updated["hours_played"] == 3.5
    assert updated["title"] == "Celeste"
    assert updated["last_played_at"] is not None


@pytest.mark.asyncio
async def test_update_game_rejects_null_title(client: AsyncClient, auth_headers: dict) -> None:
    game = await add_game(client, auth_headers)

    response = await client.patch(f"/api/games/{game['id']}", json={"title": None}, headers=auth_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_game_clears_rating(client: AsyncClient, auth_headers: dict) -> None:
    game = await add_game(client, auth_headers, rating=4)

    response = await client.patch(f"/api/games/{game['id']}", json={"rating": None}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["game"]["rating"] is None


@pytest.mark.asyncio
async def test_delete_game_is_soft(client: AsyncClient, auth_headers: dict) -> None:
    game = await add_game(client, auth_headers)

    response = await client.delete(f"/api/games/{game['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Game deleted successfully"

    assert (await client.get(f"/api/games/{game['id']}", headers=auth_headers)).status_code == 404
    listing = await client.get("/api/games", headers=auth_headers)
    assert listing.json()["pagination"]["total_count"] == 0

    again = await client.delete(f"/api/games/{game['id']}", headers=auth_headers)
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_stats_overview(client: AsyncClient, auth_headers: dict) -> None:
    """Test totals, average and per-status counts."""
    await add_game(client, auth_headers, title="A", rating=4, hours_played=10, status="completed")
    await add_game(client, auth_headers, title="B", rating=3, hours_played=2.5, status="playing")
    await add_game(client, auth_headers, title="C", hours_played=0, status="playing")

    response = await client.get("/api/games/stats/overview", headers=auth_headers)

    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["total_games"] == 3
    assert stats["total_hours"] == 12.5
    assert stats["average_rating"] == 3.5
    assert stats["by_status"] == {"completed": 1, "playing": 2}
