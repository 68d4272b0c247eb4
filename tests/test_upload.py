"""Tests for cover image uploads."""

import io
from pathlib import Path

import pytest
from httpx import AsyncClient
from PIL import Image

from gametracker.config import settings


def image_bytes(image_format: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buffer, image_format)
    return buffer.getvalue()


PNG_BYTES = image_bytes("PNG")


def games_dir() -> Path:
    path = Path(settings.upload_dir) / "games"
    path.mkdir(parents=True, exist_ok=True)
    return path


def stored_path(image_url: str) -> Path:
    return games_dir() / image_url.rsplit("/", 1)[-1]


async def upload(client: AsyncClient, headers: dict, name: str = "cover.png", content: bytes = PNG_BYTES) -> str:
    response = await client.post(
        "/api/upload/game-image",
        files={"image": (name, content, "image/png")},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["image_url"]


@pytest.mark.asyncio
async def test_upload_image(client: AsyncClient, auth_headers: dict, test_account: dict) -> None:
    """Test an image is stored and served under /uploads."""
    response = await client.post(
        "/api/upload/game-image",
        files={"image": ("cover.png", PNG_BYTES, "image/png")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["image_url"].startswith(f"/uploads/games/game-{test_account['id'].hex}-")
    assert data["image_url"].endswith(".png")
    assert data["original_name"] == "cover.png"
    assert data["size"] == len(PNG_BYTES)
    assert stored_path(data["image_url"]).read_bytes() == PNG_BYTES

    served = await client.get(data["image_url"])
    assert served.status_code == 200
    assert served.content == PNG_BYTES


@pytest.mark.asyncio
async def test_upload_jpeg(client: AsyncClient, auth_headers: dict) -> None:
    response = await client.post(
        "/api/upload/game-image",
        files={"image": ("cover.jpeg", image_bytes("JPEG"), "image/jpeg")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["image_url"].endswith(".jpg")


@pytest.mark.asyncio
async def test_upload_extension_follows_content_type(client: AsyncClient, auth_headers: dict) -> None:
    """Test the client filename never decides the stored extension."""
    image_url = await upload(client, auth_headers, name="x.html")

    assert image_url.endswith(".png")
    served = await client.get(image_url)
    assert served.headers["content-type"] == "image/png"


@pytest.mark.asyncio
async def test_upload_rejects_markup_declared_as_image(client: AsyncClient, auth_headers: dict) -> None:
    before = set(games_dir().glob("*"))
    response = await client.post(
        "/api/upload/game-image",
        files={"image": ("x.html", b"<script>alert(document.cookie)</script>", "image/png")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_FILE_TYPE"
    assert set(games_dir().glob("*")) == before


@pytest.mark.asyncio
async def test_upload_rejects_mismatched_format(client: AsyncClient, auth_headers: dict) -> None:
    response = await client.post(
        "/api/upload/game-image",
        files={"image": ("cover.webp", PNG_BYTES, "image/webp")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_FILE_TYPE"


@pytest.mark.asyncio
async def test_upload_rejects_file_type(client: AsyncClient, auth_headers: dict) -> None:
    response = await client.post(
        "/api/upload/game-image",
        files={"image": ("cover.gif", b"GIF89a", "image/gif")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_FILE_TYPE"


@pytest.mark.asyncio
async def test_upload_rejects_large_file(
    client: AsyncClient, auth_headers: dict, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "upload_max_bytes", 16)

    response = await client.post(
        "/api/upload/game-image",
        files={"image": ("cover.png", PNG_BYTES, "image/png")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "FILE_TOO_LARGE"


@pytest.mark.asyncio
async def test_upload_requires_auth(client: AsyncClient) -> None:
    response = await client.post(
        "/api/upload/game-image",
        files={"image": ("cover.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_upload_requires_file(client: AsyncClient, auth_headers: dict) -> None:
    response = await client.post("/api/upload/game-image", headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_deleting_game_removes_uploaded_image(client: AsyncClient, auth_headers: dict) -> None:
    """Test soft deleting an entry removes its locally stored cover."""
    image_url = await upload(client, auth_headers)

    created = await client.post(
        "/api/games",
        json={"title": "Hades", "image_url": image_url},
        headers=auth_headers,
    )
    game_id = created.json()["game"]["id"]
    assert stored_path(image_url).exists()

    response = await client.delete(f"/api/games/{game_id}", headers=auth_headers)

    assert response.status_code == 200
    assert not stored_path(image_url).exists()


@pytest.mark.asyncio
async def test_replacing_cover_removes_previous_image(client: AsyncClient, auth_headers: dict) -> None:
    first = await upload(client, auth_headers)
    second = await upload(client, auth_headers)
    created = await client.post("/api/games", json={"title": "Hades", "image_url": first}, headers=auth_headers)
    game_id = created.json()["game"]["id"]

    response = await client.patch(f"/api/games/{game_id}", json={"image_url": second}, headers=auth_headers)

    assert response.status_code == 200
    assert not stored_path(first).exists()
    assert stored_path(second).exists()


@pytest.mark.asyncio
async def test_shared_cover_survives_deleting_one_entry(client: AsyncClient, auth_headers: dict) -> None:
    image_url = await upload(client, auth_headers)
    first = await client.post("/api/games", json={"title": "Hades", "image_url": image_url}, headers=auth_headers)
    await client.post("/api/games", json={"title": "Hades II", "image_url": image_url}, headers=auth_headers)

    await client.delete(f"/api/games/{first.json()['game']['id']}", headers=auth_headers)

    assert stored_path(image_url).exists()


@pytest.mark.asyncio
async def test_deleting_game_keeps_other_accounts_image(
    client: AsyncClient, auth_headers: dict, create_account, headers_for
) -> None:
    """Test an entry pointing at someone else's upload cannot delete that file."""
    image_url = await upload(client, auth_headers)
    other = await create_account(email="other@example.com", username="other")
    other_headers = headers_for(other)

    for url in (image_url, f"https://cdn.example.com{image_url}"):
        created = await client.post("/api/games", json={"title": "Borrowed", "image_url": url}, headers=other_headers)
        game_id = created.json()["game"]["id"]

        response = await client.delete(f"/api/games/{game_id}", headers=other_headers)

        assert response.status_code == 200
        assert stored_path(image_url).exists()
