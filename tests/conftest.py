import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

_tmp_dir = Path(tempfile.mkdtemp(prefix="gametracker-tests-"))

# Tests never touch the configured database; default to a throwaway SQLite file
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{_tmp_dir / 'test.db'}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("JWT_SECRET_KEY", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "test-refresh-secret")
os.environ["STATE_BACKEND"] = "memory"
os.environ["UPLOAD_DIR"] = str(_tmp_dir / "uploads")
os.environ["ENVIRONMENT"] = "test"

import httpx  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import insert  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from gametracker.config import settings  # noqa: E402
from gametracker.container import build_services  # noqa: E402
from gametracker.core.security import get_password_hash  # noqa: E402
from gametracker.core.stores import InMemoryCsrfTokenStore, InMemoryRateLimitStore  # noqa: E402
from gametracker.database import get_db, to_async_url  # noqa: E402
from gametracker.main import app  # noqa: E402
from gametracker.models import accounts, metadata  # noqa: E402

# Create test engine
# Use NullPool to avoid event loop issues
test_engine = create_async_engine(
    to_async_url(TEST_DATABASE_URL),
    echo=False,
    poolclass=NullPool,
)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

TEST_PASSWORD = "password123"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on fresh tables."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest.fixture
def steam_handler():
    """
    Programmable Steam responses.

    Tests register ``(method, url_prefix) -> callable(request) -> httpx.Response``
    entries; unmatched requests get a 404.
    """
    routes: dict[tuple[str, str], object] = {}
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        url = str(request.url)
        for (method, prefix), respond in routes.items():
            if request.method == method and url.startswith(prefix):
                return respond(request)
        return httpx.Response(404, json={})

    handler.routes = routes
    handler.calls = calls
    return handler


@pytest_asyncio.fixture
async def services(steam_handler):
    """Service container wired to a mocked Steam and in-memory stores."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(steam_handler))
    container = build_services(
        settings,
        http_client=http_client,
        rate_limiter=InMemoryRateLimitStore(limit=200, window=60.0),
        csrf_store=InMemoryCsrfTokenStore(),
    )
    container.steam_api.request_delay = 0
    container.synchronizer.batch_delay = 0

    original = app.state.services
    app.state.services = container
    yield container
    app.state.services = original
    await container.aclose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, services) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def create_account(db_session: AsyncSession):
    """Factory inserting accounts directly and returning their rows."""

    async def create(
        email: str = "player@example.com",
        username: str = "player",
        is_public: bool = True,
        **values,
    ) -> dict:
        result = await db_session.execute(
            insert(accounts)
            .values(
                email=email,
                username=username,
                password_hash=get_password_hash(TEST_PASSWORD),
                is_public=is_public,
                **values,
            )
            .returning(accounts)
        )
        account = dict(result.mappings().one())
        await db_session.commit()
        return account

    return create


@pytest.fixture
def headers_for(services):
    """Factory building bearer headers for an account."""

    def build(account: dict) -> dict:
        token = services.token_service.create_access_token(account["id"], account["email"])
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest_asyncio.fixture
async def test_account(create_account) -> dict:
    """Create a public test account in the database."""
    return await create_account()


@pytest.fixture
def auth_headers(headers_for, test_account) -> dict:
    """Create authentication headers for testing protected endpoints."""
    return headers_for(test_account)


@pytest.fixture
def sample_game_data() -> dict:
    """Sample library entry for testing."""
    return {
        "title": "Hollow Knight",
        "rating": 4.5,
        "hours_played": 42.5,
        "status": "completed",
        "notes": "Beat the Radiance",
    }
