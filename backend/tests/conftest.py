"""
PostDesk — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the whole suite.
How:   The environment is pointed at a throwaway SQLite file before any
       postdesk import, so the engine built at import time uses it.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock AsyncSession (service unit tests, no DB)
    ├── sample_post_data: Column values for a stored post
    ├── database: Empty posts table (dropped and recreated per test)
    ├── make_post: Async factory inserting posts directly
    ├── app: A fresh application (own rate limiter state)
    ├── test_client: HTTPX AsyncClient asking for HTML, like a browser
    └── page_client: HTTPX AsyncClient asking for JSON pages (X-PostDesk)
"""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any postdesk imports
_db_dir = tempfile.mkdtemp(prefix="postdesk_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_dir}/test.db"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import select  # noqa: E402

from postdesk.database import async_session_factory, create_all, drop_all  # noqa: E402
from postdesk.main import create_app  # noqa: E402
from postdesk.models.post import Post  # noqa: E402

PAGE_HEADERS = {"X-PostDesk": "true"}


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures (no database)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_commit(mock_db_session):
            await service.create_post(mock_db_session, form)
            mock_db_session.commit.assert_awaited_once()
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_post_data():
    """Column values matching the Post model."""
    now = datetime.now(timezone.utc)
    return {
        "id": 1,
        "title": "First post",
        "content": "Hello from the first post.",
        "created_at": now,
        "updated_at": now,
    }


# ══════════════════════════════════════════════════════════════════════════
# Integration Fixtures (SQLite file + ASGI app)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """An empty posts table for each test."""
    await drop_all()
    await create_all()
    yield
    await drop_all()


@pytest_asyncio.fixture
async def make_post(database):
    """
    Insert a post bypassing the HTTP layer.

    Usage:
        post = await make_post(title="Hello", content="World")
    """

    async def _make(title: str = "First post", content: str = "Hello from the first post.") -> Post:
        async with async_session_factory() as session:
            post = Post(title=title, content=content)
            session.add(post)
            await session.commit()
            await session.refresh(post)
            return post

    return _make


@pytest.fixture
def app():
    return create_app()


@pytest_asyncio.fixture
async def test_client(app, database):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    Redirects are not followed so tests can assert on the 303 itself.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def page_client(app, database):
    """Same as test_client, but every request asks for the JSON page."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", headers=PAGE_HEADERS
    ) as client:
        yield client


@pytest.fixture
def stored_posts(database):
    """Async callable returning the rows in the posts table, in id order."""
    return _stored_posts


async def _stored_posts():
    async with async_session_factory() as session:
        result = await session.execute(select(Post).order_by(Post.id))
        return list(result.scalars().all())
