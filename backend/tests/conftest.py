"""
VideoTube Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── temp_dir: Temporary directory for staged files
    ├── staged_file: A real file on disk, ready for a handoff
    ├── fake_store: In-memory RemoteStore recording its calls
    ├── make_user / make_video: Model instances with ids and timestamps set
    └── test_client: HTTPX AsyncClient for API endpoint testing
"""

import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before app.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["CLOUDINARY_CLOUD_NAME"] = "test-cloud"
os.environ["CLOUDINARY_API_KEY"] = "test-key"
os.environ["CLOUDINARY_API_SECRET"] = "test-secret"
os.environ["ACCESS_TOKEN_SECRET"] = "test-access-secret"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret"
os.environ["UPLOAD_TEMP_DIR"] = tempfile.mkdtemp(prefix="videotube_test_")
os.environ["LOG_LEVEL"] = "WARNING"

from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.services.store_base import RemoteStore  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Doubles
# ══════════════════════════════════════════════════════════════════════════

class FakeStore(RemoteStore):
    """RemoteStore double: returns `response` or raises `error`, recording calls."""

    def __init__(self, response: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.response = response if response is not None else {"url": "https://cdn.example/file"}
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.file_existed_during_upload: List[bool] = []

    async def upload(self, local_path: str, resource_type: str = "auto", **options: Any) -> Dict[str, Any]:
        self.calls.append({"local_path": local_path, "resource_type": resource_type, **options})
        self.file_existed_during_upload.append(os.path.exists(local_path))
        if self.error is not None:
            raise self.error
        return self.response

    async def health_check(self) -> bool:
        return self.error is None


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_user(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = user
            result = await user_service.get_user(mock_db_session, user_id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_dir(tmp_path):
    staging = tmp_path / "temp"
    staging.mkdir()
    return staging


@pytest.fixture
def staged_file(temp_dir):
    path = temp_dir / "avatar123.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake-image")
    return str(path)


@pytest.fixture
def fake_store():
    return FakeStore()


def populate_row_defaults(obj) -> None:
    """Fill what the database would assign on INSERT."""
    now = datetime.now(timezone.utc)
    if getattr(obj, "id", None) is None:
        obj.id = uuid4()
    if getattr(obj, "created_at", None) is None:
        obj.created_at = now
    if getattr(obj, "updated_at", None) is None:
        obj.updated_at = now
    if hasattr(obj, "views") and obj.views is None:
        obj.views = 0
    if hasattr(obj, "is_published") and obj.is_published is None:
        obj.is_published = True


@pytest.fixture
def flush_assigns_defaults(mock_db_session):
    """Make session.flush() behave like an INSERT for every object passed to add()."""

    async def _flush():
        for call in mock_db_session.add.call_args_list:
            populate_row_defaults(call.args[0])

    mock_db_session.flush = AsyncMock(side_effect=_flush)
    return mock_db_session


@pytest.fixture
def make_user():
    from app.models.user import User

    def _make(**overrides) -> User:
        fields = {
            "fullname": "Jane Creator",
            "email": "jane@example.com",
            "username": "janecreator",
            "password": "secret123",
        }
        fields.update(overrides)
        user = User(**fields)
        user.avatar = "https://cdn.example/avatar.png"
        populate_row_defaults(user)
        return user

    return _make


@pytest.fixture
def make_video():
    from app.models.video import Video

    def _make(**overrides) -> Video:
        fields = {
            "video_file": "https://cdn.example/video.mp4",
            "thumbnail": "https://cdn.example/thumb.png",
            "title": "First upload",
            "description": "Hello world",
            "duration": 12.5,
            "views": 0,
            "is_published": True,
        }
        fields.update(overrides)
        video = Video(**fields)
        populate_row_defaults(video)
        return video

    return _make


@pytest_asyncio.fixture
async def test_client():
    """
    Provides an async HTTP test client for endpoint testing.

    ASGITransport does not run the lifespan, so no database connection is made.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
