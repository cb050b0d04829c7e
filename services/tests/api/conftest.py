"""
Shared fixtures for API tests.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tufhub.api.app import create_app
from tufhub.db.session import get_db
from tufhub.keystore import get_keystore
from tufhub.storage import get_storage


@pytest_asyncio.fixture
async def client(mock_db, fs_store, fs_keystore) -> AsyncGenerator[AsyncClient]:
    """HTTP client against an app wired to a mock session and temporary stores."""
    app = create_app()

    async def override_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_storage] = lambda: fs_store
    app.dependency_overrides[get_keystore] = lambda: fs_keystore

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
