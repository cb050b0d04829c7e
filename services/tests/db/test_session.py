"""Tests for database session scoping."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tufhub.db import session as db_session
from tufhub.db.models import Namespace


def _factory(session: AsyncMock) -> MagicMock:
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    return factory


@pytest.fixture
def session() -> AsyncMock:
    session = AsyncMock()
    session.new = set()
    session.dirty = set()
    session.deleted = set()
    return session


class TestSessionScope:
    async def test_requires_init(self) -> None:
        with patch.object(db_session, "_async_session_factory", None):
            with pytest.raises(RuntimeError):
                async with db_session.get_db_session():
                    pass

    async def test_never_commits_on_exit(self, session: AsyncMock) -> None:
        with patch.object(db_session, "_async_session_factory", _factory(session)):
            async with db_session.get_db_session() as db:
                assert db is session

        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()

    async def test_commits_made_by_caller_are_kept(self, session: AsyncMock) -> None:
        with patch.object(db_session, "_async_session_factory", _factory(session)):
            async with db_session.get_db_session() as db:
                await db.commit()

        session.commit.assert_awaited_once()

    async def test_uncommitted_changes_are_discarded(self, session: AsyncMock) -> None:
        session.new = {Namespace(id="ns-1")}
        with patch.object(db_session, "_async_session_factory", _factory(session)):
            async with db_session.get_db_session():
                pass

        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()

    async def test_error_rolls_back_and_propagates(self, session: AsyncMock) -> None:
        with patch.object(db_session, "_async_session_factory", _factory(session)):
            with pytest.raises(ValueError):
                async with db_session.get_db_session():
                    raise ValueError("boom")

        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()

    async def test_get_db_uses_same_scope(self, session: AsyncMock) -> None:
        with patch.object(db_session, "_async_session_factory", _factory(session)):
            dependency = db_session.get_db()
            assert await anext(dependency) is session
            with pytest.raises(StopAsyncIteration):
                await anext(dependency)

        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()


class TestHealth:
    async def test_unhealthy_without_engine(self) -> None:
        with patch.object(db_session, "_engine", None):
            assert await db_session.get_db_health() is False

    async def test_unhealthy_when_ping_fails(self) -> None:
        with (
            patch.object(db_session, "_engine", MagicMock()),
            patch.object(db_session, "_ping", AsyncMock(side_effect=OSError("refused"))),
        ):
            assert await db_session.get_db_health() is False
