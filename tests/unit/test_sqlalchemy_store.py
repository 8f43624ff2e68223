"""Tests for SQLAlchemyCodeStore against in-memory SQLite."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from lawhelp_verification.exceptions import StorageError
from lawhelp_verification.store.sqlalchemy import (
    Base,
    SQLAlchemyCodeStore,
    VerificationCodeModel,
)


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def store(session_factory, clock):
    return SQLAlchemyCodeStore(session_factory, clock=clock)


async def _row_count(session_factory, subject: str) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(func.count())
            .select_from(VerificationCodeModel)
            .where(VerificationCodeModel.user_id == subject)
        )
        return int(result.scalar_one())


class TestSQLAlchemyCodeStore:
    @pytest.mark.asyncio
    async def test_store_and_validate(self, store):
        await store.store("u1", "482913")

        assert await store.is_valid("u1", "482913") is True
        assert await store.is_valid("u1", "000000") is False
        assert await store.is_valid("u2", "482913") is False

    @pytest.mark.asyncio
    async def test_expiry_boundaries(self, store, clock):
        await store.store("u1", "482913")

        clock.advance(minutes=9, seconds=59)
        assert await store.is_valid("u1", "482913") is True

        clock.advance(seconds=1)
        assert await store.is_valid("u1", "482913") is False

    @pytest.mark.asyncio
    async def test_store_purges_expired_rows_of_subject(
        self, store, session_factory, clock
    ):
        await store.store("u1", "111111")
        await store.store("u2", "333333")
        clock.advance(minutes=11)

        await store.store("u1", "222222")

        assert await _row_count(session_factory, "u1") == 1
        # Other subjects are left for purge_expired
        assert await _row_count(session_factory, "u2") == 1

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, store, session_factory):
        await store.store("u1", "111111")
        await store.store("u1", "222222")

        await store.delete("u1")
        await store.delete("u1")

        assert await _row_count(session_factory, "u1") == 0

    @pytest.mark.asyncio
    async def test_purge_expired(self, store, clock):
        await store.store("u1", "111111")
        await store.store("u2", "222222", ttl=3600)
        clock.advance(minutes=11)

        removed = await store.purge_expired()

        assert removed == 1
        assert await store.is_valid("u2", "222222") is True

    @pytest.mark.asyncio
    async def test_backend_failure_raises_storage_error(self, clock):
        session = MagicMock()
        session.__aenter__.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        store = SQLAlchemyCodeStore(lambda: session, clock=clock)

        with pytest.raises(StorageError):
            await store.is_valid("u1", "482913")
        with pytest.raises(StorageError):
            await store.store("u1", "482913")
        with pytest.raises(StorageError):
            await store.delete("u1")
