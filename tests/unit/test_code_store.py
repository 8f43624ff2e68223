"""Tests for InMemoryCodeStore."""

from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_store_returns_record_with_expiry(code_store, clock):
    """Stored code expires ttl seconds after issue."""
    record = await code_store.store("u1", "482913", ttl=600)

    assert record.subject == "u1"
    assert record.code == "482913"
    assert (record.expires_at - clock.now).total_seconds() == 600


@pytest.mark.asyncio
async def test_code_valid_before_expiry(code_store, clock):
    await code_store.store("u1", "482913")
    clock.advance(minutes=9, seconds=59)

    assert await code_store.is_valid("u1", "482913") is True


@pytest.mark.asyncio
async def test_code_invalid_at_exact_expiry(code_store, clock):
    """A code is no longer valid at its expiry instant."""
    await code_store.store("u1", "482913")
    clock.advance(minutes=10)

    assert await code_store.is_valid("u1", "482913") is False


@pytest.mark.asyncio
async def test_code_invalid_after_expiry(code_store, clock):
    await code_store.store("u1", "482913")
    clock.advance(minutes=10, seconds=1)

    assert await code_store.is_valid("u1", "482913") is False


@pytest.mark.asyncio
async def test_wrong_code_or_subject_invalid(code_store):
    await code_store.store("u1", "482913")

    assert await code_store.is_valid("u1", "000000") is False
    assert await code_store.is_valid("u2", "482913") is False


@pytest.mark.asyncio
async def test_reissue_keeps_earlier_unexpired_code(code_store):
    """Re-issuing adds a row; the earlier code stays valid until it expires."""
    await code_store.store("u1", "111111")
    await code_store.store("u1", "222222")

    assert await code_store.is_valid("u1", "111111") is True
    assert await code_store.is_valid("u1", "222222") is True
    assert len(code_store.rows_for("u1")) == 2


@pytest.mark.asyncio
async def test_expired_rows_purged_on_write(code_store, clock):
    await code_store.store("u1", "111111")
    clock.advance(minutes=11)
    await code_store.store("u1", "222222")

    assert [r.code for r in code_store.rows_for("u1")] == ["222222"]


@pytest.mark.asyncio
async def test_non_ascii_submission_is_rejected(code_store):
    await code_store.store("u1", "482913")

    assert await code_store.is_valid("u1", "４８２９１３") is False


@pytest.mark.asyncio
async def test_lone_surrogate_submission_is_rejected(code_store):
    """Unencodable submissions are a mismatch, not an error."""
    await code_store.store("u1", "482913")

    assert await code_store.is_valid("u1", "48291\ud800") is False


@pytest.mark.asyncio
async def test_delete_removes_all_codes_of_subject(code_store):
    await code_store.store("u1", "111111")
    await code_store.store("u1", "222222")
    await code_store.store("u2", "333333")

    await code_store.delete("u1")

    assert code_store.rows_for("u1") == []
    assert await code_store.is_valid("u2", "333333") is True


@pytest.mark.asyncio
async def test_delete_is_idempotent(code_store):
    await code_store.store("u1", "111111")

    await code_store.delete("u1")
    await code_store.delete("u1")
    await code_store.delete("never-stored")

    assert await code_store.is_valid("u1", "111111") is False


@pytest.mark.asyncio
async def test_clear_all(code_store):
    await code_store.store("u1", "111111")
    code_store.clear_all()

    assert code_store.rows_for("u1") == []
