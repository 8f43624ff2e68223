"""In-memory code store for testing and single-process development."""

from __future__ import annotations

import asyncio
import secrets
from datetime import timedelta
from typing import TYPE_CHECKING

from ..ports import ICodeStore, OneTimeCode, utc_now

if TYPE_CHECKING:
    from ..ports import Clock


class InMemoryCodeStore(ICodeStore):
    """In-memory ICodeStore for TESTING ONLY.

    ⚠️ WARNING: Codes are kept in plain text in process memory and are lost
    on restart. Use :class:`~lawhelp_verification.store.sqlalchemy.SQLAlchemyCodeStore`
    in production.

    Rows behave like the ``verification_codes`` table: re-issuing adds a row
    for the same subject, lookups ignore expired rows, and expired rows are
    purged lazily on the next write.
    """

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._rows: list[OneTimeCode] = []
        self._lock = asyncio.Lock()

    async def store(self, subject: str, code: str, ttl: int = 600) -> OneTimeCode:
        now = self._clock()
        row = OneTimeCode(
            subject=subject,
            code=code,
            expires_at=now + timedelta(seconds=ttl),
        )
        async with self._lock:
            self._rows = [r for r in self._rows if not r.is_expired(now)]
            self._rows.append(row)
        return row

    async def is_valid(self, subject: str, code: str) -> bool:
        now = self._clock()
        async with self._lock:
            candidates = [
                r for r in self._rows if r.subject == subject and r.expires_at > now
            ]
        submitted = code.encode("utf-8", "surrogatepass")
        matched = False
        # Compare against every candidate so timing does not depend on position.
        for row in candidates:
            expected = row.code.encode("utf-8", "surrogatepass")
            if secrets.compare_digest(expected, submitted):
                matched = True
        return matched

    async def delete(self, subject: str) -> None:
        async with self._lock:
            self._rows = [r for r in self._rows if r.subject != subject]

    def rows_for(self, subject: str) -> list[OneTimeCode]:
        """All rows of a subject, expired ones included."""
        return [r for r in self._rows if r.subject == subject]

    def clear_all(self) -> None:
        """Drop every row. Useful for testing cleanup."""
        self._rows.clear()


__all__: list[str] = ["InMemoryCodeStore"]
