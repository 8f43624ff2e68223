"""SQLAlchemy code store over the ``verification_codes`` table."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import BigInteger, DateTime, Integer, String, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..exceptions import StorageError
from ..ports import ICodeStore, OneTimeCode, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..ports import Clock

    AsyncSessionFactory = Callable[[], Any]

logger = logging.getLogger(__name__)

TABLE_NAME = "verification_codes"


class Base(DeclarativeBase):
    """Declarative base for the verification tables."""


class VerificationCodeModel(Base):
    """One issued code. Several rows may share a ``user_id``."""

    __tablename__ = TABLE_NAME

    id: Mapped[int] = mapped_column(
        Integer().with_variant(BigInteger, "postgresql"),
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )


class SQLAlchemyCodeStore(ICodeStore):
    """
    Async SQLAlchemy implementation of ICodeStore.

    Validity is a single predicate query over ``(user_id, code, expires_at >
    now)``, so stale rows never validate even before they are purged.
    Expired rows of a subject are removed whenever a new code is stored for
    it; :meth:`purge_expired` sweeps the whole table.

    Every ``SQLAlchemyError`` is raised as :class:`StorageError`.

    Example:
        ```python
        engine = create_async_engine("postgresql+asyncpg://...")
        store = SQLAlchemyCodeStore(async_sessionmaker(engine, expire_on_commit=False))
        ```
    """

    def __init__(
        self,
        session_factory: AsyncSessionFactory,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def store(self, subject: str, code: str, ttl: int = 600) -> OneTimeCode:
        now = self._clock()
        record = OneTimeCode(
            subject=subject,
            code=code,
            expires_at=now + timedelta(seconds=ttl),
        )
        try:
            async with self._session_factory() as session:
                await session.execute(
                    delete(VerificationCodeModel).where(
                        VerificationCodeModel.user_id == subject,
                        VerificationCodeModel.expires_at <= now,
                    )
                )
                session.add(
                    VerificationCodeModel(
                        user_id=record.subject,
                        code=record.code,
                        expires_at=record.expires_at,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to store verification code: %s", e)
            raise StorageError("Failed to store verification code") from e
        return record

    async def is_valid(self, subject: str, code: str) -> bool:
        now = self._clock()
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(VerificationCodeModel.id)
                    .where(
                        VerificationCodeModel.user_id == subject,
                        VerificationCodeModel.code == code,
                        VerificationCodeModel.expires_at > now,
                    )
                    .limit(1)
                )
                return result.first() is not None
        except SQLAlchemyError as e:
            logger.error("Failed to look up verification code: %s", e)
            raise StorageError("Failed to look up verification code") from e

    async def delete(self, subject: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(
                    delete(VerificationCodeModel).where(
                        VerificationCodeModel.user_id == subject
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to delete verification codes: %s", e)
            raise StorageError("Failed to delete verification codes") from e

    async def purge_expired(self) -> int:
        """Delete every expired row.

        Returns:
            Number of rows removed.
        """
        now = self._clock()
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(VerificationCodeModel).where(
                        VerificationCodeModel.expires_at <= now
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to purge expired verification codes: %s", e)
            raise StorageError("Failed to purge expired verification codes") from e
        removed = int(result.rowcount or 0)
        if removed:
            logger.debug("Purged %d expired verification codes", removed)
        return removed


__all__: list[str] = [
    "TABLE_NAME",
    "Base",
    "VerificationCodeModel",
    "SQLAlchemyCodeStore",
]
