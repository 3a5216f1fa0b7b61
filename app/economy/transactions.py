from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import SessionLocal
from app.economy.wallet.errors import LedgerConflictError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    for attr in ("sqlstate", "pgcode"):
        value = getattr(orig, attr, None)
        if isinstance(value, str):
            return value
    return None


def is_retryable_conflict(exc: BaseException) -> bool:
    return isinstance(exc, DBAPIError) and _sqlstate(exc) in RETRYABLE_SQLSTATES


async def run_in_transaction(
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    max_attempts: int = 3,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> T:
    factory = session_factory or SessionLocal
    attempts = max(1, int(max_attempts))

    for attempt in range(1, attempts + 1):
        try:
            async with factory.begin() as session:
                return await work(session)
        except DBAPIError as exc:
            if not is_retryable_conflict(exc):
                raise
            logger.warning(
                "ledger_transaction_conflict",
                attempt=attempt,
                max_attempts=attempts,
                sqlstate=_sqlstate(exc),
            )
            if attempt >= attempts:
                raise LedgerConflictError from exc

    raise LedgerConflictError
