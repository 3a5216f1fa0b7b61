from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError

from app.economy.transactions import is_retryable_conflict, run_in_transaction
from app.economy.wallet.errors import LedgerConflictError


class _DriverError(Exception):
    def __init__(self, sqlstate: str) -> None:
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


def _dbapi_error(sqlstate: str) -> DBAPIError:
    return DBAPIError("UPDATE accounts", {}, _DriverError(sqlstate))


class _Begin:
    def __init__(self, factory: "_SessionFactory") -> None:
        self._factory = factory

    async def __aenter__(self) -> object:
        self._factory.begun += 1
        return object()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self._factory.rolled_back += 1
        return False


class _SessionFactory:
    def __init__(self) -> None:
        self.begun = 0
        self.rolled_back = 0

    def begin(self) -> _Begin:
        return _Begin(self)


def test_is_retryable_conflict_matches_serialization_and_deadlock() -> None:
    assert is_retryable_conflict(_dbapi_error("40001")) is True
    assert is_retryable_conflict(_dbapi_error("40P01")) is True
    assert is_retryable_conflict(_dbapi_error("23505")) is False
    assert is_retryable_conflict(RuntimeError("boom")) is False


@pytest.mark.asyncio
async def test_run_in_transaction_retries_conflicts_then_succeeds() -> None:
    factory = _SessionFactory()
    calls: list[int] = []

    async def work(session: Any) -> str:
        calls.append(1)
        if len(calls) < 3:
            raise _dbapi_error("40001")
        return "done"

    result = await run_in_transaction(work, max_attempts=3, session_factory=factory)  # type: ignore[arg-type]

    assert result == "done"
    assert factory.begun == 3
    assert factory.rolled_back == 2


@pytest.mark.asyncio
async def test_run_in_transaction_raises_ledger_conflict_when_exhausted() -> None:
    factory = _SessionFactory()

    async def work(session: Any) -> None:
        raise _dbapi_error("40P01")

    with pytest.raises(LedgerConflictError):
        await run_in_transaction(work, max_attempts=2, session_factory=factory)  # type: ignore[arg-type]
    assert factory.begun == 2


@pytest.mark.asyncio
async def test_run_in_transaction_does_not_retry_other_database_errors() -> None:
    factory = _SessionFactory()

    async def work(session: Any) -> None:
        raise IntegrityError("INSERT", {}, _DriverError("23505"))

    with pytest.raises(IntegrityError):
        await run_in_transaction(work, max_attempts=3, session_factory=factory)  # type: ignore[arg-type]
    assert factory.begun == 1
