from __future__ import annotations

import pytest
from sqlalchemy import text

from app.core.integration_db_safety import assert_safe_integration_db
from app.db.session import engine

# Children first so the FK order is obvious when reading failures.
WALLET_TABLES = (
    "mpesa_payments",
    "processed_transactions",
    "payment_history",
    "package_history",
    "account_packages",
    "accounts",
)


@pytest.fixture(scope="session", autouse=True)
def refuse_non_test_database() -> None:
    assert_safe_integration_db(str(engine.url))


async def _skip_without_postgres() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"integration tests need a reachable Postgres: {exc}")


@pytest.fixture(autouse=True)
async def empty_wallet_tables() -> None:
    # Each test gets its own event loop, so pooled asyncpg connections must not leak across.
    await engine.dispose()
    await _skip_without_postgres()

    async with engine.begin() as conn:
        await conn.execute(
            text(f"TRUNCATE TABLE {', '.join(WALLET_TABLES)} RESTART IDENTITY CASCADE")
        )

    yield

    await engine.dispose()
