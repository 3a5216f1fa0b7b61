from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.engine import URL, make_url

TEST_DB_NAME_RE = re.compile(r"test", re.IGNORECASE)
ALLOWED_LOCAL_HOSTS = frozenset(
    {
        "localhost",
        "127.0.0.1",
        "::1",
        "postgres",
        "listings_wallet_postgres",
    }
)


@dataclass(frozen=True, slots=True)
class IntegrationDbSafetyResult:
    is_safe: bool
    reason: str
    database_name: str
    host: str


# Checked in order; the first failing rule decides the reason.
_RULES: tuple[tuple[str, Callable[[URL, str, str], bool]], ...] = (
    (
        "Integration tests support only PostgreSQL test databases.",
        lambda url, name, host: url.get_backend_name() == "postgresql",
    ),
    ("Database name is empty.", lambda url, name, host: bool(name)),
    (
        "Database name must clearly indicate a test database (contain 'test').",
        lambda url, name, host: TEST_DB_NAME_RE.search(name) is not None,
    ),
    (
        "Host is not in allowed local integration-test hosts.",
        lambda url, name, host: host in ALLOWED_LOCAL_HOSTS,
    ),
)


def assess_integration_db_safety(database_url: str) -> IntegrationDbSafetyResult:
    url: URL = make_url(database_url)
    name = (url.database or "").strip()
    host = (url.host or "").strip().lower()

    for reason, passes in _RULES:
        if not passes(url, name, host):
            return IntegrationDbSafetyResult(is_safe=False, reason=reason, database_name=name, host=host)
    return IntegrationDbSafetyResult(is_safe=True, reason="ok", database_name=name, host=host)


def assert_safe_integration_db(database_url: str) -> None:
    """Refuse destructive integration fixtures anywhere but a local test database."""
    result = assess_integration_db_safety(database_url)
    if result.is_safe:
        return

    raise RuntimeError(
        "Refusing to run integration tests with destructive TRUNCATE.\n"
        f"Reason: {result.reason}\n"
        f"Resolved DB: name='{result.database_name}' host='{result.host}'\n"
        "Required: use a dedicated local PostgreSQL test DB, e.g. 'listings_wallet_test'."
    )
