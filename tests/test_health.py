from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.api.routes import health as health_routes
from app.main import app

OK = {"status": "ok"}


def _stub_checks(monkeypatch, **failures: str) -> None:
    def make_check(name: str):
        async def check() -> dict[str, str]:
            if name in failures:
                return {"status": "failed", "error": failures[name]}
            return dict(OK)

        return check

    monkeypatch.setattr(health_routes, "_check_database", make_check("database"))
    monkeypatch.setattr(health_routes, "_check_redis", make_check("redis"))
    monkeypatch.setattr(health_routes, "_check_celery_worker", make_check("celery"))


def test_health_reports_every_dependency(monkeypatch) -> None:
    _stub_checks(monkeypatch)

    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "checks": {"database": OK, "redis": OK, "celery": OK},
    }


@pytest.mark.parametrize(
    ("failing", "error"),
    [
        ("database", "database_unavailable"),
        ("redis", "redis_unavailable"),
        ("celery", "no_celery_workers"),
    ],
)
def test_health_degrades_on_any_failed_dependency(monkeypatch, failing: str, error: str) -> None:
    _stub_checks(monkeypatch, **{failing: error})

    response = TestClient(app).get("/health")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "degraded"
    assert body["checks"][failing] == {"status": "failed", "error": error}


def test_ready_ignores_worker_availability(monkeypatch) -> None:
    _stub_checks(monkeypatch, celery="no_celery_workers")

    response = TestClient(app).get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": OK, "redis": OK}}


def test_ready_is_not_ready_without_database(monkeypatch) -> None:
    _stub_checks(monkeypatch, database="database_unavailable")

    response = TestClient(app).get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_live_has_no_dependencies() -> None:
    response = TestClient(app).get("/live")

    assert response.status_code == 200
    assert response.json() == {"status": "live"}


async def test_database_check_hides_driver_error_text(monkeypatch) -> None:
    class _UnreachableSession:
        async def __aenter__(self):
            raise RuntimeError("password=secret")

        async def __aexit__(self, exc_type, exc, tb) -> bool:
            return False

    monkeypatch.setattr(health_routes, "SessionLocal", lambda: _UnreachableSession())

    assert await health_routes._check_database() == {"status": "failed", "error": "database_unavailable"}


class _Control:
    def __init__(self, *, ping_reply=None, broken: bool = False) -> None:
        self._ping_reply = ping_reply
        self._broken = broken

    def inspect(self, timeout: float):
        if self._broken:
            raise RuntimeError("broker-url=redis://secret")
        reply = self._ping_reply

        class _Inspector:
            def ping(self):
                return reply

        return _Inspector()


@pytest.mark.parametrize(
    ("control", "expected"),
    [
        (_Control(broken=True), {"status": "failed", "error": "celery_unavailable"}),
        (_Control(ping_reply=None), {"status": "failed", "error": "no_celery_workers"}),
        (_Control(ping_reply={"worker@host": {"ok": "pong"}}), OK),
    ],
)
def test_celery_check_outcomes(monkeypatch, control: _Control, expected: dict[str, str]) -> None:
    monkeypatch.setattr(health_routes.celery_app, "control", control)

    assert health_routes._check_celery_worker_sync() == expected
