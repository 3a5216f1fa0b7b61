from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app import main as app_main

DOC_PATHS = ("/docs", "/redoc", "/openapi.json")


def _settings(*, enable_openapi_docs: bool) -> SimpleNamespace:
    return SimpleNamespace(
        log_level="INFO",
        enable_openapi_docs=enable_openapi_docs,
    )


@pytest.mark.parametrize(
    ("enabled", "expected_status"),
    [(True, 200), (False, 404)],
)
def test_openapi_docs_follow_settings(monkeypatch, enabled: bool, expected_status: int) -> None:
    monkeypatch.setattr(app_main, "get_settings", lambda: _settings(enable_openapi_docs=enabled))
    client = TestClient(app_main.create_app())

    for path in DOC_PATHS:
        assert client.get(path).status_code == expected_status


def test_business_routes_stay_mounted_when_docs_disabled(monkeypatch) -> None:
    monkeypatch.setattr(app_main, "get_settings", lambda: _settings(enable_openapi_docs=False))
    client = TestClient(app_main.create_app())

    response = client.get("/packages/catalog")

    assert response.status_code == 200
