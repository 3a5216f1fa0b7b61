from __future__ import annotations

import pytest
import structlog

from app.workers import asyncio_runner


@pytest.fixture
def disposals(monkeypatch) -> list[str]:
    calls: list[str] = []

    async def fake_dispose_engine() -> None:
        calls.append("dispose")

    monkeypatch.setattr(asyncio_runner, "dispose_engine", fake_dispose_engine)
    return calls


def test_run_async_job_binds_job_name_and_recycles_pool(disposals: list[str]) -> None:
    seen: dict[str, object] = {}

    async def job() -> int:
        seen.update(structlog.contextvars.get_contextvars())
        return 42

    result = asyncio_runner.run_async_job(job(), job_name="package_expiration_sweep")

    assert result == 42
    assert seen["job"] == "package_expiration_sweep"
    assert disposals == ["dispose", "dispose"]
    assert "job" not in structlog.contextvars.get_contextvars()


def test_run_async_job_reraises_and_still_disposes(disposals: list[str]) -> None:
    async def job() -> None:
        raise RuntimeError("sweep crashed")

    with pytest.raises(RuntimeError, match="sweep crashed"):
        asyncio_runner.run_async_job(job(), job_name="package_expiration_sweep")

    assert disposals == ["dispose", "dispose"]
