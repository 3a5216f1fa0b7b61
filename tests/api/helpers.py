from __future__ import annotations

from typing import Any


class FakeSessionFactory:
    """Stands in for ``SessionLocal`` where routes open read-only sessions."""

    def __init__(self) -> None:
        self.session = object()

    def begin(self) -> "FakeSessionFactory":
        return self

    async def __aenter__(self) -> object:
        return self.session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


async def run_work_once(work, *, max_attempts: int = 3, session_factory: Any = None) -> Any:
    return await work(object())
