from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.package_history import PackageHistoryEntry


class PackageHistoryRepo:
    @staticmethod
    async def create(session: AsyncSession, *, entry: PackageHistoryEntry) -> PackageHistoryEntry:
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def list_by_account(
        session: AsyncSession,
        *,
        account_id: int,
        limit: int = 100,
    ) -> list[PackageHistoryEntry]:
        stmt = (
            select(PackageHistoryEntry)
            .where(PackageHistoryEntry.account_id == account_id)
            .order_by(PackageHistoryEntry.created_at.desc(), PackageHistoryEntry.id.desc())
            .limit(max(1, min(500, int(limit))))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_by_account(session: AsyncSession, *, account_id: int) -> int:
        stmt = select(func.count(PackageHistoryEntry.id)).where(PackageHistoryEntry.account_id == account_id)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
