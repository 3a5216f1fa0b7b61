from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payment_history import PaymentHistoryEntry


class PaymentHistoryRepo:
    @staticmethod
    async def create(session: AsyncSession, *, entry: PaymentHistoryEntry) -> PaymentHistoryEntry:
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def list_by_account(
        session: AsyncSession,
        *,
        account_id: int,
        limit: int,
        offset: int = 0,
    ) -> list[PaymentHistoryEntry]:
        stmt = (
            select(PaymentHistoryEntry)
            .where(PaymentHistoryEntry.account_id == account_id)
            .order_by(PaymentHistoryEntry.created_at.desc(), PaymentHistoryEntry.id.desc())
            .offset(max(0, int(offset)))
            .limit(max(1, min(500, int(limit))))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_by_account(session: AsyncSession, *, account_id: int) -> int:
        stmt = select(func.count(PaymentHistoryEntry.id)).where(PaymentHistoryEntry.account_id == account_id)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def sum_amounts_by_account(session: AsyncSession, *, account_id: int) -> int:
        stmt = select(func.coalesce(func.sum(PaymentHistoryEntry.amount), 0)).where(
            PaymentHistoryEntry.account_id == account_id,
            PaymentHistoryEntry.status == "completed",
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
