from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.account_packages import AccountPackage


class AccountPackagesRepo:
    @staticmethod
    async def get_by_account_id(session: AsyncSession, account_id: int) -> AccountPackage | None:
        return await session.get(AccountPackage, account_id)

    @staticmethod
    async def get_by_account_id_for_update(session: AsyncSession, account_id: int) -> AccountPackage | None:
        stmt = (
            select(AccountPackage)
            .where(AccountPackage.account_id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def save(session: AsyncSession, *, slot: AccountPackage) -> AccountPackage:
        session.add(slot)
        await session.flush()
        return slot

    @staticmethod
    async def list_due_account_ids(
        session: AsyncSession,
        *,
        now_utc: datetime,
        after_account_id: int | None,
        limit: int,
    ) -> list[int]:
        resolved_limit = max(1, min(5000, int(limit)))
        stmt = select(AccountPackage.account_id).where(
            AccountPackage.status == "active",
            AccountPackage.expiry_date.is_not(None),
            AccountPackage.expiry_date <= now_utc,
        )
        if after_account_id is not None:
            stmt = stmt.where(AccountPackage.account_id > after_account_id)
        stmt = stmt.order_by(AccountPackage.account_id.asc()).limit(resolved_limit)
        result = await session.execute(stmt)
        return [int(account_id) for account_id in result.scalars().all()]
