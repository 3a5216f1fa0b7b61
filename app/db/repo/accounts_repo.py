from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.accounts import Account


class AccountsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, account_id: int) -> Account | None:
        return await session.get(Account, account_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, account_id: int) -> Account | None:
        stmt = (
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        category: str,
        username: str | None,
        email: str | None,
        wallet_currency: str = "KES",
        created_at: datetime,
    ) -> Account:
        account = Account(
            category=category,
            username=username,
            email=email,
            is_email_verified=False,
            location_areas=[],
            services_count=0,
            is_active=False,
            is_deactivated=False,
            wallet_balance=0,
            wallet_currency=wallet_currency,
            version=0,
            created_at=created_at,
            updated_at=created_at,
        )
        session.add(account)
        await session.flush()
        return account

    @staticmethod
    async def increment_balance(
        session: AsyncSession,
        *,
        account_id: int,
        amount: int,
        now_utc: datetime,
    ) -> int | None:
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(
                wallet_balance=Account.wallet_balance + amount,
                version=Account.version + 1,
                updated_at=now_utc,
            )
            .returning(Account.wallet_balance)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def decrement_balance_if_sufficient(
        session: AsyncSession,
        *,
        account_id: int,
        amount: int,
        now_utc: datetime,
    ) -> int | None:
        stmt = (
            update(Account)
            .where(
                Account.id == account_id,
                Account.wallet_balance >= amount,
            )
            .values(
                wallet_balance=Account.wallet_balance - amount,
                version=Account.version + 1,
                updated_at=now_utc,
            )
            .returning(Account.wallet_balance)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def set_is_active(
        session: AsyncSession,
        *,
        account_id: int,
        is_active: bool,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Account)
            .where(Account.id == account_id, Account.is_active.is_distinct_from(is_active))
            .values(is_active=is_active, updated_at=now_utc)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0
