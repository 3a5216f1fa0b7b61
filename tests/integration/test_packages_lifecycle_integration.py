from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.package_history_repo import PackageHistoryRepo
from app.db.repo.payment_history_repo import PaymentHistoryRepo
from app.db.session import SessionLocal
from app.economy.errors import InsufficientBalanceError
from app.economy.packages.catalog import DurationType, PackageStatus, Tier
from app.economy.packages.errors import (
    AlreadySubscribedError,
    MustUpgradeToHigherTierError,
    NoActivePackageError,
    PackagePriceMismatchError,
)
from app.economy.packages.service import SubscriptionService
from app.economy.packages.types import PackageOperationResult
from app.economy.transactions import run_in_transaction
from tests.integration.wallet_fixtures import (
    UTC,
    _create_account,
    _ledger_sum,
    _load_account,
    _load_package,
    _seed_package,
)

NOW_UTC = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


async def _subscribe(account_id: int, *, tier: Tier, duration_type: DurationType, total_cost: int | None):
    async def work(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.subscribe(
            session,
            account_id=account_id,
            tier=tier,
            duration_type=duration_type,
            total_cost=total_cost,
            now_utc=NOW_UTC,
        )

    return await run_in_transaction(work)


@pytest.mark.asyncio
async def test_subscribe_debits_once_and_rejects_retry() -> None:
    account_id = await _create_account("subscribe-basic", balance=1000, now_utc=NOW_UTC)

    result = await _subscribe(account_id, tier=Tier.BASIC, duration_type=DurationType.WEEKLY, total_cost=500)
    assert result.new_balance == 500
    assert result.package.expiry_date == NOW_UTC + timedelta(days=7)

    with pytest.raises(AlreadySubscribedError):
        await _subscribe(account_id, tier=Tier.BASIC, duration_type=DurationType.WEEKLY, total_cost=500)

    account = await _load_account(account_id)
    assert account.wallet_balance == 500
    assert await _ledger_sum(account_id) == 500

    async with SessionLocal.begin() as session:
        history = await PackageHistoryRepo.list_by_account(session, account_id=account_id)
        payments = await PaymentHistoryRepo.list_by_account(session, account_id=account_id, limit=10)
    assert [entry.action for entry in history] == ["subscribe"]
    assert payments[0].amount == -500
    assert payments[0].description == "New Subscription: basic weekly"
    assert payments[0].transaction_id.startswith("SUB_")


@pytest.mark.asyncio
async def test_renew_with_insufficient_balance_changes_nothing() -> None:
    account_id = await _create_account("renew-short", balance=100, now_utc=NOW_UTC)
    expiry = NOW_UTC + timedelta(days=2)
    await _seed_package(
        account_id,
        tier=Tier.BASIC,
        duration_type=DurationType.WEEKLY,
        total_cost=500,
        purchase_date=NOW_UTC - timedelta(days=5),
        expiry_date=expiry,
    )

    async def work(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.renew(
            session,
            account_id=account_id,
            duration_type=DurationType.WEEKLY,
            total_cost=200,
            now_utc=NOW_UTC,
        )

    with pytest.raises(InsufficientBalanceError):
        await run_in_transaction(work)

    account = await _load_account(account_id)
    package = await _load_package(account_id)
    assert account.wallet_balance == 100
    assert package is not None
    assert package.expiry_date == expiry
    assert package.total_cost == 500
    async with SessionLocal.begin() as session:
        assert await PackageHistoryRepo.count_by_account(session, account_id=account_id) == 0


@pytest.mark.asyncio
async def test_upgrade_renew_auto_renew_and_cancel_flow() -> None:
    account_id = await _create_account("full-flow", balance=10_000, complete_profile=True, now_utc=NOW_UTC)

    subscribed = await _subscribe(account_id, tier=Tier.PREMIUM, duration_type=DurationType.WEEKLY, total_cost=None)
    assert subscribed.package.total_cost == 1000
    assert subscribed.is_active is True
    assert (await _load_account(account_id)).is_active is True

    async def downgrade(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.upgrade(
            session,
            account_id=account_id,
            tier=Tier.BASIC,
            duration_type=DurationType.WEEKLY,
            total_cost=None,
            now_utc=NOW_UTC,
        )

    with pytest.raises(MustUpgradeToHigherTierError):
        await run_in_transaction(downgrade)

    async def upgrade(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.upgrade(
            session,
            account_id=account_id,
            tier=Tier.ELITE,
            duration_type=DurationType.MONTHLY,
            total_cost=None,
            now_utc=NOW_UTC,
        )

    upgraded = await run_in_transaction(upgrade)
    assert upgraded.package.tier == Tier.ELITE
    assert upgraded.new_balance == 10_000 - 1000 - 5250

    async def renew(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.renew(
            session,
            account_id=account_id,
            duration_type=DurationType.WEEKLY,
            total_cost=None,
            now_utc=NOW_UTC,
        )

    renewed = await run_in_transaction(renew)
    assert renewed.package.expiry_date == NOW_UTC + timedelta(days=37)
    assert renewed.new_balance == 10_000 - 1000 - 5250 - 1500

    async def enable_auto_renew(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.set_auto_renew(
            session,
            account_id=account_id,
            enabled=True,
            duration_type=DurationType.WEEKLY,
            now_utc=NOW_UTC,
        )

    toggled = await run_in_transaction(enable_auto_renew)
    assert toggled.new_balance is None
    assert toggled.package.auto_renew is True

    async def cancel(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.cancel(session, account_id=account_id, now_utc=NOW_UTC)

    cancelled = await run_in_transaction(cancel)
    assert cancelled.package.status == PackageStatus.CANCELLED
    assert cancelled.is_active is False

    with pytest.raises(NoActivePackageError):
        await run_in_transaction(cancel)

    account = await _load_account(account_id)
    assert account.is_active is False
    assert account.wallet_balance == await _ledger_sum(account_id)

    async with SessionLocal.begin() as session:
        history = await SubscriptionService.get_package_history(session, account_id=account_id)
    assert sorted(item.action for item in history) == ["cancel", "renew", "subscribe", "upgrade"]


@pytest.mark.asyncio
async def test_catalog_price_is_enforced_when_requested() -> None:
    account_id = await _create_account("price-check", balance=1000, now_utc=NOW_UTC)

    async def work(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.subscribe(
            session,
            account_id=account_id,
            tier=Tier.BASIC,
            duration_type=DurationType.WEEKLY,
            total_cost=1,
            now_utc=NOW_UTC,
            enforce_catalog_price=True,
        )

    with pytest.raises(PackagePriceMismatchError):
        await run_in_transaction(work)

    assert (await _load_account(account_id)).wallet_balance == 1000
    assert await _load_package(account_id) is None
