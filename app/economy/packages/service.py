from __future__ import annotations

from datetime import datetime
from uuid import uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.account_packages import AccountPackage
from app.db.models.accounts import Account
from app.db.models.package_history import PackageHistoryEntry
from app.db.repo.account_packages_repo import AccountPackagesRepo
from app.db.repo.accounts_repo import AccountsRepo
from app.db.repo.package_history_repo import PackageHistoryRepo
from app.economy.packages.activation import activation_profile_from_account, recompute_activation
from app.economy.packages.catalog import DEFAULT_WEEKLY_PRICES, DurationType, PackageStatus, Tier
from app.economy.packages.errors import NoPackageError
from app.economy.packages.rules import (
    is_due_for_expiration,
    plan_cancel,
    plan_expiration,
    plan_renew,
    plan_set_auto_renew,
    plan_subscribe,
    plan_upgrade,
    resolve_total_cost,
)
from app.economy.packages.types import (
    ExpirationOutcome,
    ExpirationResult,
    PackageHistoryItem,
    PackageOperationResult,
    PackageSnapshot,
    PackageTransition,
)
from app.economy.wallet.errors import AccountNotFoundError
from app.economy.wallet.service import WalletService
from app.economy.wallet.types import PaymentEntryType

logger = structlog.get_logger(__name__)


def _reference_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


class SubscriptionService:
    @staticmethod
    def _snapshot_from_model(slot: AccountPackage | None) -> PackageSnapshot | None:
        if slot is None:
            return None
        return PackageSnapshot(
            tier=Tier(slot.tier) if slot.tier is not None else None,
            duration_type=DurationType(slot.duration_type) if slot.duration_type is not None else None,
            total_cost=slot.total_cost,
            purchase_date=slot.purchase_date,
            expiry_date=slot.expiry_date,
            status=PackageStatus(slot.status),
            auto_renew=slot.auto_renew,
            auto_renew_duration_type=(
                DurationType(slot.auto_renew_duration_type) if slot.auto_renew_duration_type is not None else None
            ),
        )

    @staticmethod
    def _apply_snapshot_to_model(slot: AccountPackage, snapshot: PackageSnapshot, now_utc: datetime) -> None:
        slot.tier = snapshot.tier.value if snapshot.tier is not None else None
        slot.duration_type = snapshot.duration_type.value if snapshot.duration_type is not None else None
        slot.total_cost = snapshot.total_cost
        slot.purchase_date = snapshot.purchase_date
        slot.expiry_date = snapshot.expiry_date
        slot.status = snapshot.status.value
        slot.auto_renew = snapshot.auto_renew
        slot.auto_renew_duration_type = (
            snapshot.auto_renew_duration_type.value if snapshot.auto_renew_duration_type is not None else None
        )
        slot.updated_at = now_utc

    @staticmethod
    async def _lock_account(session: AsyncSession, account_id: int) -> Account:
        account = await AccountsRepo.get_by_id_for_update(session, account_id)
        if account is None:
            raise AccountNotFoundError
        return account

    @staticmethod
    async def _apply_transition(
        session: AsyncSession,
        *,
        account: Account,
        slot: AccountPackage | None,
        transition: PackageTransition,
        now_utc: datetime,
    ) -> PackageOperationResult:
        package = transition.package
        new_balance: int | None = None

        if transition.charge > 0:
            debit = await WalletService.debit(
                session,
                account_id=account.id,
                amount=transition.charge,
                description=transition.payment_description or "Package payment",
                reference_id=_reference_id(transition.reference_prefix or "PKG"),
                entry_type=PaymentEntryType.SUBSCRIPTION,
                now_utc=now_utc,
            )
            new_balance = debit.new_balance

        if slot is None:
            slot = AccountPackage(account_id=account.id)
        SubscriptionService._apply_snapshot_to_model(slot, package, now_utc)
        await AccountPackagesRepo.save(session, slot=slot)

        if transition.action is not None and package.tier is not None and package.duration_type is not None:
            await PackageHistoryRepo.create(
                session,
                entry=PackageHistoryEntry(
                    account_id=account.id,
                    tier=package.tier.value,
                    duration_type=package.duration_type.value,
                    total_cost=package.total_cost or 0,
                    purchase_date=now_utc if transition.charge > 0 else package.purchase_date,
                    expiry_date=package.expiry_date,
                    action=transition.action.value,
                    created_at=now_utc,
                ),
            )

        is_active = recompute_activation(
            activation_profile_from_account(account),
            package_status=package.status,
        )
        await AccountsRepo.set_is_active(
            session,
            account_id=account.id,
            is_active=is_active,
            now_utc=now_utc,
        )

        logger.info(
            "package_transition_applied",
            account_id=account.id,
            action=transition.action.value if transition.action is not None else "set_auto_renew",
            tier=package.tier.value if package.tier is not None else None,
            status=package.status.value,
            charge=transition.charge,
        )
        return PackageOperationResult(package=package, new_balance=new_balance, is_active=is_active)

    @staticmethod
    async def subscribe(
        session: AsyncSession,
        *,
        account_id: int,
        tier: Tier,
        duration_type: DurationType,
        total_cost: int | None,
        now_utc: datetime,
        weekly_prices: dict[Tier, int] | None = None,
        enforce_catalog_price: bool = False,
    ) -> PackageOperationResult:
        account = await SubscriptionService._lock_account(session, account_id)
        slot = await AccountPackagesRepo.get_by_account_id_for_update(session, account_id)
        current = SubscriptionService._snapshot_from_model(slot)

        resolved_cost = resolve_total_cost(
            tier,
            duration_type,
            total_cost,
            weekly_prices=weekly_prices or DEFAULT_WEEKLY_PRICES,
            enforce_catalog_price=enforce_catalog_price,
        )
        transition = plan_subscribe(
            current,
            tier=tier,
            duration_type=duration_type,
            total_cost=resolved_cost,
            now_utc=now_utc,
        )
        return await SubscriptionService._apply_transition(
            session,
            account=account,
            slot=slot,
            transition=transition,
            now_utc=now_utc,
        )

    @staticmethod
    async def upgrade(
        session: AsyncSession,
        *,
        account_id: int,
        tier: Tier,
        duration_type: DurationType,
        total_cost: int | None,
        now_utc: datetime,
        weekly_prices: dict[Tier, int] | None = None,
        enforce_catalog_price: bool = False,
    ) -> PackageOperationResult:
        account = await SubscriptionService._lock_account(session, account_id)
        slot = await AccountPackagesRepo.get_by_account_id_for_update(session, account_id)
        current = SubscriptionService._snapshot_from_model(slot)

        resolved_cost = resolve_total_cost(
            tier,
            duration_type,
            total_cost,
            weekly_prices=weekly_prices or DEFAULT_WEEKLY_PRICES,
            enforce_catalog_price=enforce_catalog_price,
        )
        transition = plan_upgrade(
            current,
            tier=tier,
            duration_type=duration_type,
            total_cost=resolved_cost,
            now_utc=now_utc,
        )
        return await SubscriptionService._apply_transition(
            session,
            account=account,
            slot=slot,
            transition=transition,
            now_utc=now_utc,
        )

    @staticmethod
    async def renew(
        session: AsyncSession,
        *,
        account_id: int,
        duration_type: DurationType,
        total_cost: int | None,
        now_utc: datetime,
        weekly_prices: dict[Tier, int] | None = None,
        enforce_catalog_price: bool = False,
    ) -> PackageOperationResult:
        account = await SubscriptionService._lock_account(session, account_id)
        slot = await AccountPackagesRepo.get_by_account_id_for_update(session, account_id)
        current = SubscriptionService._snapshot_from_model(slot)
        if current is None or current.tier is None:
            raise NoPackageError

        resolved_cost = resolve_total_cost(
            current.tier,
            duration_type,
            total_cost,
            weekly_prices=weekly_prices or DEFAULT_WEEKLY_PRICES,
            enforce_catalog_price=enforce_catalog_price,
        )
        transition = plan_renew(
            current,
            duration_type=duration_type,
            total_cost=resolved_cost,
            now_utc=now_utc,
        )
        return await SubscriptionService._apply_transition(
            session,
            account=account,
            slot=slot,
            transition=transition,
            now_utc=now_utc,
        )

    @staticmethod
    async def set_auto_renew(
        session: AsyncSession,
        *,
        account_id: int,
        enabled: bool,
        duration_type: DurationType | None,
        now_utc: datetime,
    ) -> PackageOperationResult:
        account = await SubscriptionService._lock_account(session, account_id)
        slot = await AccountPackagesRepo.get_by_account_id_for_update(session, account_id)
        transition = plan_set_auto_renew(
            SubscriptionService._snapshot_from_model(slot),
            enabled=enabled,
            duration_type=duration_type,
        )
        return await SubscriptionService._apply_transition(
            session,
            account=account,
            slot=slot,
            transition=transition,
            now_utc=now_utc,
        )

    @staticmethod
    async def cancel(
        session: AsyncSession,
        *,
        account_id: int,
        now_utc: datetime,
    ) -> PackageOperationResult:
        account = await SubscriptionService._lock_account(session, account_id)
        slot = await AccountPackagesRepo.get_by_account_id_for_update(session, account_id)
        transition = plan_cancel(SubscriptionService._snapshot_from_model(slot))
        return await SubscriptionService._apply_transition(
            session,
            account=account,
            slot=slot,
            transition=transition,
            now_utc=now_utc,
        )

    @staticmethod
    async def process_expiration(
        session: AsyncSession,
        *,
        account_id: int,
        now_utc: datetime,
    ) -> ExpirationOutcome:
        account = await AccountsRepo.get_by_id_for_update(session, account_id)
        if account is None:
            return ExpirationOutcome(account_id=account_id, result=ExpirationResult.SKIPPED)

        slot = await AccountPackagesRepo.get_by_account_id_for_update(session, account_id)
        current = SubscriptionService._snapshot_from_model(slot)
        # Renewed or cancelled between the scan and the lock.
        if current is None or not is_due_for_expiration(current, now_utc=now_utc):
            return ExpirationOutcome(account_id=account_id, result=ExpirationResult.SKIPPED)

        transition = plan_expiration(current, balance=account.wallet_balance, now_utc=now_utc)
        await SubscriptionService._apply_transition(
            session,
            account=account,
            slot=slot,
            transition=transition,
            now_utc=now_utc,
        )
        if transition.charge > 0:
            return ExpirationOutcome(
                account_id=account_id,
                result=ExpirationResult.AUTO_RENEWED,
                charge=transition.charge,
            )
        return ExpirationOutcome(account_id=account_id, result=ExpirationResult.EXPIRED)

    @staticmethod
    async def get_current_package(session: AsyncSession, *, account_id: int) -> PackageSnapshot | None:
        account = await AccountsRepo.get_by_id(session, account_id)
        if account is None:
            raise AccountNotFoundError
        slot = await AccountPackagesRepo.get_by_account_id(session, account_id)
        return SubscriptionService._snapshot_from_model(slot)

    @staticmethod
    async def get_package_history(
        session: AsyncSession,
        *,
        account_id: int,
        limit: int = 100,
    ) -> list[PackageHistoryItem]:
        account = await AccountsRepo.get_by_id(session, account_id)
        if account is None:
            raise AccountNotFoundError
        entries = await PackageHistoryRepo.list_by_account(session, account_id=account_id, limit=limit)
        return [
            PackageHistoryItem(
                tier=entry.tier,
                duration_type=entry.duration_type,
                total_cost=entry.total_cost,
                purchase_date=entry.purchase_date,
                expiry_date=entry.expiry_date,
                action=entry.action,
                created_at=entry.created_at,
            )
            for entry in entries
        ]
