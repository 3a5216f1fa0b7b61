from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

from app.economy.errors import ValidationError
from app.economy.packages.catalog import (
    DurationType,
    PackageAction,
    PackageStatus,
    Tier,
    days_for,
    price_for,
    quote,
    tier_priority,
    weekly_price_from_total,
)
from app.economy.packages.errors import (
    AlreadySubscribedError,
    InvalidPackageTermsError,
    MustUpgradeToHigherTierError,
    NoActivePackageError,
    NoPackageError,
    PackagePriceMismatchError,
)
from app.economy.packages.types import PackageSnapshot, PackageTransition
from app.economy.wallet.types import MAX_AMOUNT


def _validate_total_cost(total_cost: int) -> int:
    if isinstance(total_cost, bool) or not isinstance(total_cost, int) or not 0 < total_cost <= MAX_AMOUNT:
        raise InvalidPackageTermsError("Total cost must be a positive whole number")
    return total_cost


def _has_package(current: PackageSnapshot | None) -> bool:
    return current is not None and current.tier is not None


def plan_subscribe(
    current: PackageSnapshot | None,
    *,
    tier: Tier,
    duration_type: DurationType,
    total_cost: int,
    now_utc: datetime,
) -> PackageTransition:
    total_cost = _validate_total_cost(total_cost)
    if current is not None and current.is_active_at(now_utc):
        raise AlreadySubscribedError

    package = PackageSnapshot(
        tier=tier,
        duration_type=duration_type,
        total_cost=total_cost,
        purchase_date=now_utc,
        expiry_date=now_utc + timedelta(days=days_for(duration_type)),
        status=PackageStatus.ACTIVE,
        auto_renew=False,
        auto_renew_duration_type=None,
    )
    return PackageTransition(
        package=package,
        action=PackageAction.SUBSCRIBE,
        charge=total_cost,
        payment_description=f"New Subscription: {tier.value} {duration_type.value}",
        reference_prefix="SUB",
    )


def plan_upgrade(
    current: PackageSnapshot | None,
    *,
    tier: Tier,
    duration_type: DurationType,
    total_cost: int,
    now_utc: datetime,
) -> PackageTransition:
    total_cost = _validate_total_cost(total_cost)
    if current is None or not current.is_active_at(now_utc):
        raise NoActivePackageError("No active package to upgrade from")
    assert current.tier is not None
    if tier_priority(tier) <= tier_priority(current.tier):
        raise MustUpgradeToHigherTierError

    package = PackageSnapshot(
        tier=tier,
        duration_type=duration_type,
        total_cost=total_cost,
        purchase_date=now_utc,
        expiry_date=now_utc + timedelta(days=days_for(duration_type)),
        status=PackageStatus.ACTIVE,
        auto_renew=current.auto_renew,
        auto_renew_duration_type=duration_type if current.auto_renew else None,
    )
    return PackageTransition(
        package=package,
        action=PackageAction.UPGRADE,
        charge=total_cost,
        payment_description=f"Upgrade to: {tier.value} {duration_type.value}",
        reference_prefix="UPGRADE",
    )


def plan_renew(
    current: PackageSnapshot | None,
    *,
    duration_type: DurationType,
    total_cost: int,
    now_utc: datetime,
) -> PackageTransition:
    total_cost = _validate_total_cost(total_cost)
    if not _has_package(current):
        raise NoPackageError
    assert current is not None and current.tier is not None

    # Time left on a running package is kept; a lapsed one restarts today.
    if current.is_active_at(now_utc):
        assert current.expiry_date is not None
        base = current.expiry_date
    else:
        base = now_utc

    package = replace(
        current,
        duration_type=duration_type,
        total_cost=total_cost,
        purchase_date=current.purchase_date or now_utc,
        expiry_date=base + timedelta(days=days_for(duration_type)),
        status=PackageStatus.ACTIVE,
    )
    return PackageTransition(
        package=package,
        action=PackageAction.RENEW,
        charge=total_cost,
        payment_description=f"Renewal: {current.tier.value} {duration_type.value}",
        reference_prefix="RENEW",
    )


def plan_set_auto_renew(
    current: PackageSnapshot | None,
    *,
    enabled: bool,
    duration_type: DurationType | None,
) -> PackageTransition:
    if current is None or current.tier is None or current.status != PackageStatus.ACTIVE:
        raise NoActivePackageError
    if enabled and duration_type is None:
        raise ValidationError("Duration type is required to enable auto-renew")

    package = replace(
        current,
        auto_renew=enabled,
        auto_renew_duration_type=duration_type if enabled else None,
    )
    return PackageTransition(package=package, action=None)


def plan_cancel(current: PackageSnapshot | None) -> PackageTransition:
    if current is None or current.tier is None or current.status != PackageStatus.ACTIVE:
        raise NoActivePackageError("No active package to cancel")

    package = replace(
        current,
        auto_renew=False,
        auto_renew_duration_type=None,
        status=PackageStatus.CANCELLED,
    )
    return PackageTransition(package=package, action=PackageAction.CANCEL)


def is_due_for_expiration(current: PackageSnapshot | None, *, now_utc: datetime) -> bool:
    return (
        current is not None
        and current.tier is not None
        and current.status == PackageStatus.ACTIVE
        and current.expiry_date is not None
        and current.expiry_date <= now_utc
    )


def renewal_cost(current: PackageSnapshot) -> int | None:
    if not current.auto_renew or current.auto_renew_duration_type is None:
        return None
    if current.total_cost is None or current.duration_type is None:
        return None
    weekly_price = weekly_price_from_total(current.total_cost, current.duration_type)
    return price_for(weekly_price, current.auto_renew_duration_type)


def plan_expiration(
    current: PackageSnapshot,
    *,
    balance: int,
    now_utc: datetime,
) -> PackageTransition:
    """Auto-renew a due package when the wallet covers it, otherwise expire it.

    Callers check ``is_due_for_expiration`` first. The renewed package keeps its
    original purchase date and restarts its term from ``now_utc``.
    """
    cost = renewal_cost(current)
    if cost is not None and cost > 0 and balance >= cost:
        assert current.tier is not None and current.auto_renew_duration_type is not None
        duration_type = current.auto_renew_duration_type
        package = replace(
            current,
            duration_type=duration_type,
            total_cost=cost,
            expiry_date=now_utc + timedelta(days=days_for(duration_type)),
            status=PackageStatus.ACTIVE,
        )
        return PackageTransition(
            package=package,
            action=PackageAction.AUTO_RENEW,
            charge=cost,
            payment_description=f"Auto-renewal: {current.tier.value} {duration_type.value}",
            reference_prefix="AUTO_RENEW",
        )

    return PackageTransition(
        package=replace(current, status=PackageStatus.EXPIRED),
        action=PackageAction.EXPIRE,
    )


def resolve_total_cost(
    tier: Tier,
    duration_type: DurationType,
    requested_total: int | None,
    *,
    weekly_prices: dict[Tier, int],
    enforce_catalog_price: bool,
) -> int:
    quoted = quote(tier, duration_type, weekly_prices).total_cost
    if requested_total is None:
        return quoted
    if enforce_catalog_price and requested_total != quoted:
        raise PackagePriceMismatchError
    return requested_total
