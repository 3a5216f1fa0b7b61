from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum


class Tier(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"
    ELITE = "elite"


class DurationType(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PackageStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class PackageAction(str, Enum):
    SUBSCRIBE = "subscribe"
    UPGRADE = "upgrade"
    RENEW = "renew"
    AUTO_RENEW = "auto-renew"
    EXPIRE = "expire"
    CANCEL = "cancel"


TIER_PRIORITY: dict[Tier, int] = {
    Tier.BASIC: 1,
    Tier.PREMIUM: 2,
    Tier.ELITE: 3,
}

# Four weeks at a 12.5% discount.
MONTHLY_WEEKS = 4
MONTHLY_MULTIPLIER = Decimal("0.875")

DURATION_DAYS: dict[DurationType, int] = {
    DurationType.WEEKLY: 7,
    DurationType.MONTHLY: 30,
}

DEFAULT_WEEKLY_PRICES: dict[Tier, int] = {
    Tier.BASIC: 500,
    Tier.PREMIUM: 1000,
    Tier.ELITE: 1500,
}


@dataclass(frozen=True, slots=True)
class PackageQuote:
    tier: Tier
    duration_type: DurationType
    weekly_price: int
    total_cost: int
    days: int


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def price_for(weekly_price: int | Decimal, duration_type: DurationType) -> int:
    weekly = Decimal(weekly_price)
    if duration_type == DurationType.WEEKLY:
        return _round_half_up(weekly)
    return _round_half_up(weekly * MONTHLY_WEEKS * MONTHLY_MULTIPLIER)


def days_for(duration_type: DurationType) -> int:
    return DURATION_DAYS[duration_type]


def weekly_price_from_total(total_cost: int, duration_type: DurationType) -> Decimal:
    """Recover the weekly price a stored total was derived from.

    Monthly totals are divided by four without undoing the discount, so an
    auto-renewal priced from a monthly total is discounted again.
    """
    divisor = MONTHLY_WEEKS if duration_type == DurationType.MONTHLY else 1
    return Decimal(total_cost) / divisor


def tier_priority(tier: Tier) -> int:
    return TIER_PRIORITY[tier]


def parse_weekly_prices(raw_value: str | None) -> dict[Tier, int]:
    prices = dict(DEFAULT_WEEKLY_PRICES)
    if not raw_value:
        return prices

    for chunk in raw_value.split(","):
        item = chunk.strip()
        if not item:
            continue
        name, separator, price = item.partition("=")
        if not separator:
            raise ValueError(f"invalid weekly price entry: {item!r}")
        tier = Tier(name.strip().lower())
        amount = int(price.strip())
        if amount <= 0:
            raise ValueError(f"weekly price must be positive: {item!r}")
        prices[tier] = amount
    return prices


def quote(tier: Tier, duration_type: DurationType, weekly_prices: dict[Tier, int]) -> PackageQuote:
    weekly_price = weekly_prices[tier]
    return PackageQuote(
        tier=tier,
        duration_type=duration_type,
        weekly_price=weekly_price,
        total_cost=price_for(weekly_price, duration_type),
        days=days_for(duration_type),
    )


def build_catalog(weekly_prices: dict[Tier, int]) -> list[PackageQuote]:
    return [quote(tier, duration_type, weekly_prices) for tier in Tier for duration_type in DurationType]
