from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from app.economy.packages.catalog import DurationType, PackageAction, PackageStatus, Tier


@dataclass(slots=True)
class PackageSnapshot:
    tier: Tier | None
    duration_type: DurationType | None
    total_cost: int | None
    purchase_date: datetime | None
    expiry_date: datetime | None
    status: PackageStatus
    auto_renew: bool
    auto_renew_duration_type: DurationType | None

    def is_active_at(self, now_utc: datetime) -> bool:
        return (
            self.tier is not None
            and self.status == PackageStatus.ACTIVE
            and self.expiry_date is not None
            and self.expiry_date > now_utc
        )


@dataclass(slots=True)
class PackageTransition:
    package: PackageSnapshot
    action: PackageAction | None
    charge: int = 0
    payment_description: str | None = None
    reference_prefix: str | None = None


@dataclass(slots=True)
class PackageOperationResult:
    package: PackageSnapshot
    new_balance: int | None
    is_active: bool


@dataclass(slots=True)
class PackageHistoryItem:
    tier: str
    duration_type: str
    total_cost: int
    purchase_date: datetime | None
    expiry_date: datetime | None
    action: str
    created_at: datetime


class ExpirationResult(str, Enum):
    EXPIRED = "expired"
    AUTO_RENEWED = "auto_renewed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class ExpirationOutcome:
    account_id: int
    result: ExpirationResult
    charge: int = 0
