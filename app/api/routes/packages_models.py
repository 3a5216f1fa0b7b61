from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.economy.packages.catalog import DurationType, Tier
from app.economy.wallet.types import MAX_AMOUNT


class SubscribeRequest(BaseModel):
    tier: Tier
    duration_type: DurationType
    total_cost: int | None = Field(default=None, gt=0, le=MAX_AMOUNT)


class UpgradeRequest(BaseModel):
    tier: Tier
    duration_type: DurationType
    total_cost: int | None = Field(default=None, gt=0, le=MAX_AMOUNT)


class RenewRequest(BaseModel):
    duration_type: DurationType
    total_cost: int | None = Field(default=None, gt=0, le=MAX_AMOUNT)


class AutoRenewRequest(BaseModel):
    enabled: bool
    duration_type: DurationType | None = None


class PackageView(BaseModel):
    tier: Tier | None
    duration_type: DurationType | None
    total_cost: int | None
    purchase_date: datetime | None
    expiry_date: datetime | None
    status: str
    auto_renew: bool
    auto_renew_duration_type: DurationType | None


class PackageOperationView(BaseModel):
    package: PackageView
    new_balance: int | None = None
    is_active: bool


class PackageHistoryView(BaseModel):
    tier: str
    duration_type: str
    total_cost: int = Field(ge=0)
    purchase_date: datetime | None
    expiry_date: datetime | None
    action: str
    created_at: datetime


class CatalogEntryView(BaseModel):
    tier: Tier
    duration_type: DurationType
    weekly_price: int = Field(gt=0)
    total_cost: int = Field(gt=0)
    days: int = Field(gt=0)
