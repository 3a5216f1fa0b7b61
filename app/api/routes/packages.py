from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.errors import success_body
from app.api.routes.packages_models import (
    AutoRenewRequest,
    CatalogEntryView,
    PackageHistoryView,
    PackageOperationView,
    PackageView,
    RenewRequest,
    SubscribeRequest,
    UpgradeRequest,
)
from app.core.config import get_settings
from app.db.session import SessionLocal
from app.economy.packages.catalog import Tier, build_catalog, parse_weekly_prices
from app.economy.packages.service import SubscriptionService
from app.economy.packages.types import PackageOperationResult, PackageSnapshot
from app.economy.transactions import run_in_transaction
from app.services.identity import AccountIdentity, get_current_account

router = APIRouter(prefix="/packages", tags=["packages"])


def _pricing() -> tuple[dict[Tier, int], bool]:
    settings = get_settings()
    return parse_weekly_prices(settings.package_weekly_prices), settings.package_price_check_enabled


def _package_view(snapshot: PackageSnapshot) -> PackageView:
    return PackageView(
        tier=snapshot.tier,
        duration_type=snapshot.duration_type,
        total_cost=snapshot.total_cost,
        purchase_date=snapshot.purchase_date,
        expiry_date=snapshot.expiry_date,
        status=snapshot.status.value,
        auto_renew=snapshot.auto_renew,
        auto_renew_duration_type=snapshot.auto_renew_duration_type,
    )


def _operation_data(result: PackageOperationResult) -> dict[str, Any]:
    view = PackageOperationView(
        package=_package_view(result.package),
        new_balance=result.new_balance,
        is_active=result.is_active,
    )
    return view.model_dump(mode="json")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@router.post("/subscribe")
async def subscribe(
    payload: SubscribeRequest,
    identity: AccountIdentity = Depends(get_current_account),
) -> dict[str, Any]:
    weekly_prices, enforce_price = _pricing()
    now_utc = _now_utc()

    async def work(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.subscribe(
            session,
            account_id=identity.account_id,
            tier=payload.tier,
            duration_type=payload.duration_type,
            total_cost=payload.total_cost,
            now_utc=now_utc,
            weekly_prices=weekly_prices,
            enforce_catalog_price=enforce_price,
        )

    result = await run_in_transaction(work, max_attempts=get_settings().ledger_max_attempts)
    return success_body(message="Subscription successful", data=_operation_data(result))


@router.post("/upgrade")
async def upgrade(
    payload: UpgradeRequest,
    identity: AccountIdentity = Depends(get_current_account),
) -> dict[str, Any]:
    weekly_prices, enforce_price = _pricing()
    now_utc = _now_utc()

    async def work(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.upgrade(
            session,
            account_id=identity.account_id,
            tier=payload.tier,
            duration_type=payload.duration_type,
            total_cost=payload.total_cost,
            now_utc=now_utc,
            weekly_prices=weekly_prices,
            enforce_catalog_price=enforce_price,
        )

    result = await run_in_transaction(work, max_attempts=get_settings().ledger_max_attempts)
    return success_body(message="Package upgraded successfully", data=_operation_data(result))


@router.post("/renew")
async def renew(
    payload: RenewRequest,
    identity: AccountIdentity = Depends(get_current_account),
) -> dict[str, Any]:
    weekly_prices, enforce_price = _pricing()
    now_utc = _now_utc()

    async def work(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.renew(
            session,
            account_id=identity.account_id,
            duration_type=payload.duration_type,
            total_cost=payload.total_cost,
            now_utc=now_utc,
            weekly_prices=weekly_prices,
            enforce_catalog_price=enforce_price,
        )

    result = await run_in_transaction(work, max_attempts=get_settings().ledger_max_attempts)
    return success_body(message="Package renewed successfully", data=_operation_data(result))


@router.post("/auto-renew")
async def set_auto_renew(
    payload: AutoRenewRequest,
    identity: AccountIdentity = Depends(get_current_account),
) -> dict[str, Any]:
    now_utc = _now_utc()

    async def work(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.set_auto_renew(
            session,
            account_id=identity.account_id,
            enabled=payload.enabled,
            duration_type=payload.duration_type,
            now_utc=now_utc,
        )

    result = await run_in_transaction(work, max_attempts=get_settings().ledger_max_attempts)
    message = "Auto-renew enabled" if payload.enabled else "Auto-renew disabled"
    return success_body(message=message, data=_operation_data(result))


@router.post("/cancel")
async def cancel(identity: AccountIdentity = Depends(get_current_account)) -> dict[str, Any]:
    now_utc = _now_utc()

    async def work(session: AsyncSession) -> PackageOperationResult:
        return await SubscriptionService.cancel(session, account_id=identity.account_id, now_utc=now_utc)

    result = await run_in_transaction(work, max_attempts=get_settings().ledger_max_attempts)
    return success_body(message="Package cancelled", data=_operation_data(result))


@router.get("/current")
async def get_current_package(identity: AccountIdentity = Depends(get_current_account)) -> dict[str, Any]:
    async with SessionLocal.begin() as session:
        snapshot = await SubscriptionService.get_current_package(session, account_id=identity.account_id)

    data = _package_view(snapshot).model_dump(mode="json") if snapshot is not None and snapshot.tier else None
    return success_body(message="Current package", data={"package": data})


@router.get("/history")
async def get_package_history(
    identity: AccountIdentity = Depends(get_current_account),
    limit: int = Query(default=100, ge=1, le=500),
) -> dict[str, Any]:
    async with SessionLocal.begin() as session:
        items = await SubscriptionService.get_package_history(
            session,
            account_id=identity.account_id,
            limit=limit,
        )

    history = [
        PackageHistoryView(
            tier=item.tier,
            duration_type=item.duration_type,
            total_cost=item.total_cost,
            purchase_date=item.purchase_date,
            expiry_date=item.expiry_date,
            action=item.action,
            created_at=item.created_at,
        ).model_dump(mode="json")
        for item in items
    ]
    return success_body(message="Package history", data={"history": history, "total": len(history)})


@router.get("/catalog")
async def get_catalog() -> dict[str, Any]:
    weekly_prices, _ = _pricing()
    entries = [
        CatalogEntryView(
            tier=entry.tier,
            duration_type=entry.duration_type,
            weekly_price=entry.weekly_price,
            total_cost=entry.total_cost,
            days=entry.days,
        ).model_dump(mode="json")
        for entry in build_catalog(weekly_prices)
    ]
    return success_body(message="Package catalog", data={"packages": entries})
