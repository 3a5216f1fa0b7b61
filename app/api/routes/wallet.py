from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.errors import success_body
from app.core.config import get_settings
from app.db.session import SessionLocal
from app.economy.transactions import run_in_transaction
from app.economy.wallet.service import WalletService
from app.economy.wallet.types import MAX_AMOUNT, WalletCreditResult
from app.services.identity import AccountIdentity, get_current_account

router = APIRouter(prefix="/mpesa", tags=["wallet"])


class UpdateBalanceRequest(BaseModel):
    amount: int = Field(gt=0, le=MAX_AMOUNT)
    transaction_id: str = Field(min_length=1, max_length=64)
    checkout_request_id: str | None = Field(default=None, max_length=64)
    phone: str | None = Field(default=None, max_length=20)


class PaymentHistoryItemView(BaseModel):
    transaction_id: str
    checkout_request_id: str | None
    amount: int
    balance_after: int = Field(ge=0)
    phone: str | None
    type: str
    status: str
    description: str
    created_at: datetime


@router.post("/update-balance")
async def update_balance(
    payload: UpdateBalanceRequest,
    identity: AccountIdentity = Depends(get_current_account),
) -> dict[str, Any]:
    now_utc = datetime.now(timezone.utc)

    async def work(session: AsyncSession) -> WalletCreditResult:
        return await WalletService.credit(
            session,
            account_id=identity.account_id,
            transaction_id=payload.transaction_id,
            amount=payload.amount,
            checkout_request_id=payload.checkout_request_id,
            phone=payload.phone,
            now_utc=now_utc,
        )

    result = await run_in_transaction(work, max_attempts=get_settings().ledger_max_attempts)
    return success_body(
        message="Wallet updated successfully",
        data={
            "new_balance": result.new_balance,
            "transaction_id": result.transaction_id,
            "amount_added": result.amount_added,
        },
    )


@router.get("/wallet/balance")
async def get_wallet_balance(identity: AccountIdentity = Depends(get_current_account)) -> dict[str, Any]:
    async with SessionLocal.begin() as session:
        balance = await WalletService.get_balance(session, account_id=identity.account_id)

    return success_body(
        message="Wallet balance",
        data={"balance": balance.balance, "currency": balance.currency},
    )


@router.get("/wallet/history")
async def get_wallet_history(
    identity: AccountIdentity = Depends(get_current_account),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> dict[str, Any]:
    async with SessionLocal.begin() as session:
        page = await WalletService.get_payment_history(
            session,
            account_id=identity.account_id,
            limit=limit,
            offset=offset,
        )

    history = [
        PaymentHistoryItemView(
            transaction_id=item.transaction_id,
            checkout_request_id=item.checkout_request_id,
            amount=item.amount,
            balance_after=item.balance_after,
            phone=item.phone,
            type=item.entry_type,
            status=item.status,
            description=item.description,
            created_at=item.created_at,
        ).model_dump(mode="json")
        for item in page.items
    ]
    return success_body(
        message="Payment history",
        data={"payment_history": history, "total_transactions": page.total},
    )
