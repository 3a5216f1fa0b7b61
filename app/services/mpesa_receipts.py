from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.mpesa_payments_repo import MpesaPaymentsRepo
from app.services.payment_notifications import StkCallback

logger = structlog.get_logger(__name__)


async def record_stk_callback(
    session: AsyncSession,
    *,
    callback: StkCallback,
    raw_payload: dict[str, object],
    now_utc: datetime,
) -> bool:
    """Store the provider receipt once per checkout request id.

    Returns False for a replayed callback. The wallet is not touched here.
    """
    notification = callback.notification
    payment_id = await MpesaPaymentsRepo.create_if_absent(
        session,
        checkout_request_id=callback.checkout_request_id,
        result_code=callback.result_code,
        status=notification.status.value,
        phone=notification.phone,
        amount=notification.amount,
        transaction_id=notification.transaction_id,
        raw_payload=raw_payload,
        created_at=now_utc,
    )
    if payment_id is None:
        logger.info("mpesa_callback_replayed", checkout_request_id=callback.checkout_request_id)
        return False

    logger.info(
        "mpesa_callback_recorded",
        checkout_request_id=callback.checkout_request_id,
        status=notification.status.value,
        transaction_id=notification.transaction_id,
    )
    return True
