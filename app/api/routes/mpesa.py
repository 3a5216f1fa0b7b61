from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.api.errors import success_body
from app.core.config import get_settings
from app.db.session import SessionLocal
from app.economy.errors import ValidationError
from app.services.alerts import send_ops_alert
from app.services.identity import AccountIdentity, get_current_account
from app.services.internal_auth import is_valid_internal_token
from app.services.mpesa_client import MpesaClient
from app.services.mpesa_receipts import record_stk_callback
from app.services.payment_notifications import (
    PaymentStatusMessage,
    map_result_code,
    parse_stk_callback,
    payment_channels,
)

router = APIRouter(tags=["mpesa"])
logger = structlog.get_logger(__name__)


class StkPushRequest(BaseModel):
    phone: str = Field(min_length=9, max_length=20)
    amount: int = Field(gt=0)


class PaymentStatusRequest(BaseModel):
    checkout_request_id: str = Field(min_length=1, max_length=64)


def get_mpesa_client() -> MpesaClient:
    return MpesaClient(get_settings())


def _ignored() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ignored"})


@router.post("/mpesa/callback/{callback_token}")
async def mpesa_callback(callback_token: str, request: Request) -> JSONResponse:
    settings = get_settings()
    if not is_valid_internal_token(expected_token=settings.mpesa_callback_token, received_token=callback_token):
        logger.warning("mpesa_callback_invalid_token")
        return _ignored()

    try:
        raw_payload = await request.json()
    except Exception:
        logger.warning("mpesa_callback_invalid_json")
        return _ignored()

    try:
        callback = parse_stk_callback(raw_payload)
    except ValidationError:
        logger.warning("mpesa_callback_malformed")
        return _ignored()

    try:
        async with SessionLocal.begin() as session:
            await record_stk_callback(
                session,
                callback=callback,
                raw_payload=raw_payload,
                now_utc=datetime.now(timezone.utc),
            )
    except Exception:
        logger.exception("mpesa_callback_persist_failed", checkout_request_id=callback.checkout_request_id)
        await send_ops_alert(
            event="mpesa_callback_persist_failed",
            payload={"checkout_request_id": callback.checkout_request_id},
        )
        # The provider retries callbacks that do not get a 2xx.
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "retry"},
        )

    delivered = await payment_channels.notify(callback.checkout_request_id, callback.notification)
    logger.info(
        "mpesa_callback_processed",
        checkout_request_id=callback.checkout_request_id,
        status=callback.notification.status.value,
        channel_notified=delivered,
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ok"})


@router.post("/mpesa/stk")
async def initiate_stk_push(
    payload: StkPushRequest,
    identity: AccountIdentity = Depends(get_current_account),
    client: MpesaClient = Depends(get_mpesa_client),
) -> dict[str, Any]:
    result = await client.initiate_stk_push(phone=payload.phone, amount=payload.amount)
    logger.info(
        "mpesa_stk_push_requested",
        account_id=identity.account_id,
        checkout_request_id=result.checkout_request_id,
    )
    return success_body(
        message="STK push initiated",
        data={
            "checkout_request_id": result.checkout_request_id,
            "merchant_request_id": result.merchant_request_id,
            "response_code": result.response_code,
            "customer_message": result.customer_message,
        },
    )


@router.post("/mpesa/payment-status")
async def query_payment_status(
    payload: PaymentStatusRequest,
    identity: AccountIdentity = Depends(get_current_account),
    client: MpesaClient = Depends(get_mpesa_client),
) -> dict[str, Any]:
    result = await client.query_stk_status(checkout_request_id=payload.checkout_request_id)
    payment_status, message = map_result_code(result.result_code)
    notification = PaymentStatusMessage(status=payment_status, message=message)
    await payment_channels.notify(payload.checkout_request_id, notification)

    return success_body(
        message=message,
        data={
            "checkout_request_id": payload.checkout_request_id,
            "status": payment_status.value,
            "result_code": result.result_code,
            "result_desc": result.result_desc,
        },
    )


@router.websocket("/ws/payments/{checkout_request_id}")
async def payment_updates(websocket: WebSocket, checkout_request_id: str) -> None:
    await websocket.accept()
    payment_channels.register(checkout_request_id, websocket)
    logger.info("payment_channel_opened", checkout_request_id=checkout_request_id)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        payment_channels.unregister(checkout_request_id, websocket)
        logger.info("payment_channel_closed", checkout_request_id=checkout_request_id)
