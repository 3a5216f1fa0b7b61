from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import structlog

from app.economy.errors import ValidationError

logger = structlog.get_logger(__name__)


class PaymentStatus(str, Enum):
    SUCCESS = "success"
    INSUFFICIENT = "insufficient"
    CANCELLED = "cancelled"
    FAILED = "failed"
    TIMEDOUT = "timedout"
    UNKNOWN = "unknown"


RESULT_CODE_STATUSES: dict[int, tuple[PaymentStatus, str]] = {
    0: (PaymentStatus.SUCCESS, "Payment was successful"),
    1: (
        PaymentStatus.INSUFFICIENT,
        "Balance is insufficient for the transaction. Please top up and try again.",
    ),
    1032: (PaymentStatus.CANCELLED, "Request cancelled by user"),
    2001: (
        PaymentStatus.FAILED,
        "The initiator information is invalid. Please check your PIN and try again",
    ),
    1037: (PaymentStatus.TIMEDOUT, "DS Timeout. Please initiate again and respond Quicker"),
}


@dataclass(frozen=True, slots=True)
class PaymentStatusMessage:
    status: PaymentStatus
    message: str
    phone: str | None = None
    amount: int | None = None
    transaction_id: str | None = None

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.status.value, "message": self.message}
        if self.status == PaymentStatus.SUCCESS and self.transaction_id is not None:
            payload["data"] = {
                "phone": self.phone,
                "amount": self.amount,
                "transaction_id": self.transaction_id,
            }
        return payload


@dataclass(frozen=True, slots=True)
class StkCallback:
    checkout_request_id: str
    result_code: int
    notification: PaymentStatusMessage


def map_result_code(result_code: int | None) -> tuple[PaymentStatus, str]:
    if result_code is None:
        return PaymentStatus.UNKNOWN, "Payment status is unknown"
    return RESULT_CODE_STATUSES.get(result_code, (PaymentStatus.UNKNOWN, "Payment status is unknown"))


def parse_result_code(raw_value: object) -> int | None:
    if isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, int):
        return raw_value
    if isinstance(raw_value, str):
        try:
            return int(raw_value.strip())
        except ValueError:
            return None
    return None


def _metadata_value(items: object, name: str) -> object:
    if not isinstance(items, list):
        return None
    for item in items:
        if isinstance(item, dict) and item.get("Name") == name:
            return item.get("Value")
    return None


def _as_int(value: object) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_stk_callback(payload: object) -> StkCallback:
    body = payload.get("Body") if isinstance(payload, dict) else None
    stk_callback = body.get("stkCallback") if isinstance(body, dict) else None
    if not isinstance(stk_callback, dict):
        raise ValidationError("Malformed STK callback")

    checkout_request_id = stk_callback.get("CheckoutRequestID")
    if not isinstance(checkout_request_id, str) or not checkout_request_id.strip():
        raise ValidationError("Malformed STK callback")

    result_code = parse_result_code(stk_callback.get("ResultCode"))
    status, message = map_result_code(result_code)
    if status != PaymentStatus.SUCCESS:
        return StkCallback(
            checkout_request_id=checkout_request_id.strip(),
            result_code=result_code if result_code is not None else -1,
            notification=PaymentStatusMessage(status=status, message=message),
        )

    metadata = stk_callback.get("CallbackMetadata")
    items = metadata.get("Item") if isinstance(metadata, dict) else None
    phone = _metadata_value(items, "PhoneNumber")
    receipt = _metadata_value(items, "MpesaReceiptNumber")
    return StkCallback(
        checkout_request_id=checkout_request_id.strip(),
        result_code=0,
        notification=PaymentStatusMessage(
            status=status,
            message=message,
            phone=str(phone) if phone is not None else None,
            amount=_as_int(_metadata_value(items, "Amount")),
            transaction_id=str(receipt) if receipt is not None else None,
        ),
    )


class PaymentChannel(Protocol):
    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class PaymentChannelRegistry:
    """In-process live channels keyed by checkout request id.

    A newer connection for the same id replaces the older one.
    """

    def __init__(self) -> None:
        self._channels: dict[str, PaymentChannel] = {}

    def register(self, checkout_request_id: str, channel: PaymentChannel) -> None:
        self._channels[checkout_request_id] = channel

    def unregister(self, checkout_request_id: str, channel: PaymentChannel) -> None:
        if self._channels.get(checkout_request_id) is channel:
            del self._channels[checkout_request_id]

    def get(self, checkout_request_id: str) -> PaymentChannel | None:
        return self._channels.get(checkout_request_id)

    async def notify(self, checkout_request_id: str, notification: PaymentStatusMessage) -> bool:
        channel = self.get(checkout_request_id)
        if channel is None:
            return False
        try:
            await channel.send_json(notification.as_payload())
        except Exception:
            logger.warning(
                "payment_channel_send_failed",
                checkout_request_id=checkout_request_id,
                exc_info=True,
            )
            self.unregister(checkout_request_id, channel)
            return False
        return True


payment_channels = PaymentChannelRegistry()
