from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

import httpx
import structlog

from app.core.config import Settings
from app.economy.errors import EngineError, ValidationError

logger = structlog.get_logger(__name__)

MPESA_TIMEZONE = ZoneInfo("Africa/Nairobi")
PHONE_PATTERN = re.compile(r"^254\d{9}$")


class PaymentProviderError(EngineError):
    status_code = 502
    code = "E_PAYMENT_PROVIDER"
    message = "Payment provider request failed"


@dataclass(frozen=True, slots=True)
class StkPushResult:
    checkout_request_id: str | None
    merchant_request_id: str | None
    response_code: str | None
    customer_message: str | None
    raw: dict[str, Any]


@dataclass(frozen=True, slots=True)
class StkStatusResult:
    checkout_request_id: str
    result_code: int | None
    result_desc: str | None
    raw: dict[str, Any]


def normalize_phone(phone: str) -> str:
    digits = re.sub(r"[\s+-]", "", phone or "")
    if digits.startswith("0"):
        digits = f"254{digits[1:]}"
    elif len(digits) == 9 and digits[0] in "17":
        digits = f"254{digits}"
    if not PHONE_PATTERN.match(digits):
        raise ValidationError("Invalid phone number")
    return digits


def build_timestamp(now_utc: datetime) -> str:
    return now_utc.astimezone(MPESA_TIMEZONE).strftime("%Y%m%d%H%M%S")


def build_password(*, shortcode: str, passkey: str, timestamp: str) -> str:
    return base64.b64encode(f"{shortcode}{passkey}{timestamp}".encode("utf-8")).decode("ascii")


class MpesaClient:
    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._settings.mpesa_timeout_seconds, transport=self._transport)

    async def _fetch_access_token(self, client: httpx.AsyncClient) -> str:
        credentials = f"{self._settings.mpesa_consumer_key}:{self._settings.mpesa_consumer_secret}"
        auth_header = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        try:
            response = await client.get(
                self._settings.mpesa_auth_url,
                params={"grant_type": "client_credentials"},
                headers={"Authorization": f"Basic {auth_header}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("mpesa_token_request_failed", error_type=type(exc).__name__)
            raise PaymentProviderError("Failed to generate token") from exc

        token = response.json().get("access_token")
        if not isinstance(token, str) or not token:
            raise PaymentProviderError("Failed to generate token")
        return token

    async def _post(self, client: httpx.AsyncClient, url: str, body: dict[str, Any], *, failure: str) -> dict[str, Any]:
        token = await self._fetch_access_token(client)
        try:
            response = await client.post(url, json=body, headers={"Authorization": f"Bearer {token}"})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("mpesa_request_failed", url=url, error_type=type(exc).__name__)
            raise PaymentProviderError(failure) from exc

        payload = response.json()
        if not isinstance(payload, dict):
            raise PaymentProviderError(failure)
        return payload

    async def initiate_stk_push(self, *, phone: str, amount: int, now_utc: datetime | None = None) -> StkPushResult:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Amount must be a positive whole number")
        msisdn = normalize_phone(phone)
        timestamp = build_timestamp(now_utc or datetime.now(timezone.utc))
        shortcode = self._settings.mpesa_shortcode
        body = {
            "BusinessShortCode": shortcode,
            "Password": build_password(shortcode=shortcode, passkey=self._settings.mpesa_passkey, timestamp=timestamp),
            "Timestamp": timestamp,
            "TransactionType": "CustomerBuyGoodsOnline",
            "Amount": amount,
            "PartyA": msisdn,
            "PartyB": self._settings.mpesa_till_number,
            "PhoneNumber": msisdn,
            "CallBackURL": self._settings.mpesa_callback_url,
            "AccountReference": self._settings.mpesa_account_reference,
            "TransactionDesc": "Wallet top-up",
        }
        async with self._client() as client:
            payload = await self._post(
                client,
                self._settings.mpesa_stk_push_url,
                body,
                failure="Failed to initiate STK push",
            )

        logger.info(
            "mpesa_stk_push_initiated",
            checkout_request_id=payload.get("CheckoutRequestID"),
            response_code=payload.get("ResponseCode"),
        )
        return StkPushResult(
            checkout_request_id=payload.get("CheckoutRequestID"),
            merchant_request_id=payload.get("MerchantRequestID"),
            response_code=payload.get("ResponseCode"),
            customer_message=payload.get("CustomerMessage"),
            raw=payload,
        )

    async def query_stk_status(self, *, checkout_request_id: str, now_utc: datetime | None = None) -> StkStatusResult:
        timestamp = build_timestamp(now_utc or datetime.now(timezone.utc))
        shortcode = self._settings.mpesa_shortcode
        body = {
            "BusinessShortCode": shortcode,
            "Password": build_password(shortcode=shortcode, passkey=self._settings.mpesa_passkey, timestamp=timestamp),
            "Timestamp": timestamp,
            "CheckoutRequestID": checkout_request_id,
        }
        async with self._client() as client:
            payload = await self._post(
                client,
                self._settings.mpesa_status_check_url,
                body,
                failure="Failed to check payment status",
            )

        raw_code = payload.get("ResultCode")
        try:
            result_code = int(raw_code) if raw_code is not None else None
        except (TypeError, ValueError):
            result_code = None
        return StkStatusResult(
            checkout_request_id=checkout_request_id,
            result_code=result_code,
            result_desc=payload.get("ResultDesc"),
            raw=payload,
        )
