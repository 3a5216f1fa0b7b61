from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from app.core.config import get_settings

logger = structlog.get_logger(__name__)

SLACK_COLORS = {
    "critical": "#B42318",
    "error": "#F04438",
    "warning": "#F79009",
    "info": "#1570EF",
}
CHANNEL_URL_SETTINGS = {
    "slack": "ops_alert_slack_webhook_url",
    "generic": "ops_alert_webhook_url",
}


@dataclass(frozen=True)
class AlertPolicy:
    severity: str
    channels: tuple[str, ...] = ("generic",)


FALLBACK_POLICY = AlertPolicy(severity="warning")
ALERT_POLICIES = {
    # Unattended renewals stopped converging; someone has to look at the failing accounts.
    "package_expiration_sweep_errors": AlertPolicy(severity="error", channels=("slack", "generic")),
    # A paid STK callback could not be stored; the top-up may need a manual credit.
    "mpesa_callback_persist_failed": AlertPolicy(severity="critical", channels=("slack", "generic")),
}


@dataclass(frozen=True)
class OpsAlert:
    event: str
    payload: dict[str, object]
    policy: AlertPolicy
    environment: str
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def body_for(self, channel: str) -> dict[str, Any]:
        if channel == "slack":
            return self._slack_body()
        if channel == "generic":
            return self._generic_body()
        raise ValueError(f"Unsupported alert channel: {channel}")

    def _generic_body(self) -> dict[str, Any]:
        return {
            "event": self.event,
            "severity": self.policy.severity,
            "environment": self.environment,
            "sent_at": self.sent_at.isoformat(),
            "payload": self.payload,
        }

    def _slack_body(self) -> dict[str, Any]:
        severity = self.policy.severity
        details = json.dumps(self.payload, sort_keys=True, separators=(",", ":"), default=str)
        return {
            "text": f"[{severity.upper()}] {self.event}",
            "attachments": [
                {
                    "color": SLACK_COLORS.get(severity, SLACK_COLORS["warning"]),
                    "fields": [
                        {"title": "Environment", "value": self.environment, "short": True},
                        {"title": "Sent At", "value": self.sent_at.isoformat(), "short": True},
                        {"title": "Payload", "value": details, "short": False},
                    ],
                }
            ],
        }


def _configured_url(settings: object, channel: str) -> str:
    value = getattr(settings, CHANNEL_URL_SETTINGS[channel], "")
    return value.strip() if isinstance(value, str) else ""


def _delivery_plan(policy: AlertPolicy, settings: object) -> list[tuple[str, str]]:
    plan = [
        (channel, url)
        for channel in policy.channels
        if (url := _configured_url(settings, channel))
    ]
    if plan:
        return plan

    generic_url = _configured_url(settings, "generic")
    return [("generic", generic_url)] if generic_url else []


async def send_ops_alert(*, event: str, payload: dict[str, object]) -> bool:
    """Fan an operational alert out to the configured webhooks.

    Returns True when at least one channel accepted the alert. Delivery
    failures are logged and never raised to the caller.
    """
    settings = get_settings()
    policy = ALERT_POLICIES.get(event, FALLBACK_POLICY)
    plan = _delivery_plan(policy, settings)
    if not plan:
        return False

    alert = OpsAlert(
        event=event,
        payload=payload,
        policy=policy,
        environment=getattr(settings, "app_env", "") or "dev",
    )
    delivered_to: list[str] = []
    failed_to: list[str] = []
    async with httpx.AsyncClient(timeout=5.0) as client:
        for channel, url in plan:
            try:
                response = await client.post(url, json=alert.body_for(channel))
                response.raise_for_status()
            except Exception:
                logger.exception("ops_alert_delivery_failed", alert_event=event, provider=channel)
                failed_to.append(channel)
            else:
                delivered_to.append(channel)

    log_fields = {"alert_event": event, "severity": policy.severity, "failed_to": failed_to}
    if not delivered_to:
        logger.error("ops_alert_delivery_exhausted", **log_fields)
        return False

    logger.info("ops_alert_delivered", delivered_to=delivered_to, **log_fields)
    return True
