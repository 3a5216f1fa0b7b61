from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Request

from app.api.errors import success_body
from app.core.config import get_settings
from app.economy.errors import ForbiddenError
from app.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)
from app.workers.tasks.packages_expiration import run_package_expiration_sweep_async

router = APIRouter(tags=["internal", "packages"])
logger = structlog.get_logger(__name__)


def _assert_internal_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(request, trusted_proxies=settings.internal_api_trusted_proxies)

    if not is_internal_request_authenticated(request, expected_token=settings.internal_api_token):
        logger.warning("internal_packages_auth_failed", reason="invalid_token", client_ip=client_ip)
        raise ForbiddenError("Unauthorized cron request")

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning("internal_packages_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise ForbiddenError("Unauthorized cron request")


@router.post("/internal/packages/check-expirations")
async def check_expirations(request: Request) -> dict[str, Any]:
    _assert_internal_access(request)

    summary = await run_package_expiration_sweep_async()
    return success_body(
        message=(
            f"Processed expirations: {summary['expired_count']} expired, "
            f"{summary['auto_renewed_count']} auto-renewed"
        ),
        data=summary,
    )
