from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.repo.account_packages_repo import AccountPackagesRepo
from app.db.session import SessionLocal
from app.economy.packages.service import SubscriptionService
from app.economy.packages.types import ExpirationOutcome, ExpirationResult
from app.economy.transactions import run_in_transaction
from app.services.alerts import send_ops_alert
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app
from app.workers.tasks.packages_expiration_schedule import configure_packages_expiration_schedule

logger = structlog.get_logger(__name__)


async def _list_due_page(*, now_utc: datetime, after_account_id: int | None, limit: int) -> list[int]:
    async with SessionLocal.begin() as session:
        return await AccountPackagesRepo.list_due_account_ids(
            session,
            now_utc=now_utc,
            after_account_id=after_account_id,
            limit=limit,
        )


async def _process_account(account_id: int, *, now_utc: datetime, max_attempts: int) -> ExpirationOutcome:
    async def work(session: AsyncSession) -> ExpirationOutcome:
        return await SubscriptionService.process_expiration(session, account_id=account_id, now_utc=now_utc)

    return await run_in_transaction(work, max_attempts=max_attempts)


async def run_package_expiration_sweep_async(
    *,
    batch_size: int | None = None,
    now_utc: datetime | None = None,
) -> dict[str, int]:
    settings = get_settings()
    resolved_batch_size = max(1, int(batch_size or settings.expiration_sweep_batch_size))
    sweep_now = now_utc or datetime.now(timezone.utc)

    summary: dict[str, int] = {
        "examined": 0,
        "expired_count": 0,
        "auto_renewed_count": 0,
        "skipped": 0,
        "errors": 0,
    }
    after_account_id: int | None = None
    while True:
        account_ids = await _list_due_page(
            now_utc=sweep_now,
            after_account_id=after_account_id,
            limit=resolved_batch_size,
        )
        if not account_ids:
            break

        for account_id in account_ids:
            summary["examined"] += 1
            try:
                outcome = await _process_account(
                    account_id,
                    now_utc=sweep_now,
                    max_attempts=settings.ledger_max_attempts,
                )
            except Exception:
                summary["errors"] += 1
                logger.exception("package_expiration_account_failed", account_id=account_id)
                continue

            if outcome.result == ExpirationResult.AUTO_RENEWED:
                summary["auto_renewed_count"] += 1
            elif outcome.result == ExpirationResult.EXPIRED:
                summary["expired_count"] += 1
            else:
                summary["skipped"] += 1

        if len(account_ids) < resolved_batch_size:
            break
        after_account_id = account_ids[-1]

    if summary["errors"] > 0:
        await send_ops_alert(event="package_expiration_sweep_errors", payload=summary)
        logger.warning("package_expiration_sweep_finished_with_errors", **summary)
    else:
        logger.info("package_expiration_sweep_finished", **summary)
    return summary


@celery_app.task(name="app.workers.tasks.packages_expiration.run_package_expiration_sweep")
def run_package_expiration_sweep(batch_size: int | None = None) -> dict[str, int]:
    return run_async_job(
        run_package_expiration_sweep_async(batch_size=batch_size),
        job_name="package_expiration_sweep",
    )


configure_packages_expiration_schedule(celery_app)
