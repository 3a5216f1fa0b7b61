from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.mpesa_payments import MpesaPayment


class MpesaPaymentsRepo:
    @staticmethod
    async def get_by_checkout_request_id(
        session: AsyncSession,
        checkout_request_id: str,
    ) -> MpesaPayment | None:
        stmt = select(MpesaPayment).where(MpesaPayment.checkout_request_id == checkout_request_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_if_absent(
        session: AsyncSession,
        *,
        checkout_request_id: str,
        result_code: int,
        status: str,
        phone: str | None,
        amount: int | None,
        transaction_id: str | None,
        raw_payload: dict[str, object],
        created_at: datetime,
    ) -> int | None:
        stmt = (
            postgresql_insert(MpesaPayment)
            .values(
                checkout_request_id=checkout_request_id,
                result_code=result_code,
                status=status,
                phone=phone,
                amount=amount,
                transaction_id=transaction_id,
                raw_payload=raw_payload,
                created_at=created_at,
            )
            .on_conflict_do_nothing(index_elements=[MpesaPayment.checkout_request_id])
            .returning(MpesaPayment.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
