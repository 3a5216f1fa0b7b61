from __future__ import annotations

from datetime import datetime

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.processed_transactions import ProcessedTransaction


class ProcessedTransactionsRepo:
    @staticmethod
    async def try_mark_processed(
        session: AsyncSession,
        *,
        account_id: int,
        transaction_id: str,
        processed_at: datetime,
    ) -> bool:
        stmt = (
            postgresql_insert(ProcessedTransaction)
            .values(
                account_id=account_id,
                transaction_id=transaction_id,
                processed_at=processed_at,
            )
            .on_conflict_do_nothing(
                index_elements=[
                    ProcessedTransaction.account_id,
                    ProcessedTransaction.transaction_id,
                ]
            )
            .returning(ProcessedTransaction.transaction_id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
