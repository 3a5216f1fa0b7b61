from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.payment_history import PaymentHistoryEntry
from app.db.repo.accounts_repo import AccountsRepo
from app.db.repo.payment_history_repo import PaymentHistoryRepo
from app.db.repo.processed_transactions_repo import ProcessedTransactionsRepo
from app.economy.errors import InsufficientBalanceError, ValidationError
from app.economy.wallet.errors import AccountNotFoundError, DuplicateTransactionError, InvalidAmountError
from app.economy.wallet.types import (
    MAX_AMOUNT,
    PaymentEntryStatus,
    PaymentEntryType,
    PaymentHistoryItem,
    PaymentHistoryPage,
    WalletBalance,
    WalletCreditResult,
    WalletDebitResult,
)

logger = structlog.get_logger(__name__)

MAX_TRANSACTION_ID_LENGTH = 64


def _validate_amount(amount: object) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or not 0 < amount <= MAX_AMOUNT:
        raise InvalidAmountError
    return amount


def _validate_transaction_id(transaction_id: object) -> str:
    if not isinstance(transaction_id, str):
        raise ValidationError("Amount and transaction ID are required")
    normalized = transaction_id.strip()
    if not normalized or len(normalized) > MAX_TRANSACTION_ID_LENGTH:
        raise ValidationError("Amount and transaction ID are required")
    return normalized


def _as_history_item(entry: PaymentHistoryEntry) -> PaymentHistoryItem:
    return PaymentHistoryItem(
        transaction_id=entry.transaction_id,
        checkout_request_id=entry.checkout_request_id,
        amount=entry.amount,
        balance_after=entry.balance_after,
        phone=entry.phone,
        entry_type=entry.entry_type,
        status=entry.status,
        description=entry.description,
        created_at=entry.created_at,
    )


class WalletService:
    @staticmethod
    async def credit(
        session: AsyncSession,
        *,
        account_id: int,
        transaction_id: str,
        amount: int,
        now_utc: datetime,
        checkout_request_id: str | None = None,
        phone: str | None = None,
        description: str = "M-Pesa deposit",
    ) -> WalletCreditResult:
        amount = _validate_amount(amount)
        transaction_id = _validate_transaction_id(transaction_id)

        account = await AccountsRepo.get_by_id_for_update(session, account_id)
        if account is None:
            raise AccountNotFoundError

        marked = await ProcessedTransactionsRepo.try_mark_processed(
            session,
            account_id=account_id,
            transaction_id=transaction_id,
            processed_at=now_utc,
        )
        if not marked:
            logger.info(
                "wallet_credit_duplicate",
                account_id=account_id,
                transaction_id=transaction_id,
            )
            raise DuplicateTransactionError

        new_balance = await AccountsRepo.increment_balance(
            session,
            account_id=account_id,
            amount=amount,
            now_utc=now_utc,
        )
        if new_balance is None:
            raise AccountNotFoundError

        await PaymentHistoryRepo.create(
            session,
            entry=PaymentHistoryEntry(
                account_id=account_id,
                transaction_id=transaction_id,
                checkout_request_id=checkout_request_id,
                amount=amount,
                balance_after=new_balance,
                phone=phone,
                entry_type=PaymentEntryType.DEPOSIT.value,
                status=PaymentEntryStatus.COMPLETED.value,
                description=description,
                created_at=now_utc,
            ),
        )
        logger.info(
            "wallet_credit_applied",
            account_id=account_id,
            transaction_id=transaction_id,
            amount=amount,
            new_balance=new_balance,
        )
        return WalletCreditResult(
            transaction_id=transaction_id,
            amount_added=amount,
            new_balance=new_balance,
        )

    @staticmethod
    async def debit(
        session: AsyncSession,
        *,
        account_id: int,
        amount: int,
        description: str,
        reference_id: str,
        now_utc: datetime,
        entry_type: PaymentEntryType = PaymentEntryType.SUBSCRIPTION,
    ) -> WalletDebitResult:
        amount = _validate_amount(amount)

        new_balance = await AccountsRepo.decrement_balance_if_sufficient(
            session,
            account_id=account_id,
            amount=amount,
            now_utc=now_utc,
        )
        if new_balance is None:
            account = await AccountsRepo.get_by_id(session, account_id)
            if account is None:
                raise AccountNotFoundError
            raise InsufficientBalanceError

        await PaymentHistoryRepo.create(
            session,
            entry=PaymentHistoryEntry(
                account_id=account_id,
                transaction_id=reference_id,
                checkout_request_id=None,
                amount=-amount,
                balance_after=new_balance,
                phone=None,
                entry_type=entry_type.value,
                status=PaymentEntryStatus.COMPLETED.value,
                description=description,
                created_at=now_utc,
            ),
        )
        return WalletDebitResult(
            transaction_id=reference_id,
            amount_debited=amount,
            new_balance=new_balance,
        )

    @staticmethod
    async def get_balance(session: AsyncSession, *, account_id: int) -> WalletBalance:
        account = await AccountsRepo.get_by_id(session, account_id)
        if account is None:
            raise AccountNotFoundError
        return WalletBalance(balance=account.wallet_balance, currency=account.wallet_currency)

    @staticmethod
    async def get_payment_history(
        session: AsyncSession,
        *,
        account_id: int,
        limit: int = 50,
        offset: int = 0,
    ) -> PaymentHistoryPage:
        account = await AccountsRepo.get_by_id(session, account_id)
        if account is None:
            raise AccountNotFoundError

        entries = await PaymentHistoryRepo.list_by_account(
            session,
            account_id=account_id,
            limit=limit,
            offset=offset,
        )
        total = await PaymentHistoryRepo.count_by_account(session, account_id=account_id)
        return PaymentHistoryPage(items=[_as_history_item(entry) for entry in entries], total=total)
