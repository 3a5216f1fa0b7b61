from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

# Largest amount (in whole currency units) any single wallet or package operation may carry.
MAX_AMOUNT = 10**12


class PaymentEntryType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    PAYMENT = "payment"
    SUBSCRIPTION = "subscription"


class PaymentEntryStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class WalletCreditResult:
    transaction_id: str
    amount_added: int
    new_balance: int


@dataclass(slots=True)
class WalletDebitResult:
    transaction_id: str
    amount_debited: int
    new_balance: int


@dataclass(slots=True)
class WalletBalance:
    balance: int
    currency: str


@dataclass(slots=True)
class PaymentHistoryItem:
    transaction_id: str
    checkout_request_id: str | None
    amount: int
    balance_after: int
    phone: str | None
    entry_type: str
    status: str
    description: str
    created_at: datetime


@dataclass(slots=True)
class PaymentHistoryPage:
    items: list[PaymentHistoryItem]
    total: int
