from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class PaymentHistoryEntry(Base):
    __tablename__ = "payment_history"
    __table_args__ = (
        CheckConstraint("amount <> 0", name="ck_payment_history_amount_non_zero"),
        CheckConstraint(
            "entry_type IN ('deposit','withdrawal','payment','subscription')",
            name="ck_payment_history_entry_type",
        ),
        CheckConstraint(
            "status IN ('pending','completed','failed')",
            name="ck_payment_history_status",
        ),
        CheckConstraint("balance_after >= 0", name="ck_payment_history_balance_after_non_negative"),
        Index("idx_payment_history_account_created", "account_id", "created_at"),
        Index("idx_payment_history_checkout_request", "checkout_request_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    account_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("accounts.id"), nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(64), nullable=False)
    checkout_request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    entry_type: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
