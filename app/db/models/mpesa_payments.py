from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class MpesaPayment(Base):
    __tablename__ = "mpesa_payments"
    __table_args__ = (
        CheckConstraint(
            "status IN ('success','insufficient','cancelled','failed','timedout','unknown')",
            name="ck_mpesa_payments_status",
        ),
        Index("uq_mpesa_payments_checkout_request", "checkout_request_id", unique=True),
        Index("idx_mpesa_payments_transaction", "transaction_id"),
        Index("idx_mpesa_payments_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    checkout_request_id: Mapped[str] = mapped_column(String(64), nullable=False)
    result_code: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    amount: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    raw_payload: Mapped[dict[str, object]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
