from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class PackageHistoryEntry(Base):
    __tablename__ = "package_history"
    __table_args__ = (
        CheckConstraint(
            "action IN ('subscribe','upgrade','renew','auto-renew','expire','cancel')",
            name="ck_package_history_action",
        ),
        Index("idx_package_history_account_created", "account_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    account_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("accounts.id"), nullable=False)
    tier: Mapped[str] = mapped_column(String(16), nullable=False)
    duration_type: Mapped[str] = mapped_column(String(16), nullable=False)
    total_cost: Mapped[int] = mapped_column(BigInteger, nullable=False)
    purchase_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expiry_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
