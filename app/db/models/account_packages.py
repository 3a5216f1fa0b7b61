from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class AccountPackage(Base):
    __tablename__ = "account_packages"
    __table_args__ = (
        CheckConstraint(
            "tier IS NULL OR tier IN ('basic','premium','elite')",
            name="ck_account_packages_tier",
        ),
        CheckConstraint(
            "duration_type IS NULL OR duration_type IN ('weekly','monthly')",
            name="ck_account_packages_duration_type",
        ),
        CheckConstraint(
            "auto_renew_duration_type IS NULL OR auto_renew_duration_type IN ('weekly','monthly')",
            name="ck_account_packages_auto_renew_duration_type",
        ),
        CheckConstraint(
            "status IN ('active','expired','cancelled')",
            name="ck_account_packages_status",
        ),
        CheckConstraint(
            "status <> 'active' OR (expiry_date IS NOT NULL AND purchase_date <= expiry_date)",
            name="ck_account_packages_active_dates",
        ),
        CheckConstraint("total_cost IS NULL OR total_cost >= 0", name="ck_account_packages_total_cost"),
        Index(
            "idx_account_packages_active_expiry",
            "expiry_date",
            postgresql_where=text("status = 'active'"),
        ),
    )

    account_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("accounts.id"), primary_key=True)
    tier: Mapped[str | None] = mapped_column(String(16), nullable=True)
    duration_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    total_cost: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    purchase_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expiry_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    auto_renew: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    auto_renew_duration_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
