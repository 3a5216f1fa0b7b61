from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.account_categories import ACCOUNT_CATEGORY_VALUES
from app.db.models.base import Base

CATEGORY_SQL_LIST = ",".join(f"'{value}'" for value in ACCOUNT_CATEGORY_VALUES)


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(
            f"category IN ({CATEGORY_SQL_LIST})",
            name="ck_accounts_category",
        ),
        CheckConstraint("wallet_balance >= 0", name="ck_accounts_wallet_balance_non_negative"),
        CheckConstraint("services_count >= 0", name="ck_accounts_services_count_non_negative"),
        Index("idx_accounts_category", "category"),
        Index("idx_accounts_is_active", "is_active"),
        Index("uq_accounts_username", "username", unique=True, postgresql_where=text("username IS NOT NULL")),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    username: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))

    gender: Mapped[str | None] = mapped_column(String(32), nullable=True)
    sexual_orientation: Mapped[str | None] = mapped_column(String(32), nullable=True)
    age: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    nationality: Mapped[str | None] = mapped_column(String(64), nullable=True)
    service_type: Mapped[str | None] = mapped_column(String(64), nullable=True)

    location_country: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location_county: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    location_areas: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
    )
    phone_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    services_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    is_deactivated: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))

    wallet_balance: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))
    wallet_currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default=text("'KES'"))
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
