"""m1_accounts_wallet_packages

Revision ID: 3a6c9e1f2b47
Revises:
Create Date: 2026-10-12 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3a6c9e1f2b47"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("username", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("is_email_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("gender", sa.String(32), nullable=True),
        sa.Column("sexual_orientation", sa.String(32), nullable=True),
        sa.Column("age", sa.SmallInteger(), nullable=True),
        sa.Column("nationality", sa.String(64), nullable=True),
        sa.Column("service_type", sa.String(64), nullable=True),
        sa.Column("location_country", sa.String(64), nullable=True),
        sa.Column("location_county", sa.String(64), nullable=True),
        sa.Column("location_name", sa.String(128), nullable=True),
        sa.Column(
            "location_areas",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("phone_number", sa.String(20), nullable=True),
        sa.Column("profile_image_url", sa.Text(), nullable=True),
        sa.Column("services_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_deactivated", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("wallet_balance", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("wallet_currency", sa.String(3), nullable=False, server_default=sa.text("'KES'")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("category IN ('escort','masseuse','of-model','spa')", name="ck_accounts_category"),
        sa.CheckConstraint("wallet_balance >= 0", name="ck_accounts_wallet_balance_non_negative"),
        sa.CheckConstraint("services_count >= 0", name="ck_accounts_services_count_non_negative"),
    )
    op.create_index("idx_accounts_category", "accounts", ["category"])
    op.create_index("idx_accounts_is_active", "accounts", ["is_active"])
    op.create_index(
        "uq_accounts_username",
        "accounts",
        ["username"],
        unique=True,
        postgresql_where=sa.text("username IS NOT NULL"),
    )

    op.create_table(
        "account_packages",
        sa.Column("account_id", sa.BigInteger(), nullable=False),
        sa.Column("tier", sa.String(16), nullable=True),
        sa.Column("duration_type", sa.String(16), nullable=True),
        sa.Column("total_cost", sa.BigInteger(), nullable=True),
        sa.Column("purchase_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("auto_renew", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("auto_renew_duration_type", sa.String(16), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("tier IS NULL OR tier IN ('basic','premium','elite')", name="ck_account_packages_tier"),
        sa.CheckConstraint(
            "duration_type IS NULL OR duration_type IN ('weekly','monthly')",
            name="ck_account_packages_duration_type",
        ),
        sa.CheckConstraint(
            "auto_renew_duration_type IS NULL OR auto_renew_duration_type IN ('weekly','monthly')",
            name="ck_account_packages_auto_renew_duration_type",
        ),
        sa.CheckConstraint("status IN ('active','expired','cancelled')", name="ck_account_packages_status"),
        sa.CheckConstraint(
            "status <> 'active' OR (expiry_date IS NOT NULL AND purchase_date <= expiry_date)",
            name="ck_account_packages_active_dates",
        ),
        sa.CheckConstraint("total_cost IS NULL OR total_cost >= 0", name="ck_account_packages_total_cost"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("account_id"),
    )
    op.create_index(
        "idx_account_packages_active_expiry",
        "account_packages",
        ["expiry_date"],
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "package_history",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("account_id", sa.BigInteger(), nullable=False),
        sa.Column("tier", sa.String(16), nullable=False),
        sa.Column("duration_type", sa.String(16), nullable=False),
        sa.Column("total_cost", sa.BigInteger(), nullable=False),
        sa.Column("purchase_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("action", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "action IN ('subscribe','upgrade','renew','auto-renew','expire','cancel')",
            name="ck_package_history_action",
        ),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
    )
    op.create_index("idx_package_history_account_created", "package_history", ["account_id", "created_at"])

    op.create_table(
        "payment_history",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("account_id", sa.BigInteger(), nullable=False),
        sa.Column("transaction_id", sa.String(64), nullable=False),
        sa.Column("checkout_request_id", sa.String(64), nullable=True),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("balance_after", sa.BigInteger(), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("entry_type", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount <> 0", name="ck_payment_history_amount_non_zero"),
        sa.CheckConstraint(
            "entry_type IN ('deposit','withdrawal','payment','subscription')",
            name="ck_payment_history_entry_type",
        ),
        sa.CheckConstraint("status IN ('pending','completed','failed')", name="ck_payment_history_status"),
        sa.CheckConstraint("balance_after >= 0", name="ck_payment_history_balance_after_non_negative"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
    )
    op.create_index("idx_payment_history_account_created", "payment_history", ["account_id", "created_at"])
    op.create_index("idx_payment_history_checkout_request", "payment_history", ["checkout_request_id"])

    op.create_table(
        "processed_transactions",
        sa.Column("account_id", sa.BigInteger(), nullable=False),
        sa.Column("transaction_id", sa.String(64), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("account_id", "transaction_id"),
    )

    op.create_table(
        "mpesa_payments",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("checkout_request_id", sa.String(64), nullable=False),
        sa.Column("result_code", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("amount", sa.BigInteger(), nullable=True),
        sa.Column("transaction_id", sa.String(64), nullable=True),
        sa.Column(
            "raw_payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('success','insufficient','cancelled','failed','timedout','unknown')",
            name="ck_mpesa_payments_status",
        ),
    )
    op.create_index("uq_mpesa_payments_checkout_request", "mpesa_payments", ["checkout_request_id"], unique=True)
    op.create_index("idx_mpesa_payments_transaction", "mpesa_payments", ["transaction_id"])
    op.create_index("idx_mpesa_payments_created_at", "mpesa_payments", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_mpesa_payments_created_at", table_name="mpesa_payments")
    op.drop_index("idx_mpesa_payments_transaction", table_name="mpesa_payments")
    op.drop_index("uq_mpesa_payments_checkout_request", table_name="mpesa_payments")
    op.drop_table("mpesa_payments")

    op.drop_table("processed_transactions")

    op.drop_index("idx_payment_history_checkout_request", table_name="payment_history")
    op.drop_index("idx_payment_history_account_created", table_name="payment_history")
    op.drop_table("payment_history")

    op.drop_index("idx_package_history_account_created", table_name="package_history")
    op.drop_table("package_history")

    op.drop_index("idx_account_packages_active_expiry", table_name="account_packages")
    op.drop_table("account_packages")

    op.drop_index("uq_accounts_username", table_name="accounts")
    op.drop_index("idx_accounts_is_active", table_name="accounts")
    op.drop_index("idx_accounts_category", table_name="accounts")
    op.drop_table("accounts")
