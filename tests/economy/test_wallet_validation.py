from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.economy.errors import ValidationError
from app.economy.wallet import service as wallet_service
from app.economy.wallet.errors import InvalidAmountError
from app.economy.wallet.service import WalletService

NOW_UTC = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("amount", [0, -10, 10.5, "100", True, None, 10**12 + 1])
def test_validate_amount_rejects_non_positive_or_non_integer(amount: object) -> None:
    with pytest.raises(InvalidAmountError):
        wallet_service._validate_amount(amount)


def test_validate_amount_accepts_positive_int() -> None:
    assert wallet_service._validate_amount(250) == 250
    assert wallet_service._validate_amount(10**12) == 10**12


@pytest.mark.parametrize("transaction_id", [None, "", "   ", "x" * 65, 123])
def test_validate_transaction_id_rejects_bad_values(transaction_id: object) -> None:
    with pytest.raises(ValidationError):
        wallet_service._validate_transaction_id(transaction_id)


def test_validate_transaction_id_strips_whitespace() -> None:
    assert wallet_service._validate_transaction_id("  QWE123  ") == "QWE123"


@pytest.mark.asyncio
async def test_credit_validates_before_touching_the_session() -> None:
    class _UntouchableSession:
        def __getattr__(self, name: str):
            raise AssertionError(f"session.{name} should not be used")

    with pytest.raises(InvalidAmountError):
        await WalletService.credit(
            _UntouchableSession(),  # type: ignore[arg-type]
            account_id=1,
            transaction_id="QWE123",
            amount=0,
            now_utc=NOW_UTC,
        )


@pytest.mark.asyncio
async def test_debit_rejects_non_positive_amount() -> None:
    with pytest.raises(InvalidAmountError):
        await WalletService.debit(
            object(),  # type: ignore[arg-type]
            account_id=1,
            amount=-1,
            description="New Subscription: basic weekly",
            reference_id="SUB_abc",
            now_utc=NOW_UTC,
        )
