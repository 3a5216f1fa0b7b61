from __future__ import annotations

from collections.abc import Iterator

import pytest

from app.core.account_categories import AccountCategory
from app.main import app
from app.services.identity import AccountIdentity, get_current_account


@pytest.fixture
def account_identity() -> Iterator[AccountIdentity]:
    identity = AccountIdentity(account_id=101, category=AccountCategory.ESCORT)
    app.dependency_overrides[get_current_account] = lambda: identity
    yield identity
    app.dependency_overrides.pop(get_current_account, None)
