from __future__ import annotations

from enum import Enum


class AccountCategory(str, Enum):
    ESCORT = "escort"
    MASSEUSE = "masseuse"
    OF_MODEL = "of-model"
    SPA = "spa"

    @classmethod
    def parse(cls, raw_value: object) -> AccountCategory | None:
        if isinstance(raw_value, cls):
            return raw_value
        if not isinstance(raw_value, str):
            return None
        normalized = raw_value.strip().lower()
        for category in cls:
            if category.value == normalized:
                return category
        return None


ACCOUNT_CATEGORY_VALUES: tuple[str, ...] = tuple(category.value for category in AccountCategory)
