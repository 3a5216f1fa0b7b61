from __future__ import annotations

from dataclasses import dataclass, field

from app.core.account_categories import AccountCategory
from app.db.models.accounts import Account
from app.economy.packages.catalog import PackageStatus


@dataclass(slots=True)
class ActivationProfile:
    category: AccountCategory
    is_email_verified: bool
    is_deactivated: bool
    username: str | None = None
    gender: str | None = None
    sexual_orientation: str | None = None
    age: int | None = None
    nationality: str | None = None
    service_type: str | None = None
    location_country: str | None = None
    location_county: str | None = None
    location_name: str | None = None
    location_areas: list[str] = field(default_factory=list)
    phone_number: str | None = None
    profile_image_url: str | None = None
    services_count: int = 0


def _filled(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def activation_profile_from_account(account: Account) -> ActivationProfile:
    category = AccountCategory.parse(account.category)
    if category is None:
        raise ValueError(f"unknown account category: {account.category!r}")
    return ActivationProfile(
        category=category,
        is_email_verified=bool(account.is_email_verified),
        is_deactivated=bool(account.is_deactivated),
        username=account.username,
        gender=account.gender,
        sexual_orientation=account.sexual_orientation,
        age=account.age,
        nationality=account.nationality,
        service_type=account.service_type,
        location_country=account.location_country,
        location_county=account.location_county,
        location_name=account.location_name,
        location_areas=list(account.location_areas or []),
        phone_number=account.phone_number,
        profile_image_url=account.profile_image_url,
        services_count=account.services_count,
    )


def is_profile_complete(profile: ActivationProfile) -> bool:
    if profile.category == AccountCategory.SPA:
        if not (_filled(profile.username) and _filled(profile.service_type)):
            return False
    else:
        if not (
            _filled(profile.gender)
            and _filled(profile.sexual_orientation)
            and profile.age is not None
            and profile.age > 0
            and _filled(profile.nationality)
            and _filled(profile.service_type)
        ):
            return False

    if not (
        _filled(profile.location_country)
        and _filled(profile.location_county)
        and _filled(profile.location_name)
        and any(_filled(area) for area in profile.location_areas)
    ):
        return False

    return _filled(profile.phone_number) and _filled(profile.profile_image_url) and profile.services_count > 0


def recompute_activation(profile: ActivationProfile, *, package_status: PackageStatus | None) -> bool:
    if profile.is_deactivated:
        return False
    if not profile.is_email_verified:
        return False
    if package_status != PackageStatus.ACTIVE:
        return False
    return is_profile_complete(profile)
