from __future__ import annotations

from dataclasses import dataclass

import jwt
import structlog
from fastapi import Request

from app.core.account_categories import AccountCategory
from app.core.config import get_settings
from app.db.repo.accounts_repo import AccountsRepo
from app.db.session import SessionLocal
from app.economy.errors import AuthenticationError, ForbiddenError
from app.services.internal_auth import extract_bearer_token

logger = structlog.get_logger(__name__)

ACCOUNT_ID_CLAIMS = ("userId", "sub")


@dataclass(frozen=True, slots=True)
class AccountIdentity:
    account_id: int
    category: AccountCategory


def decode_account_id(token: str, *, secret: str, algorithm: str) -> int:
    if not secret:
        raise AuthenticationError("Authentication is not configured")
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid token") from exc

    for claim in ACCOUNT_ID_CLAIMS:
        raw_value = claims.get(claim)
        if raw_value is None or isinstance(raw_value, bool):
            continue
        try:
            account_id = int(raw_value)
        except (TypeError, ValueError):
            continue
        if account_id > 0:
            return account_id

    raise AuthenticationError("Invalid token")


async def resolve_identity(token: str) -> AccountIdentity:
    settings = get_settings()
    account_id = decode_account_id(token, secret=settings.jwt_secret, algorithm=settings.jwt_algorithm)

    async with SessionLocal.begin() as session:
        account = await AccountsRepo.get_by_id(session, account_id)
        if account is None:
            raise AuthenticationError("Invalid token")
        category = AccountCategory.parse(account.category)

    if category is None:
        logger.warning("identity_unknown_category", account_id=account_id)
        raise ForbiddenError("Invalid user type")
    return AccountIdentity(account_id=account_id, category=category)


async def get_current_account(request: Request) -> AccountIdentity:
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise AuthenticationError
    return await resolve_identity(token)
