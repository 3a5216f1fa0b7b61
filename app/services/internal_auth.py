from __future__ import annotations

import ipaddress
import secrets
from functools import lru_cache

from fastapi import Request

IpNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def is_valid_internal_token(*, expected_token: str, received_token: str | None) -> bool:
    return bool(expected_token and received_token) and secrets.compare_digest(
        expected_token, received_token
    )


def extract_bearer_token(authorization: str | None) -> str | None:
    scheme, _, token = (authorization or "").strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def is_internal_request_authenticated(request: Request, *, expected_token: str) -> bool:
    """Accept the cron secret either as X-Internal-Token or as a bearer token."""
    candidates = (
        request.headers.get("X-Internal-Token"),
        extract_bearer_token(request.headers.get("Authorization")),
    )
    return any(
        is_valid_internal_token(expected_token=expected_token, received_token=candidate)
        for candidate in candidates
    )


@lru_cache(maxsize=32)
def _networks(allowlist: str) -> tuple[IpNetwork, ...]:
    parsed: list[IpNetwork] = []
    for entry in filter(None, (item.strip() for item in allowlist.split(","))):
        try:
            parsed.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            continue
    return tuple(parsed)


def _normalize_ip(value: str | None) -> str | None:
    try:
        return str(ipaddress.ip_address((value or "").strip()))
    except ValueError:
        return None


def extract_client_ip(request: Request, *, trusted_proxies: str = "") -> str | None:
    # X-Forwarded-For is honoured only when the direct peer is a trusted proxy.
    peer = _normalize_ip(request.client.host if request.client is not None else None)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for and is_client_ip_allowed(client_ip=peer, allowlist=trusted_proxies):
        return _normalize_ip(forwarded_for.split(",", maxsplit=1)[0])
    return peer


def is_client_ip_allowed(*, client_ip: str | None, allowlist: str) -> bool:
    address = _normalize_ip(client_ip)
    if address is None:
        return False
    parsed = ipaddress.ip_address(address)
    return any(parsed in network for network in _networks(allowlist))
