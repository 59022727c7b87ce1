from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any

import httpx
from cachetools import TTLCache
from jose import JWTError, jwt

from ..observability.logging import get_logger
from ..settings import settings

log = get_logger("profile_client")

VIEW_AUTHORITY = "trainee-support:view"
MODIFY_AUTHORITY = "trainee-support:modify"


class ProfileAuthError(Exception):
    def __init__(self, message: str, *, status_code: int = 401):
        super().__init__(message)
        self.status_code = int(status_code)


@dataclass
class UserProfile:
    user_name: str
    roles: set[str] = field(default_factory=set)
    permissions: set[str] = field(default_factory=set)
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def sub(self) -> str | None:
        v = self.claims.get("sub")
        return str(v) if v else None

    def has_authority(self, authority: str) -> bool:
        return authority in self.permissions


_PROFILE_CACHE: TTLCache[str, UserProfile] = TTLCache(maxsize=1024, ttl=60)


def _cache_key(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _http_client() -> httpx.Client:
    return httpx.Client(timeout=float(settings.profile_client_timeout_seconds))


def _userinfo_url() -> str:
    base = str(settings.profile_service_url or "").strip().rstrip("/")
    if not base:
        raise ProfileAuthError("PROFILE_SERVICE_URL is not set", status_code=503)
    return f"{base}/api/userinfo"


def get_profile_from_token(token: str) -> UserProfile:
    """
    Resolve a bearer token into the caller's profile and authorities.

    The token is only decoded locally; the profile service is the authority on
    whether it is valid.
    """
    if not token:
        raise ProfileAuthError("Missing token")

    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise ProfileAuthError("Invalid token") from e

    key = _cache_key(token)
    cached = _PROFILE_CACHE.get(key)
    if cached is not None:
        return cached

    url = _userinfo_url()
    try:
        with _http_client() as client:
            resp = client.get(url, headers={"Authorization": f"Bearer {token}"})
    except httpx.HTTPError as e:
        log.warning("profile_service_unavailable", error=str(e))
        raise ProfileAuthError("Profile service unavailable", status_code=503) from e

    if resp.status_code in (401, 403):
        raise ProfileAuthError("Unauthorized")
    if resp.status_code >= 400:
        log.warning("profile_service_error", status_code=resp.status_code)
        raise ProfileAuthError("Profile service unavailable", status_code=503)

    body = resp.json()
    if not isinstance(body, dict):
        raise ProfileAuthError("Profile service unavailable", status_code=503)

    profile = UserProfile(
        user_name=str(body.get("userName") or claims.get("email") or ""),
        roles={str(r) for r in body.get("roles") or []},
        permissions={str(p) for p in body.get("permissions") or []},
        claims=claims,
    )
    _PROFILE_CACHE[key] = profile
    return profile


def required_authority(method: str) -> str:
    return VIEW_AUTHORITY if method.upper() in ("GET", "HEAD") else MODIFY_AUTHORITY


def clear_profile_cache() -> None:
    _PROFILE_CACHE.clear()
