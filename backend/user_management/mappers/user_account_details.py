from __future__ import annotations

from datetime import datetime
from typing import Any

from ..domain.user_account import MfaType, UserAccountDetails


def attributes_to_dict(attributes: list[dict[str, Any]] | None) -> dict[str, str]:
    out: dict[str, str] = {}
    for attr in attributes or []:
        name = attr.get("Name")
        if name:
            out[str(name)] = attr.get("Value")
    return out


def _created(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def from_user_type(user: dict[str, Any], groups: list[str]) -> UserAccountDetails:
    """Map a ListUsers UserType entry."""
    attrs = attributes_to_dict(user.get("Attributes"))
    return UserAccountDetails(
        id=attrs.get("sub"),
        email=attrs.get("email"),
        mfa_status=attrs.get("custom:mfaType"),
        user_status=user.get("UserStatus"),
        groups=list(groups),
        account_created=_created(user.get("UserCreateDate")),
        trainee_id=attrs.get("custom:tisId"),
    )


def from_admin_get_user(response: dict[str, Any], groups: list[str]) -> UserAccountDetails:
    """Map an AdminGetUser response; MFA status comes from the preferred setting."""
    attrs = attributes_to_dict(response.get("UserAttributes"))
    mfa_type = MfaType.from_preferred_mfa_setting(response.get("PreferredMfaSetting"))
    return UserAccountDetails(
        id=attrs.get("sub"),
        email=attrs.get("email"),
        mfa_status=mfa_type.value,
        user_status=response.get("UserStatus"),
        groups=list(groups),
        account_created=_created(response.get("UserCreateDate")),
        trainee_id=attrs.get("custom:tisId"),
    )
