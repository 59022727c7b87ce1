from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NO_ACCOUNT = "NO_ACCOUNT"


class MfaType(str, Enum):
    NO_MFA = "NO_MFA"
    SMS = "SMS"
    TOTP = "TOTP"

    @classmethod
    def from_preferred_mfa_setting(cls, preferred_mfa_setting: str | None) -> "MfaType":
        """
        Map Cognito's PreferredMfaSetting (a challenge name) to an MFA type.

        A missing preference means MFA is not set up. Any challenge other than
        SMS_MFA / SOFTWARE_TOKEN_MFA is rejected.
        """
        if preferred_mfa_setting is None:
            return cls.NO_MFA
        if preferred_mfa_setting == "SMS_MFA":
            return cls.SMS
        if preferred_mfa_setting == "SOFTWARE_TOKEN_MFA":
            return cls.TOTP
        raise ValueError(f"Cannot create enum from {preferred_mfa_setting} value!")


class UserStatus(str, Enum):
    UNCONFIRMED = "UNCONFIRMED"
    CONFIRMED = "CONFIRMED"
    ARCHIVED = "ARCHIVED"
    COMPROMISED = "COMPROMISED"
    UNKNOWN = "UNKNOWN"
    RESET_REQUIRED = "RESET_REQUIRED"
    FORCE_CHANGE_PASSWORD = "FORCE_CHANGE_PASSWORD"
    EXTERNAL_PROVIDER = "EXTERNAL_PROVIDER"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserAccountDetails(_CamelModel):
    id: str | None = None
    email: str | None = None
    mfa_status: str | None = None
    user_status: str | None = None
    groups: list[str] = Field(default_factory=list)
    account_created: datetime | None = None
    trainee_id: str | None = None


class UserLoginDetails(_CamelModel):
    event_id: str | None = None
    event_date: datetime | None = None
    event: str | None = None
    result: str | None = None
    challenges: str = ""
    device: str | None = None


class UserGroupList(_CamelModel):
    user_groups: list[str] = Field(default_factory=list)
