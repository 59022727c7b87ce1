from __future__ import annotations

from datetime import datetime, timezone

import pytest

from user_management.domain.events import ContactDetailsEvent, EmailUpdateEvent
from user_management.domain.user_account import MfaType, UserAccountDetails
from user_management.mappers.user_account_details import from_admin_get_user, from_user_type

from fakes import make_user


@pytest.mark.parametrize(
    ("setting", "expected"),
    [
        (None, MfaType.NO_MFA),
        ("SMS_MFA", MfaType.SMS),
        ("SOFTWARE_TOKEN_MFA", MfaType.TOTP),
    ],
)
def test_mfa_type_from_preferred_setting(setting, expected):
    assert MfaType.from_preferred_mfa_setting(setting) is expected


@pytest.mark.parametrize("setting", ["NO_MFA", "MFA_SETUP", "sms_mfa", ""])
def test_mfa_type_rejects_unknown_setting(setting):
    with pytest.raises(ValueError):
        MfaType.from_preferred_mfa_setting(setting)


def test_user_type_maps_custom_attributes():
    user = make_user("sub-1", email="a@b.com", tis_id="123", mfa_type="TOTP", status="CONFIRMED")
    user = {k: v for k, v in user.items() if not k.startswith("_")}

    details = from_user_type(user, ["g1"])

    assert details.id == "sub-1"
    assert details.email == "a@b.com"
    assert details.mfa_status == "TOTP"
    assert details.user_status == "CONFIRMED"
    assert details.groups == ["g1"]
    assert details.account_created == datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert details.trainee_id == "123"


def test_admin_get_user_maps_preferred_mfa():
    response = {
        "Username": "sub-1",
        "UserAttributes": [{"Name": "sub", "Value": "sub-1"}],
        "UserStatus": "FORCE_CHANGE_PASSWORD",
        "PreferredMfaSetting": "SMS_MFA",
    }

    details = from_admin_get_user(response, [])

    assert details.mfa_status == "SMS"
    assert details.user_status == "FORCE_CHANGE_PASSWORD"
    assert details.email is None
    assert details.trainee_id is None
    assert details.account_created is None


def test_account_details_serialize_camel_case():
    details = UserAccountDetails(id="x", mfa_status="NO_MFA", user_status="CONFIRMED", trainee_id="1")
    dumped = details.model_dump(by_alias=True)
    assert dumped["mfaStatus"] == "NO_MFA"
    assert dumped["userStatus"] == "CONFIRMED"
    assert dumped["traineeId"] == "1"
    assert dumped["accountCreated"] is None


def test_email_update_event_message_is_camel_case():
    event = EmailUpdateEvent(user_id="u", trainee_id="t", previous_email="old@x", new_email="new@x")
    assert event.to_message() == {
        "userId": "u",
        "traineeId": "t",
        "previousEmail": "old@x",
        "newEmail": "new@x",
    }


def test_contact_details_event_unpacks_record_data():
    event = ContactDetailsEvent.from_record(
        {"record": {"data": {"id": "40", "email": "e@x", "forenames": "F", "surname": "S"}}}
    )
    assert event.contact_details.trainee_id == "40"
    assert event.contact_details.email == "e@x"
    assert event.contact_details.forenames == "F"
    assert event.contact_details.surname == "S"


def test_contact_details_event_requires_trainee_id():
    with pytest.raises(ValueError):
        ContactDetailsEvent.from_record({"record": {"data": {"email": "e@x"}}})
