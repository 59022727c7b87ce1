from __future__ import annotations

import pytest

from user_management.infrastructure.cognito_errors import (
    CognitoThrottled,
    CognitoUnavailable,
    CognitoUserNotFound,
    CognitoValidation,
    translate_client_error,
)
from user_management.services.cognito_service import CognitoService

from fakes import FakeCognitoClient, client_error, make_user

POOL = "eu-west-2_pool"


def _service(*users):
    client = FakeCognitoClient(list(users))
    return client, CognitoService(client, user_pool_id=POOL)


def test_get_user_details_filters_by_email_or_sub():
    client, service = _service(make_user("sub-1", email="a@b.com", mfa_type="SMS"))

    service.get_user_details("a@b.com")
    service.get_user_details("sub-1")

    filters = [kw["Filter"] for kw in client.calls_to("ListUsers")]
    assert filters == ['email="a@b.com"', 'sub="sub-1"']
    assert all(kw["UserPoolId"] == POOL for kw in client.calls_to("ListUsers"))


def test_get_user_details_uses_attribute_when_mfa_type_known():
    client, service = _service(make_user("sub-1", email="a@b.com", mfa_type="TOTP", groups=["g1"]))

    details = service.get_user_details("a@b.com")

    assert details.mfa_status == "TOTP"
    assert details.groups == ["g1"]
    assert client.calls_to("AdminGetUser") == []
    assert client.calls_to("AdminUpdateUserAttributes") == []


@pytest.mark.parametrize("mfa_type", [None, "NO_MFA"])
def test_get_user_details_falls_back_to_admin_get_user(mfa_type):
    client, service = _service(
        make_user("sub-1", email="a@b.com", mfa_type=mfa_type, preferred_mfa="SOFTWARE_TOKEN_MFA")
    )

    details = service.get_user_details("sub-1")

    assert details.mfa_status == "TOTP"
    assert len(client.calls_to("AdminGetUser")) == 1
    (update,) = client.calls_to("AdminUpdateUserAttributes")
    assert update["Username"] == "sub-1"
    assert update["UserAttributes"] == [{"Name": "custom:mfaType", "Value": "TOTP"}]


def test_get_user_details_not_found():
    _, service = _service()

    with pytest.raises(CognitoUserNotFound):
        service.get_user_details("nobody@example.com")


def test_get_user_groups_missing_user_is_empty():
    _, service = _service()
    assert service.get_user_groups("sub-x") == []


def test_client_errors_are_translated():
    def _err(code):
        return translate_client_error(client_error(code, "Op"), operation="Op", username="u")

    assert isinstance(_err("UserNotFoundException"), CognitoUserNotFound)
    assert isinstance(_err("InvalidParameterException"), CognitoValidation)
    throttled = _err("TooManyRequestsException")
    assert isinstance(throttled, CognitoThrottled)
    assert throttled.retryable is True
    assert throttled.aws_request_id == "req-1"
    assert isinstance(_err("InternalErrorException"), CognitoUnavailable)


def test_pass_through_calls_target_pool():
    client, service = _service(make_user("sub-1"))

    service.admin_add_user_to_group("sub-1", "grp")
    service.admin_remove_user_from_group("sub-1", "grp")
    service.admin_disable_mfa("sub-1")

    (add,) = client.calls_to("AdminAddUserToGroup")
    assert add == {"UserPoolId": POOL, "Username": "sub-1", "GroupName": "grp"}
    (mfa,) = client.calls_to("AdminSetUserMFAPreference")
    assert mfa["SMSMfaSettings"]["Enabled"] is False
    assert mfa["SoftwareTokenMfaSettings"]["Enabled"] is False
