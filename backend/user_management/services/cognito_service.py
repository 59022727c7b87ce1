from __future__ import annotations

from typing import Any

from ..domain.user_account import MfaType, UserAccountDetails
from ..infrastructure.cognito_errors import CognitoUserNotFound, cognito_call
from ..mappers.user_account_details import attributes_to_dict, from_admin_get_user, from_user_type
from ..observability.logging import get_logger

log = get_logger("cognito_service")

MFA_TYPE_ATTRIBUTE = "custom:mfaType"
TRAINEE_ID_ATTRIBUTE = "custom:tisId"


class CognitoService:
    """
    Cognito user pool access for a single pool.

    All client errors surface as CognitoError subclasses (see
    infrastructure.cognito_errors).
    """

    def __init__(self, client: Any, *, user_pool_id: str | None):
        self._client = client
        self.user_pool_id = str(user_pool_id or "")

    # --- lookups ---

    def get_user_details(self, username: str) -> UserAccountDetails:
        """
        Get the account details for a username (email or sub).

        The cached custom:mfaType attribute is preferred. AdminGetUser is only
        called when it is absent or NO_MFA, as it counts toward monthly active
        users; the attribute is then refreshed from the preferred MFA setting.
        """
        log.info("cognito_get_user_details", username=username)
        user = self.find_user(username)
        groups = self.get_user_groups(username)

        attrs = attributes_to_dict(user.get("Attributes"))
        mfa_type = attrs.get(MFA_TYPE_ATTRIBUTE)
        if mfa_type and mfa_type != MfaType.NO_MFA.value:
            return from_user_type(user, groups)

        response = cognito_call(
            "AdminGetUser",
            lambda: self._client.admin_get_user(UserPoolId=self.user_pool_id, Username=username),
            username=username,
        )
        details = from_admin_get_user(response, groups)
        self.update_attributes(username, {MFA_TYPE_ATTRIBUTE: details.mfa_status})
        return details

    def get_user_groups(self, username: str) -> list[str]:
        try:
            response = cognito_call(
                "AdminListGroupsForUser",
                lambda: self._client.admin_list_groups_for_user(
                    UserPoolId=self.user_pool_id, Username=username
                ),
                username=username,
            )
        except CognitoUserNotFound:
            log.info("cognito_user_groups_user_not_found", username=username)
            return []

        return [str(g.get("GroupName")) for g in response.get("Groups") or [] if g.get("GroupName")]

    def find_user(self, username: str) -> dict[str, Any]:
        attribute = "email" if "@" in username else "sub"
        response = self.list_users(Filter=f'{attribute}="{username}"')
        users = response.get("Users") or []
        if not users:
            raise CognitoUserNotFound(
                message="User not found",
                operation="ListUsers",
                username=username,
            )
        return users[0]

    # --- writes ---

    def update_attributes(self, username: str, attributes: dict[str, str | None]) -> None:
        cognito_call(
            "AdminUpdateUserAttributes",
            lambda: self._client.admin_update_user_attributes(
                UserPoolId=self.user_pool_id,
                Username=username,
                UserAttributes=[{"Name": k, "Value": v} for k, v in attributes.items()],
            ),
            username=username,
        )

    def admin_add_user_to_group(self, username: str, group_name: str) -> None:
        cognito_call(
            "AdminAddUserToGroup",
            lambda: self._client.admin_add_user_to_group(
                UserPoolId=self.user_pool_id, Username=username, GroupName=group_name
            ),
            username=username,
        )

    def admin_remove_user_from_group(self, username: str, group_name: str) -> None:
        cognito_call(
            "AdminRemoveUserFromGroup",
            lambda: self._client.admin_remove_user_from_group(
                UserPoolId=self.user_pool_id, Username=username, GroupName=group_name
            ),
            username=username,
        )

    def admin_delete_user(self, username: str) -> None:
        cognito_call(
            "AdminDeleteUser",
            lambda: self._client.admin_delete_user(UserPoolId=self.user_pool_id, Username=username),
            username=username,
        )

    def admin_disable_mfa(self, username: str) -> None:
        self.admin_set_user_mfa_preference(
            username,
            sms_mfa_settings={"Enabled": False, "PreferredMfa": False},
            software_token_mfa_settings={"Enabled": False, "PreferredMfa": False},
        )

    def admin_set_user_mfa_preference(
        self,
        username: str,
        *,
        sms_mfa_settings: dict[str, bool],
        software_token_mfa_settings: dict[str, bool],
    ) -> None:
        cognito_call(
            "AdminSetUserMFAPreference",
            lambda: self._client.admin_set_user_mfa_preference(
                UserPoolId=self.user_pool_id,
                Username=username,
                SMSMfaSettings=sms_mfa_settings,
                SoftwareTokenMfaSettings=software_token_mfa_settings,
            ),
            username=username,
        )

    # --- pass-throughs for paging callers ---

    def admin_list_user_auth_events(
        self, username: str, *, max_results: int, next_token: str | None = None
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "UserPoolId": self.user_pool_id,
            "Username": username,
            "MaxResults": int(max_results),
        }
        if next_token:
            kwargs["NextToken"] = next_token
        return cognito_call(
            "AdminListUserAuthEvents",
            lambda: self._client.admin_list_user_auth_events(**kwargs),
            username=username,
        )

    def list_users(self, **kwargs: Any) -> dict[str, Any]:
        params = {"UserPoolId": self.user_pool_id, **kwargs}
        return cognito_call("ListUsers", lambda: self._client.list_users(**params))
