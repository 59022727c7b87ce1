from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from botocore.exceptions import ClientError


def client_error(code: str, operation: str, message: str = "boom") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": message}, "ResponseMetadata": {"RequestId": "req-1"}},
        operation,
    )


def make_user(
    sub: str,
    *,
    email: str | None = None,
    tis_id: str | None = None,
    mfa_type: str | None = None,
    status: str = "CONFIRMED",
    preferred_mfa: str | None = None,
    groups: list[str] | None = None,
    auth_events: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    attrs = [{"Name": "sub", "Value": sub}]
    if email:
        attrs.append({"Name": "email", "Value": email})
    if tis_id:
        attrs.append({"Name": "custom:tisId", "Value": tis_id})
    if mfa_type:
        attrs.append({"Name": "custom:mfaType", "Value": mfa_type})
    return {
        "Username": sub,
        "Attributes": attrs,
        "UserStatus": status,
        "UserCreateDate": datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        "_preferred_mfa": preferred_mfa,
        "_groups": list(groups or []),
        "_auth_events": list(auth_events or []),
    }


class FakeCognitoClient:
    """In-memory stand-in for the boto3 cognito-idp client."""

    def __init__(self, users: list[dict[str, Any]] | None = None, *, page_size: int = 60):
        self.users = list(users or [])
        self.page_size = page_size
        self.calls: list[tuple[str, dict[str, Any]]] = []
        # operation name -> number of TooManyRequestsException to raise first
        self.throttle: dict[str, int] = {}

    def _record(self, op: str, kwargs: dict[str, Any]) -> None:
        self.calls.append((op, kwargs))
        if self.throttle.get(op):
            self.throttle[op] -= 1
            raise client_error("TooManyRequestsException", op)

    def calls_to(self, op: str) -> list[dict[str, Any]]:
        return [kw for name, kw in self.calls if name == op]

    def _attr(self, user: dict[str, Any], name: str) -> str | None:
        for a in user["Attributes"]:
            if a["Name"] == name:
                return a["Value"]
        return None

    def _get(self, op: str, username: str) -> dict[str, Any]:
        for u in self.users:
            if u["Username"] == username or self._attr(u, "email") == username:
                return u
        raise client_error("UserNotFoundException", op, "User does not exist.")

    def _public(self, user: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in user.items() if not k.startswith("_")}

    # --- API surface ---

    def list_users(self, **kwargs):
        self._record("ListUsers", kwargs)
        users = self.users
        flt = kwargs.get("Filter")
        if flt:
            name, _, value = flt.partition("=")
            value = value.strip('"')
            users = [u for u in users if self._attr(u, name) == value]

        start = int(kwargs.get("PaginationToken") or 0)
        page = users[start : start + self.page_size]
        resp: dict[str, Any] = {"Users": [self._public(u) for u in page]}
        if start + self.page_size < len(users):
            resp["PaginationToken"] = str(start + self.page_size)
        return resp

    def admin_get_user(self, **kwargs):
        self._record("AdminGetUser", kwargs)
        user = self._get("AdminGetUser", kwargs["Username"])
        resp = {
            "Username": user["Username"],
            "UserAttributes": user["Attributes"],
            "UserStatus": user["UserStatus"],
            "UserCreateDate": user["UserCreateDate"],
        }
        if user["_preferred_mfa"]:
            resp["PreferredMfaSetting"] = user["_preferred_mfa"]
        return resp

    def admin_list_groups_for_user(self, **kwargs):
        self._record("AdminListGroupsForUser", kwargs)
        user = self._get("AdminListGroupsForUser", kwargs["Username"])
        return {"Groups": [{"GroupName": g} for g in user["_groups"]]}

    def admin_update_user_attributes(self, **kwargs):
        self._record("AdminUpdateUserAttributes", kwargs)
        user = self._get("AdminUpdateUserAttributes", kwargs["Username"])
        for attr in kwargs["UserAttributes"]:
            existing = [a for a in user["Attributes"] if a["Name"] == attr["Name"]]
            if existing:
                existing[0]["Value"] = attr["Value"]
            else:
                user["Attributes"].append(dict(attr))
        return {}

    def admin_add_user_to_group(self, **kwargs):
        self._record("AdminAddUserToGroup", kwargs)
        user = self._get("AdminAddUserToGroup", kwargs["Username"])
        user["_groups"].append(kwargs["GroupName"])
        return {}

    def admin_remove_user_from_group(self, **kwargs):
        self._record("AdminRemoveUserFromGroup", kwargs)
        user = self._get("AdminRemoveUserFromGroup", kwargs["Username"])
        user["_groups"] = [g for g in user["_groups"] if g != kwargs["GroupName"]]
        return {}

    def admin_delete_user(self, **kwargs):
        self._record("AdminDeleteUser", kwargs)
        user = self._get("AdminDeleteUser", kwargs["Username"])
        self.users.remove(user)
        return {}

    def admin_set_user_mfa_preference(self, **kwargs):
        self._record("AdminSetUserMFAPreference", kwargs)
        user = self._get("AdminSetUserMFAPreference", kwargs["Username"])
        user["_preferred_mfa"] = None
        return {}

    def admin_list_user_auth_events(self, **kwargs):
        self._record("AdminListUserAuthEvents", kwargs)
        user = self._get("AdminListUserAuthEvents", kwargs["Username"])
        events = user["_auth_events"]
        size = int(kwargs.get("MaxResults") or 60)
        start = int(kwargs.get("NextToken") or 0)
        resp: dict[str, Any] = {"AuthEvents": events[start : start + size]}
        if start + size < len(events):
            resp["NextToken"] = str(start + size)
        return resp


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}
        self.expiry: dict[str, int | None] = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiry[key] = ex
        return True

    def delete(self, *keys):
        n = 0
        for k in keys:
            if k in self.store:
                del self.store[k]
                n += 1
        return n

    def scan_iter(self, match=None):
        prefix = (match or "*").rstrip("*")
        return [k for k in list(self.store) if k.startswith(prefix)]


class FakeSqs:
    def __init__(self):
        self.sent: list[dict[str, Any]] = []
        self.deleted: list[str] = []

    def send_message(self, **kwargs):
        self.sent.append(kwargs)
        return {"MessageId": f"m{len(self.sent)}"}

    def delete_message(self, **kwargs):
        self.deleted.append(kwargs["ReceiptHandle"])
        return {}


class FakeSns:
    def __init__(self):
        self.published: list[dict[str, Any]] = []

    def publish(self, **kwargs):
        self.published.append(kwargs)
        return {"MessageId": f"n{len(self.published)}"}


class FakeCloudWatch:
    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.metric_data: list[dict[str, Any]] = []

    def put_metric_data(self, **kwargs):
        if self.fail:
            raise client_error("InternalServiceFault", "PutMetricData")
        self.metric_data.append(kwargs)
        return {}
