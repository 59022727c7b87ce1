from __future__ import annotations

import threading
import time
from typing import Any, Callable

from ..domain.user_account import (
    NO_ACCOUNT,
    MfaType,
    UserAccountDetails,
    UserLoginDetails,
    UserStatus,
)
from ..infrastructure.cognito_errors import CognitoThrottled, CognitoUserNotFound
from ..mappers.user_account_details import attributes_to_dict
from ..observability.logging import get_logger
from ..observability.metrics import MetricsService
from ..repositories.user_id_cache import UserIdCache
from .cognito_service import MFA_TYPE_ATTRIBUTE, TRAINEE_ID_ATTRIBUTE, CognitoService
from .event_publish_service import EventPublishService

log = get_logger("user_account_service")

MAX_LOGIN_EVENTS = 10
CACHE_REBUILD_INTERVAL_S = 15 * 60
# Cognito allows ~5 requests per second for these operations.
THROTTLE_BACKOFF_S = 0.2


class UserAccountService:
    def __init__(
        self,
        *,
        cognito: CognitoService,
        cache: UserIdCache,
        event_publisher: EventPublishService,
        metrics: MetricsService,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cognito = cognito
        self._cache = cache
        self._events = event_publisher
        self._metrics = metrics
        self._sleep = sleep
        self._clock = clock
        self._last_user_caching: float | None = None
        self._caching_lock = threading.Lock()

    # --- account details ---

    def get_user_account_details(self, username: str) -> UserAccountDetails:
        log.info("user_account_details_requested", username=username)
        try:
            return self._cognito.get_user_details(username)
        except CognitoUserNotFound:
            log.info("user_account_not_found", username=username)
            return UserAccountDetails(
                mfa_status=NO_ACCOUNT,
                user_status=NO_ACCOUNT,
                groups=[],
                account_created=None,
            )

    def get_user_groups(self, username: str) -> list[str]:
        log.info("user_groups_requested", username=username)
        return self._cognito.get_user_groups(username)

    def update_contact_details(
        self,
        user_id: str,
        new_email: str,
        forenames: str | None,
        surname: str | None,
    ) -> None:
        log.info("user_contact_details_update", user_id=user_id, new_email=new_email)

        attributes: dict[str, str | None] = {
            "family_name": surname,
            "given_name": forenames,
        }

        try:
            existing = self._cognito.find_user(new_email)
        except CognitoUserNotFound:
            existing = None

        if existing is not None:
            existing_attrs = attributes_to_dict(existing.get("Attributes"))
            existing_id = str(existing_attrs.get("sub") or existing.get("Username") or "")
            if existing_id != user_id:
                raise ValueError(f"The email '{new_email}' is already in use by user '{existing_id}'.")

            log.info("user_email_unchanged", user_id=user_id)
            self._cognito.update_attributes(user_id, attributes)
            return

        # The new email is unused; take the previous email and trainee id from the account.
        current = attributes_to_dict(self._cognito.find_user(user_id).get("Attributes"))
        attributes["email"] = new_email
        attributes["email_verified"] = "true"
        self._cognito.update_attributes(user_id, attributes)

        self._events.publish_email_update_event(
            user_id,
            current.get(TRAINEE_ID_ATTRIBUTE),
            current.get("email"),
            new_email,
        )
        log.info("user_email_updated", user_id=user_id, new_email=new_email)

    def get_user_login_details(self, username: str) -> list[UserLoginDetails]:
        log.info("user_login_details_requested", username=username)
        try:
            # Results are sorted by creation date, newest first.
            response = self._cognito.admin_list_user_auth_events(username, max_results=MAX_LOGIN_EVENTS)
        except CognitoUserNotFound:
            log.info("user_account_not_found", username=username)
            return []

        return [_login_details(e) for e in response.get("AuthEvents") or []]

    # --- account management ---

    def reset_user_account_mfa(self, username: str) -> None:
        log.info("user_mfa_reset_requested", username=username)
        details = self.get_user_account_details(username)
        if details.mfa_status == NO_ACCOUNT:
            raise CognitoUserNotFound(
                message="User not found",
                operation="ResetUserAccountMfa",
                username=username,
            )

        self._metrics.increment_mfa_reset_counter(_mfa_type(details.mfa_status))

        self._cognito.admin_disable_mfa(username)
        self._cognito.update_attributes(username, {MFA_TYPE_ATTRIBUTE: MfaType.NO_MFA.value})
        log.info("user_mfa_reset", username=username)

    def delete_cognito_account(self, username: str) -> None:
        log.info("user_account_delete_requested", username=username)
        # ListUsers only; AdminGetUser would count the account as active.
        user = self._cognito.find_user(username)
        attrs = attributes_to_dict(user.get("Attributes"))

        self._metrics.increment_delete_account_counter(
            _mfa_type(attrs.get(MFA_TYPE_ATTRIBUTE)),
            _user_status(user.get("UserStatus")),
        )

        self._cognito.admin_delete_user(username)
        log.info("user_account_deleted", username=username)

    def delete_duplicate_accounts(
        self,
        trainee_id: str,
        account_ids: set[str],
        current_email: str,
    ) -> str | None:
        """
        Keep the account matching the trainee's current email and delete the rest.

        Returns the id of the kept account, or None when no account could be
        identified (nothing is deleted in that case).
        """
        log.info(
            "user_duplicate_accounts_found",
            trainee_id=trainee_id,
            count=len(account_ids),
            account_ids=sorted(account_ids),
        )
        main_account = self._identify_main_account(trainee_id, account_ids, current_email)

        if main_account is None:
            log.info("user_main_account_unknown", trainee_id=trainee_id)
            return None

        for account_id in sorted(account_ids):
            if account_id == main_account:
                continue
            try:
                self.delete_cognito_account(account_id)
            except CognitoUserNotFound:
                log.info("user_duplicate_account_already_deleted", trainee_id=trainee_id, account_id=account_id)

        self._cache.put(trainee_id, {main_account})
        return main_account

    def _identify_main_account(
        self,
        trainee_id: str,
        account_ids: set[str],
        current_email: str,
    ) -> str | None:
        try:
            current = self._cognito.get_user_details(current_email)
        except CognitoUserNotFound:
            current = None

        if current is not None and current.id and current.id in account_ids:
            log.info(
                "user_main_account_found",
                trainee_id=trainee_id,
                account_id=current.id,
                email=current_email,
            )
            return current.id

        for account_id in sorted(account_ids):
            if self._last_successful_sign_in(account_id) is None:
                log.info("user_successless_account_found", trainee_id=trainee_id, account_id=account_id)

        return None

    def _last_successful_sign_in(self, username: str) -> Any | None:
        next_token: str | None = None

        while True:
            try:
                response = self._cognito.admin_list_user_auth_events(
                    username, max_results=60, next_token=next_token
                )
            except CognitoThrottled:
                log.warning("cognito_request_limit_exceeded", operation="AdminListUserAuthEvents")
                self._sleep(THROTTLE_BACKOFF_S)
                continue

            for event in response.get("AuthEvents") or []:
                if event.get("EventType") == "SignIn" and event.get("EventResponse") == "Pass":
                    return event.get("CreationDate")

            next_token = response.get("NextToken")
            if not next_token:
                return None

    def enroll_to_user_group(self, username: str, group_name: str) -> None:
        log.info("user_group_enroll", username=username, group=group_name)
        self._cognito.admin_add_user_to_group(username, group_name)

    def withdraw_from_user_group(self, username: str, group_name: str) -> None:
        log.info("user_group_withdraw", username=username, group=group_name)
        self._cognito.admin_remove_user_from_group(username, group_name)

    # --- trainee id -> account ids ---

    def get_user_account_ids(self, trainee_id: str) -> set[str]:
        cached = self._cache.get(trainee_id)
        if cached:
            return cached

        log.info("user_account_ids_cache_miss", trainee_id=trainee_id)
        with self._caching_lock:
            now = self._clock()
            last = self._last_user_caching
            if last is None or now - last > CACHE_REBUILD_INTERVAL_S:
                self._cache_all_user_account_ids()
                self._last_user_caching = self._clock()

        return self._cache.get(trainee_id) or set()

    def _cache_all_user_account_ids(self) -> None:
        log.info("user_account_ids_caching_started")
        started = time.perf_counter()

        ids_by_trainee: dict[str, set[str]] = {}
        next_token: str | None = None
        while True:
            kwargs: dict[str, Any] = {}
            if next_token:
                kwargs["PaginationToken"] = next_token
            try:
                response = self._cognito.list_users(**kwargs)
            except CognitoThrottled:
                log.warning("cognito_request_limit_exceeded", operation="ListUsers")
                self._sleep(THROTTLE_BACKOFF_S)
                continue

            for user in response.get("Users") or []:
                attrs = attributes_to_dict(user.get("Attributes"))
                tis_id = attrs.get(TRAINEE_ID_ATTRIBUTE)
                sub = attrs.get("sub")
                if not tis_id or not sub:
                    continue
                ids_by_trainee.setdefault(tis_id, set()).add(sub)

            next_token = response.get("PaginationToken")
            if not next_token:
                break

        # The scan is authoritative; deleted accounts must not survive a rebuild.
        for tis_id, ids in ids_by_trainee.items():
            self._cache.put(tis_id, ids)

        log.info(
            "user_account_ids_caching_finished",
            trainees=len(ids_by_trainee),
            duration_s=round(time.perf_counter() - started, 2),
        )


def _login_details(event: dict[str, Any]) -> UserLoginDetails:
    context = event.get("EventContextData") or {}
    challenges = ", ".join(
        f"{c.get('ChallengeName')}:{c.get('ChallengeResponse')}"
        for c in event.get("ChallengeResponses") or []
    )
    return UserLoginDetails(
        event_id=event.get("EventId"),
        event_date=event.get("CreationDate"),
        event=event.get("EventType"),
        result=event.get("EventResponse"),
        challenges=challenges,
        device=context.get("DeviceName"),
    )


def _mfa_type(value: str | None) -> MfaType:
    try:
        return MfaType(value) if value else MfaType.NO_MFA
    except ValueError:
        return MfaType.NO_MFA


def _user_status(value: str | None) -> UserStatus:
    try:
        return UserStatus(value) if value else UserStatus.UNKNOWN
    except ValueError:
        return UserStatus.UNKNOWN
