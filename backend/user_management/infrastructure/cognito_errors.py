from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

T = TypeVar("T")


@dataclass(slots=True)
class CognitoError(Exception):
    """Base error for Cognito user pool operations.

    These are caught by a FastAPI exception handler and rendered into RFC7807
    problem-details responses.
    """

    message: str
    operation: str | None = None
    username: str | None = None
    aws_request_id: str | None = None
    retryable: bool = False
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class CognitoUserNotFound(CognitoError):
    pass


@dataclass(slots=True)
class CognitoValidation(CognitoError):
    pass


@dataclass(slots=True)
class CognitoThrottled(CognitoError):
    pass


@dataclass(slots=True)
class CognitoUnavailable(CognitoError):
    pass


@dataclass(slots=True)
class CognitoInternal(CognitoError):
    pass


_VALIDATION_CODES = {
    "InvalidParameterException",
    "AliasExistsException",
    "UsernameExistsException",
    "ResourceNotFoundException",
    "UserNotConfirmedException",
}
_THROTTLE_CODES = {"TooManyRequestsException", "LimitExceededException", "ThrottlingException"}
_UNAVAILABLE_CODES = {"InternalErrorException", "ServiceUnavailable"}


def error_code(exc: ClientError) -> str:
    return str((exc.response or {}).get("Error", {}).get("Code") or "")


def translate_client_error(
    exc: ClientError,
    *,
    operation: str,
    username: str | None = None,
) -> CognitoError:
    code = error_code(exc)
    meta = (exc.response or {}).get("ResponseMetadata") or {}
    request_id = meta.get("RequestId")
    message = str((exc.response or {}).get("Error", {}).get("Message") or code or str(exc))

    kwargs = {
        "message": message,
        "operation": operation,
        "username": username,
        "aws_request_id": str(request_id) if request_id else None,
        "cause": exc,
    }

    if code == "UserNotFoundException":
        return CognitoUserNotFound(**kwargs)
    if code in _VALIDATION_CODES:
        return CognitoValidation(**kwargs)
    if code in _THROTTLE_CODES:
        return CognitoThrottled(retryable=True, **kwargs)
    if code in _UNAVAILABLE_CODES:
        return CognitoUnavailable(retryable=True, **kwargs)
    return CognitoInternal(**kwargs)


def cognito_call(operation: str, fn: Callable[[], T], *, username: str | None = None) -> T:
    """Run a Cognito client call, raising CognitoError subclasses on failure.

    Retries are left to botocore and to callers that page through large result sets.
    """
    try:
        return fn()
    except ClientError as e:
        raise translate_client_error(e, operation=operation, username=username) from e
    except BotoCoreError as e:
        raise CognitoUnavailable(
            message="Cognito client error",
            operation=operation,
            username=username,
            retryable=True,
            cause=e,
        ) from e
