from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.responses import ORJSONResponse

from .observability.context import get_request_id
from .settings import get_settings

PROBLEM_JSON = "application/problem+json"


def default_title(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def problem_response(
    *,
    request: Request,
    status_code: int,
    title: str | None = None,
    detail: str | None = None,
    errors: list[dict[str, Any]] | None = None,
    extensions: dict[str, Any] | None = None,
) -> ORJSONResponse:
    """
    Render an RFC 7807 problem document.

    Optional members are omitted when empty. Extension members are nested under
    "extensions"; 5xx detail is dropped in production.
    """
    status = int(status_code)
    if status >= 500 and get_settings().is_production:
        detail = None

    body: dict[str, Any] = {
        "type": "about:blank",
        "title": title or default_title(status),
        "status": status,
        "instance": request.url.path,
    }
    optional = {
        "detail": detail,
        "requestId": getattr(request.state, "request_id", None) or get_request_id(),
        "errors": errors,
        "extensions": extensions,
    }
    body.update({k: v for k, v in optional.items() if v})

    return ORJSONResponse(content=body, status_code=status, media_type=PROBLEM_JSON)
