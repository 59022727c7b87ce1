from __future__ import annotations

import re
import uuid
from typing import Any, Awaitable, Callable

from starlette.datastructures import Headers, MutableHeaders

from ..observability.context import request_id_var

REQUEST_ID_HEADER = "X-Request-Id"

# Inbound ids end up in logs and response headers; anything else is replaced.
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_request_id(inbound: str | None) -> str:
    candidate = (inbound or "").strip()
    if candidate and _VALID_REQUEST_ID.match(candidate):
        return candidate
    return str(uuid.uuid4())


class RequestContextMiddleware:
    """
    Pure ASGI middleware binding a request id for the whole request.

    The id is taken from X-Request-Id when it looks sane, stored on the request
    state and in the logging contextvar, and echoed on the response start.
    """

    def __init__(self, app: Callable[..., Awaitable[Any]]):
        self.app = app

    async def __call__(self, scope: dict, receive: Callable, send: Callable):
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        request_id = resolve_request_id(Headers(scope=scope).get(REQUEST_ID_HEADER))
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_request_id(message: dict):
            if message.get("type") == "http.response.start":
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            await send(message)

        token = request_id_var.set(request_id)
        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            request_id_var.reset(token)
