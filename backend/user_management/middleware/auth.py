from __future__ import annotations

from fastapi import HTTPException, Request
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from ..auth.profile_client import ProfileAuthError, get_profile_from_token, required_authority
from ..observability.logging import get_logger
from ..problem_details import problem_response


def is_protected_path(path: str) -> bool:
    # Health and actuator endpoints stay public.
    return path.startswith("/api/")


async def require_auth(request: Request):
    if request.method.upper() == "OPTIONS":
        return

    if not is_protected_path(request.url.path):
        return

    auth = request.headers.get("authorization")
    if not auth:
        raise HTTPException(status_code=401, detail="Unauthorized")

    parts = str(auth).split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        # The profile client is synchronous httpx; keep it off the event loop.
        profile = await run_in_threadpool(get_profile_from_token, parts[1].strip())
    except ProfileAuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    authority = required_authority(request.method)
    if not profile.has_authority(authority):
        raise HTTPException(status_code=403, detail=f"Missing authority '{authority}'")

    request.state.user = profile


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Bearer token authentication and trainee-support authorization for /api/*.
    """

    async def dispatch(self, request: Request, call_next):
        log = get_logger("auth_middleware")
        try:
            await require_auth(request)
        except HTTPException as exc:
            status_code = int(exc.status_code)
            if status_code >= 500:
                log.warning("auth_middleware_error", status_code=status_code, path=request.url.path)
            else:
                log.info("auth_middleware_denied", status_code=status_code, path=request.url.path)
            return problem_response(
                request=request,
                status_code=status_code,
                title="Unauthorized" if status_code == 401 else None,
                detail=str(exc.detail) if isinstance(exc.detail, str) else None,
            )
        return await call_next(request)
