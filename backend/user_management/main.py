from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .infrastructure.cognito_errors import (
    CognitoError,
    CognitoThrottled,
    CognitoUnavailable,
    CognitoUserNotFound,
    CognitoValidation,
)
from .middleware.access_log import AccessLogMiddleware
from .middleware.auth import AuthMiddleware
from .middleware.request_context import RequestContextMiddleware
from .observability.logging import configure_logging, get_logger
from .observability.otel import configure_otel, instrument_app
from .problem_details import problem_response
from .routers.health import router as health_router
from .routers.trainee_profile import router as trainee_profile_router
from .routers.user_account import router as user_account_router
from .routers.user_groups import router as user_groups_router
from .settings import settings


def create_app() -> FastAPI:
    # Logging must be configured before the app starts handling requests.
    configure_logging(level="INFO")
    log = get_logger("startup")

    # Optional tracing (no-op unless OTEL_ENABLED=true)
    configure_otel(settings)

    app = FastAPI(
        title="TIS Trainee User Management",
        version="2.4.3",
        default_response_class=ORJSONResponse,
        redirect_slashes=False,
    )

    log.info("app_starting", settings=settings.to_log_safe_dict())

    # Middlewares (last added is outermost)
    app.add_middleware(AuthMiddleware)
    app.add_middleware(AccessLogMiddleware, exclude_paths={"/", "/actuator/health"})
    app.add_middleware(RequestContextMiddleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(CognitoError, _cognito_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    # Routes
    app.include_router(health_router)
    app.include_router(user_account_router, prefix="/api/user-account")
    app.include_router(user_groups_router, prefix="/api/user-groups")
    app.include_router(trainee_profile_router, prefix="/api/trainee-profile")

    # Instrument after routers/middleware are attached.
    instrument_app(app, settings)

    return app


def _cognito_error_handler(request: Request, exc: CognitoError) -> Response:
    status_code = 500
    title = "Identity Provider Error"

    if isinstance(exc, CognitoValidation):
        status_code = 400
        title = "Bad Request"
    elif isinstance(exc, CognitoUserNotFound):
        status_code = 404
        title = "Not Found"
    elif isinstance(exc, (CognitoThrottled, CognitoUnavailable)):
        status_code = 503
        title = "Service Unavailable"

    extensions = {
        "operation": exc.operation,
        "username": exc.username,
        "awsRequestId": exc.aws_request_id,
        "retryable": bool(exc.retryable),
    }
    extensions = {k: v for k, v in extensions.items() if v is not None}

    if status_code >= 500:
        get_logger("cognito").warning(
            "cognito_error",
            error_type=type(exc).__name__,
            operation=exc.operation,
            aws_request_id=exc.aws_request_id,
        )

    return problem_response(
        request=request,
        status_code=status_code,
        title=title,
        detail=exc.message,
        extensions=extensions,
    )


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    status_code = int(getattr(exc, "status_code", 500) or 500)
    detail = getattr(exc, "detail", None)
    safe_detail = str(detail) if detail is not None else None

    title: str | None = None
    if status_code == 404:
        title = "Not Found"
        safe_detail = safe_detail or "Route not found"

    return problem_response(
        request=request,
        status_code=status_code,
        title=title,
        detail=safe_detail,
    )


def _validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    errors: list[dict[str, object]] = []
    for e in exc.errors():
        loc = e.get("loc") or ()
        errors.append(
            {
                "location": list(loc) if isinstance(loc, (list, tuple)) else [],
                "path": ".".join([str(x) for x in loc if x != "body"]),
                "message": e.get("msg", "Invalid value"),
                "type": e.get("type"),
            }
        )
    return problem_response(
        request=request,
        status_code=422,
        title="Validation Failed",
        detail="Request validation failed",
        errors=errors,
    )


def _unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    user = getattr(getattr(request, "state", None), "user", None)
    get_logger("unhandled").exception(
        "unhandled_exception",
        http_method=str(getattr(request, "method", "") or "").upper() or None,
        path=str(request.url.path),
        caller=getattr(user, "user_name", None) if user else None,
    )

    return problem_response(
        request=request,
        status_code=500,
        title="Internal Server Error",
        detail=str(exc) if exc else None,
    )


app = create_app()
