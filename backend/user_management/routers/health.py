from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import ORJSONResponse

from ..infrastructure.redis_client import ping
from ..settings import settings

router = APIRouter(tags=["health"])


def _health() -> ORJSONResponse:
    redis_up = ping()
    # Any DOWN component reports the service as unavailable.
    return ORJSONResponse(
        status_code=200 if redis_up else 503,
        content={
            "status": "UP" if redis_up else "DOWN",
            "environment": settings.normalized_environment,
            "components": {
                "redis": {"status": "UP" if redis_up else "DOWN"},
                "cognito": {"status": "CONFIGURED" if settings.cognito_user_pool_id else "MISSING"},
            },
        },
    )


@router.get("/")
def root_health():
    return _health()


@router.get("/actuator/health")
def actuator_health():
    return _health()
