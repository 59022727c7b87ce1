from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from ..settings import settings
from .context import get_request_id

# Third-party loggers that are noisy at INFO.
_QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "httpcore")

_CONFIGURED = False


def _bind_request_context(_: Any, __: str, event_dict: dict) -> dict:
    rid = get_request_id()
    if rid:
        event_dict.setdefault("request_id", rid)
    event_dict.setdefault("service", settings.otel_service_name)
    event_dict.setdefault("environment", settings.normalized_environment)
    return event_dict


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        _bind_request_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(*, level: str | int = "INFO") -> None:
    """
    Route structlog and stdlib logging (uvicorn, boto) through one JSON renderer
    on stdout. Safe to call more than once.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv = logging.getLogger(name)
        uv.handlers = []
        uv.propagate = True
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: str | None = None):
    return structlog.get_logger(name)
