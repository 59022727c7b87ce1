from __future__ import annotations

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from ..settings import Settings
from .logging import get_logger


def configure_otel(settings: Settings) -> bool:
    """
    Optional OpenTelemetry setup, replacing the X-Ray daemon wiring.

    - If OTEL is disabled, do nothing.
    - If exporter config is missing, fall back to console exporter (useful in dev).

    Returns whether a tracer provider was installed.
    """
    if not settings.otel_enabled:
        return False

    log = get_logger("otel")

    service_name = str(settings.otel_service_name or "tis-trainee-user-management").strip()
    resource = Resource.create(
        {
            "service.name": service_name,
            "deployment.environment": settings.normalized_environment,
        }
    )
    provider = TracerProvider(resource=resource)

    endpoint = str(settings.otel_exporter_otlp_endpoint or "").strip()
    if endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        log.info("otel_configured", exporter="otlp_http", endpoint=endpoint)
    else:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        log.info("otel_configured", exporter="console")

    trace.set_tracer_provider(provider)
    return True


def instrument_app(app: FastAPI, settings: Settings) -> None:
    """
    Wire instrumentation for inbound HTTP and the profile-service httpx client.
    """
    if not settings.otel_enabled:
        return

    log = get_logger("otel")

    FastAPIInstrumentor.instrument_app(app)
    log.info("otel_instrumented", target="fastapi")

    HTTPXClientInstrumentor().instrument()
    log.info("otel_instrumented", target="httpx")
