"""Logging and tracing set-up for the ticket desk API."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter

from apps.api.core.config import Settings

_TRACER_INITIALISED = False


def parse_otlp_headers(header_string: str | None) -> dict[str, str]:
    """Parse ``key=value`` pairs separated by commas, skipping malformed items."""

    if not header_string:
        return {}
    headers: dict[str, str] = {}
    for item in header_string.split(","):
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            continue
        headers[key.strip()] = value.strip()
    return headers


def configure_logging(settings: Settings) -> logging.Logger:
    """Configure root, service and SQL loggers based on settings."""

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    sql_level = logging.INFO if settings.database_echo else logging.WARNING
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": settings.log_format,
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                }
            },
            "loggers": {
                "apps.api": {"level": level, "propagate": True},
                "sqlalchemy.engine": {"level": sql_level, "propagate": True},
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )

    logger = logging.getLogger(settings.app_name)
    logger.setLevel(level)
    return logger


def exporter_options(settings: Settings) -> dict[str, object]:
    """Keyword arguments for the OTLP span exporter derived from settings."""

    options: dict[str, object] = {}
    if settings.otel_exporter_otlp_endpoint:
        options["endpoint"] = settings.otel_exporter_otlp_endpoint
    headers = parse_otlp_headers(settings.otel_exporter_otlp_headers)
    if headers:
        options["headers"] = headers
    return options


def init_tracer(settings: Settings, *, exporter: SpanExporter | None = None) -> TracerProvider | None:
    """Install a global tracer provider exporting ticket desk spans over OTLP.

    Does nothing unless ``otel_enabled`` is set. Spans opened through
    :func:`get_tracer` are no-ops until a provider is installed.
    """

    global _TRACER_INITIALISED

    if _TRACER_INITIALISED or not settings.otel_enabled:
        return None

    provider = TracerProvider(
        resource=Resource(
            attributes={
                "service.name": settings.otel_service_name,
                "deployment.environment": settings.environment,
            }
        )
    )
    provider.add_span_processor(BatchSpanProcessor(exporter or OTLPSpanExporter(**exporter_options(settings))))
    trace.set_tracer_provider(provider)
    _TRACER_INITIALISED = True
    logging.getLogger(__name__).info("Tracing enabled for %s", settings.otel_service_name)
    return provider


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name)


def shutdown_tracer(provider: TracerProvider | None) -> None:
    """Flush pending spans and release the provider."""

    global _TRACER_INITIALISED

    if provider is None:
        return
    provider.force_flush()
    provider.shutdown()
    _TRACER_INITIALISED = False
