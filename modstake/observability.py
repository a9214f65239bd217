"""
modstake observability: logging setup and optional OpenTelemetry tracing.

Tracing is enabled via environment variables:
- MODSTAKE_OTEL_ENABLED=true
- MODSTAKE_OTEL_SERVICE_NAME=modstake-api
- MODSTAKE_OTEL_EXPORTER=console|otlp
- MODSTAKE_OTEL_OTLP_ENDPOINT=https://... (only if exporter=otlp)
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from .config import get_log_level

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach one stream handler to the package logger. Safe to call repeatedly."""
    logger = logging.getLogger("modstake")
    logger.setLevel(level or get_log_level())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


def configure_observability() -> bool:
    if not _bool_env("MODSTAKE_OTEL_ENABLED", False):
        return False

    service_name = os.environ.get("MODSTAKE_OTEL_SERVICE_NAME", "modstake-api")
    exporter = os.environ.get("MODSTAKE_OTEL_EXPORTER", "console").lower()

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
    except ImportError:
        logging.getLogger(__name__).warning("tracing requested but opentelemetry-sdk is not installed")
        return False

    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)

    if exporter == "otlp":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        endpoint = os.environ.get("MODSTAKE_OTEL_OTLP_ENDPOINT")
        span_exporter = OTLPSpanExporter(endpoint=endpoint) if endpoint else OTLPSpanExporter()
        provider.add_span_processor(BatchSpanProcessor(span_exporter))
    else:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    return True


def instrument_app(app) -> bool:
    if not _bool_env("MODSTAKE_OTEL_ENABLED", False):
        return False
    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.instrumentation.logging import LoggingInstrumentor
    except ImportError:
        return False

    LoggingInstrumentor().instrument(set_logging_format=True)
    FastAPIInstrumentor.instrument_app(app)
    return True
