# qrgate/observability/tracing.py
"""
Minimal OpenTelemetry tracing bootstrap for the FastAPI app.
- Initializes a TracerProvider with a Console exporter.
- Instruments FastAPI request handling.
- Idempotent per process: the provider is only installed once.
"""
from __future__ import annotations

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

_OTEL_INITIALIZED = False


def init_otel(app: FastAPI, service_name: str = "qrgate"):
    """Initialize OpenTelemetry tracing with console exporter and instrument ``app``."""
    global _OTEL_INITIALIZED
    if not _OTEL_INITIALIZED:
        resource = Resource.create({"service.name": service_name})
        provider = TracerProvider(resource=resource)
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(provider)
        _OTEL_INITIALIZED = True

    FastAPIInstrumentor.instrument_app(app)
    return trace.get_tracer(service_name)
