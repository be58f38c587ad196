"""OpenTelemetry tracing for Thouthy.

HTTP requests and SQL statements are instrumented automatically; score
refreshes and classifier calls open their own spans via ``get_tracer``.
"""

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

SERVICE_NAME = "thouthy"

_sqla_instrumentor = SQLAlchemyInstrumentor()


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name)


def setup_tracing(app, endpoint: str) -> TracerProvider | None:
    """Export spans to the OTLP collector at ``endpoint``.

    An empty endpoint leaves tracing off; spans then go to the no-op provider.
    """
    if not endpoint:
        logger.info("OTLP endpoint not set, tracing disabled")
        return None

    resource = Resource.create({"service.name": SERVICE_NAME})
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(endpoint=endpoint, insecure=endpoint.startswith("http://"))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, excluded_urls="openapi.json,docs")
    logger.info("Exporting traces to %s", endpoint)
    return provider


def instrument_engine(async_engine):
    """Instrument an async SQLAlchemy engine for tracing."""
    _sqla_instrumentor.instrument(engine=async_engine.sync_engine)
