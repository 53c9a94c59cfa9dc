import os
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.flask import FlaskInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from models import db

_provider = None


def init_tracing(app):
    """Initialize OpenTelemetry tracing for the Flask app."""
    global _provider
    if not app.config.get("TRACING_ENABLED", True):
        app.logger.info("Tracing disabled")
        return

    # The global provider can only be set once per process
    if _provider is None:
        service_name = app.config.get("OTEL_SERVICE_NAME", "bakery-backend")
        endpoint = app.config.get("OTEL_EXPORTER_OTLP_ENDPOINT")
        _provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
        if app.config.get("TESTING"):
            exporter = ConsoleSpanExporter(out=open(os.devnull, "w"))
        else:
            exporter = OTLPSpanExporter(endpoint=endpoint)
        _provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(_provider)
        set_global_textmap(TraceContextTextMapPropagator())

    FlaskInstrumentor().instrument_app(app)
    with app.app_context():
        SQLAlchemyInstrumentor().instrument(engine=db.engine)
