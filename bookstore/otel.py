import logging
import os

from opentelemetry import metrics, trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import format_span_id, format_trace_id, get_current_span

from .config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_SERVICE_NAME = "bookstore-api"
METRIC_EXPORT_INTERVAL_MS = 15000


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("bookstore").setLevel(level.upper())


def otlp_url(signal: str) -> str:
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://otel-collector:4318")
    return f"{endpoint.rstrip('/')}/v1/{signal}"


def build_resource(settings: Settings) -> Resource:
    return Resource.create(
        {
            "service.name": os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME),
            "service.version": settings.version,
            "bookstore.storage_backend": settings.storage_backend,
        }
    )


def stamp_trace_context(logger, log_record) -> None:
    """Copy the active span's ids onto an exported log record."""
    context = get_current_span().get_span_context()
    if not context.is_valid:
        return
    log_record.attributes["trace_id"] = format_trace_id(context.trace_id)
    log_record.attributes["span_id"] = format_span_id(context.span_id)


def configure_otel(app, settings: Settings) -> None:
    resource = build_resource(settings)

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_url("traces"))))
    trace.set_tracer_provider(tracer_provider)

    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[
            PeriodicExportingMetricReader(
                OTLPMetricExporter(endpoint=otlp_url("metrics")),
                export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
            )
        ],
    )
    metrics.set_meter_provider(meter_provider)

    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(OTLPLogExporter(endpoint=otlp_url("logs"))))
    set_logger_provider(logger_provider)
    logging.getLogger().addHandler(LoggingHandler(level=settings.log_level.upper(), logger_provider=logger_provider))

    LoggingInstrumentor().instrument(set_logging_format=True, log_hook=stamp_trace_context)
    # the admin client talks to the API over httpx
    HTTPXClientInstrumentor().instrument()
    FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider, meter_provider=meter_provider)
