"""Logging setup, optionally exporting records over OTLP."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .config import TelemetryConfig

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s "
    "| trace_id=%(otelTraceID)s span_id=%(otelSpanID)s"
)

_LOGGER: logging.Logger | None = None
_OTLP_HANDLER: logging.Handler | None = None


class _TraceFieldsFilter(logging.Filter):
    """Fill in trace/span ids so the format string never fails."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        for attribute in ("otelTraceID", "otelSpanID"):
            if not hasattr(record, attribute):
                setattr(record, attribute, "-")
        return True


def get_logger(name: str = "broadside") -> logging.Logger:
    global _LOGGER
    if _LOGGER is None:
        _LOGGER = logging.getLogger(name)
        _LOGGER.setLevel(logging.INFO)
    return _LOGGER


def init_logging(config: TelemetryConfig) -> logging.Logger:
    """Send log records to the OTLP logs endpoint as well as stderr."""
    global _OTLP_HANDLER
    logger = get_logger(config.service_name)

    from opentelemetry._logs import set_logger_provider
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
    from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
    from opentelemetry.sdk.resources import Resource

    provider = LoggerProvider(resource=Resource.create(config.resource()))
    if config.otlp_logs_endpoint:
        exporter = OTLPLogExporter(endpoint=config.otlp_logs_endpoint, insecure=True)
        provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
    set_logger_provider(provider)

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        for handler in root.handlers:
            handler.addFilter(_TraceFieldsFilter())

    if _OTLP_HANDLER is None:
        _OTLP_HANDLER = LoggingHandler(level=logging.INFO, logger_provider=provider)
        _OTLP_HANDLER.addFilter(_TraceFieldsFilter())
        root.addHandler(_OTLP_HANDLER)
    return logger
