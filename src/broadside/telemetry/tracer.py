"""Tracing helpers built on OpenTelemetry.

Engine modules grab their tracer at import time through :func:`get_tracer`,
before the terminal driver has read any configuration. Until
:func:`init_tracing` runs those tracers are the no-op proxies of the global
API; afterwards the proxies resolve to the installed provider.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.trace import Tracer

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import TelemetryConfig

logger = logging.getLogger(__name__)

_TRACER: Tracer | None = None
_TRACER_PROVIDER: TracerProvider | None = None


def get_tracer(name: str = "broadside") -> Tracer:
    global _TRACER
    if _TRACER is None:
        _TRACER = trace.get_tracer(name)
    return _TRACER


def _span_processor(config: TelemetryConfig) -> SpanProcessor:
    # A terminal match is short; without a collector, print spans as they end.
    if not config.otlp_traces_endpoint:
        return SimpleSpanProcessor(ConsoleSpanExporter())
    exporter = OTLPSpanExporter(endpoint=config.otlp_traces_endpoint, insecure=True)
    return BatchSpanProcessor(exporter)


def init_tracing(config: TelemetryConfig) -> Tracer:
    """Install the Broadside tracer provider and return its tracer."""
    global _TRACER, _TRACER_PROVIDER

    if _TRACER_PROVIDER is not None:
        logger.warning("tracing_already_initialised", extra={"service": config.service_name})
        return get_tracer()

    provider = TracerProvider(resource=Resource.create(config.resource()))
    provider.add_span_processor(_span_processor(config))
    trace.set_tracer_provider(provider)

    _TRACER_PROVIDER = provider
    _TRACER = provider.get_tracer(config.service_name)
    logger.debug(
        "tracing_initialised",
        extra={"endpoint": config.otlp_traces_endpoint or "console"},
    )
    return _TRACER


def shutdown_tracing() -> None:
    """Flush buffered spans and drop the provider so tracing can be set up again."""
    global _TRACER, _TRACER_PROVIDER

    provider = _TRACER_PROVIDER
    _TRACER = None
    _TRACER_PROVIDER = None
    if provider is not None:
        provider.shutdown()
