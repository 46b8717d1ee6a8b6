"""Metrics helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from opentelemetry import metrics as otel_metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import Counter, Meter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

if TYPE_CHECKING:  # pragma: no cover
    from .config import TelemetryConfig

EXPORT_INTERVAL_MILLIS = 5000

MetricAttributes = Mapping[str, str | bool | int | float]

_METER_PROVIDER: MeterProvider | None = None
_METER: Meter | None = None
_COUNTERS: dict[str, Counter] = {}


def get_meter(name: str = "broadside") -> Meter:
    global _METER
    if _METER is None:
        _METER = otel_metrics.get_meter(name)
    return _METER


def init_metrics(config: TelemetryConfig) -> Meter:
    global _METER_PROVIDER, _METER, _COUNTERS

    readers = []
    if config.otlp_metrics_endpoint:
        exporter = OTLPMetricExporter(endpoint=config.otlp_metrics_endpoint, insecure=True)
        readers.append(
            PeriodicExportingMetricReader(exporter, export_interval_millis=EXPORT_INTERVAL_MILLIS)
        )

    provider = MeterProvider(resource=Resource.create(config.resource()), metric_readers=readers)
    otel_metrics.set_meter_provider(provider)

    _METER_PROVIDER = provider
    _METER = provider.get_meter(config.service_name)
    _COUNTERS = {}
    return _METER


def record_match_metric(name: str, value: float, attrs: MetricAttributes | None = None) -> None:
    """Add ``value`` to the counter ``name``, creating it on first use."""
    counter = _COUNTERS.get(name)
    if counter is None:
        counter = get_meter().create_counter(name)
        _COUNTERS[name] = counter
    counter.add(value, attributes=attrs or {})


def shutdown_metrics() -> None:
    """Export pending counts and forget the provider and cached counters."""
    global _METER_PROVIDER, _METER, _COUNTERS

    provider = _METER_PROVIDER
    _METER_PROVIDER = None
    _METER = None
    _COUNTERS = {}
    if provider is not None:
        provider.shutdown()
