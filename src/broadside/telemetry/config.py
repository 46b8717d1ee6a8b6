"""Telemetry settings read from the environment."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field

from .logger import init_logging
from .metrics import init_metrics, shutdown_metrics
from .tracer import init_tracing, shutdown_tracing

TRUTHY = {"1", "true", "yes", "on"}

FLAG_ENV = {
    "enable_tracing": ("BROADSIDE_ENABLE_TRACING", "OTEL_TRACES_ENABLED"),
    "enable_metrics": ("BROADSIDE_ENABLE_METRICS", "OTEL_METRICS_ENABLED"),
    "enable_logging": ("BROADSIDE_ENABLE_LOGGING", "OTEL_LOGS_ENABLED"),
}

ENDPOINT_ENV = {
    "otlp_traces_endpoint": ("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "v1/traces"),
    "otlp_metrics_endpoint": ("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT", "v1/metrics"),
    "otlp_logs_endpoint": ("OTEL_EXPORTER_OTLP_LOGS_ENDPOINT", "v1/logs"),
}

ENDPOINT_FLAGS = {
    "otlp_traces_endpoint": "enable_tracing",
    "otlp_metrics_endpoint": "enable_metrics",
    "otlp_logs_endpoint": "enable_logging",
}


class TelemetryConfig(BaseModel):
    """Which exporters to run and where they send data."""

    enable_tracing: bool = False
    enable_metrics: bool = False
    enable_logging: bool = False
    otlp_traces_endpoint: str | None = None
    otlp_metrics_endpoint: str | None = None
    otlp_logs_endpoint: str | None = None
    service_name: str = "broadside"
    service_namespace: str = "game"
    resource_attributes: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_env(cls, **overrides: Any) -> "TelemetryConfig":
        """Build from ``BROADSIDE_*`` and standard ``OTEL_*`` variables."""

        data: Dict[str, Any] = cls().model_dump()
        data.update(overrides)

        for field, names in FLAG_ENV.items():
            for name in names:
                value = os.getenv(name)
                if value is not None:
                    data[field] = value.strip().lower() in TRUTHY
                    break

        base = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        for field, (name, suffix) in ENDPOINT_ENV.items():
            if data.get(field):
                continue
            data[field] = os.getenv(name) or (f"{base.rstrip('/')}/{suffix}" if base else None)

        data["service_name"] = os.getenv("OTEL_SERVICE_NAME") or data["service_name"]
        data["service_namespace"] = os.getenv("OTEL_SERVICE_NAMESPACE") or data["service_namespace"]

        raw_attributes = os.getenv("OTEL_RESOURCE_ATTRIBUTES", "")
        attributes = dict(data.get("resource_attributes") or {})
        for pair in raw_attributes.split(","):
            key, sep, value = pair.partition("=")
            if sep:
                attributes[key.strip()] = value.strip()
        data["resource_attributes"] = attributes

        # A configured endpoint switches its exporter on.
        for endpoint, flag in ENDPOINT_FLAGS.items():
            if data.get(endpoint):
                data[flag] = True

        return cls(**data)

    def resource(self) -> dict[str, str]:
        attributes = {
            "service.name": self.service_name,
            "service.namespace": self.service_namespace,
        }
        attributes.update(self.resource_attributes)
        return attributes


@lru_cache(maxsize=1)
def load_telemetry_config() -> TelemetryConfig:
    return TelemetryConfig.from_env()


def init_telemetry(config: TelemetryConfig | None = None) -> TelemetryConfig:
    """Start whichever exporters ``config`` enables."""

    resolved = config or load_telemetry_config()
    if resolved.enable_tracing:
        init_tracing(resolved)
    if resolved.enable_metrics:
        init_metrics(resolved)
    if resolved.enable_logging:
        init_logging(resolved)
    return resolved


def shutdown_telemetry() -> None:
    shutdown_tracing()
    shutdown_metrics()
