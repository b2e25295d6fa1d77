"""
Defaults read from the environment.

Standard OTEL variables are honoured where they exist (OTEL_EXPORTER_OTLP_ENDPOINT,
OTEL_SERVICE_NAME); TELEMETRYGEN_HISTOGRAM_BOUNDS overrides the default histogram
bucket bounds (comma-separated, ascending).
"""

import os

from .errors import ConfigError

DEFAULT_GRPC_ENDPOINT = "localhost:4317"
DEFAULT_HTTP_ENDPOINT = "localhost:4318"
DEFAULT_SERVICE_NAME = "telemetrygen"
DEFAULT_METRIC_NAME = "gen"
DEFAULT_HISTOGRAM_BOUNDS = (2.0, 4.0, 8.0, 16.0, 32.0, 64.0, 128.0)

# OTLP/HTTP request paths per signal kind, used unless a stream sets its own.
DEFAULT_HTTP_PATHS = {
    "metrics": "/v1/metrics",
    "logs": "/v1/logs",
    "traces": "/v1/traces",
}

# Upper bound (exclusive) for randomized gauge and sum values.
RANDOM_VALUE_CEILING = 10000
# Randomized histograms draw between 1 and this many samples per data point.
MAX_RANDOM_HISTOGRAM_SAMPLES = 100


def get_default_endpoint(protocol: str = "grpc") -> str:
    """OTLP endpoint: OTEL_EXPORTER_OTLP_ENDPOINT when set, else the protocol's localhost port."""
    raw = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", "").strip()
    if raw:
        return raw
    return DEFAULT_HTTP_ENDPOINT if protocol == "http" else DEFAULT_GRPC_ENDPOINT


def get_default_service_name() -> str:
    return os.environ.get("OTEL_SERVICE_NAME", "").strip() or DEFAULT_SERVICE_NAME


def parse_bounds(raw: str) -> tuple[float, ...]:
    """Parse comma-separated histogram bounds ("2,4,8")."""
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    try:
        return tuple(float(p) for p in parts)
    except ValueError:
        raise ConfigError(f"histogram bucket bounds must be comma-separated numbers: {raw!r}") from None


def get_default_histogram_bounds() -> tuple[float, ...]:
    """Histogram bounds from TELEMETRYGEN_HISTOGRAM_BOUNDS, else DEFAULT_HISTOGRAM_BOUNDS."""
    raw = os.environ.get("TELEMETRYGEN_HISTOGRAM_BOUNDS", "").strip()
    if not raw:
        return DEFAULT_HISTOGRAM_BOUNDS
    return parse_bounds(raw)
