"""
OTLP exporters for traces, metrics, and logs.

Provides factory functions for creating OTLP exporters with proper configuration.
Supports both HTTP and gRPC protocols. Endpoints may be given with or without a
scheme ("localhost:4317"); HTTP endpoints get one based on the insecure flag,
plus the per-signal URL path unless the endpoint URL already carries a path.
"""

from typing import Any
from urllib.parse import urlsplit

from ..defaults import DEFAULT_HTTP_PATHS


def _grpc_endpoint(endpoint: str) -> str:
    return endpoint.replace("http://", "").replace("https://", "")


def _http_endpoint(endpoint: str, insecure: bool, path: str) -> str:
    if "://" not in endpoint:
        endpoint = f"{'http' if insecure else 'https'}://{endpoint}"
    endpoint = endpoint.rstrip("/")
    # A full URL that already names a path is used as given.
    if urlsplit(endpoint).path:
        return endpoint
    return f"{endpoint}{path}"


def create_otlp_trace_exporter(
    endpoint: str = "localhost:4317",
    protocol: str = "grpc",
    insecure: bool = False,
    headers: dict[str, str] | None = None,
    http_path: str = DEFAULT_HTTP_PATHS["traces"],
    **kwargs: Any,
):
    """
    Create an OTLP trace exporter.

    Args:
        endpoint: OTLP endpoint (host:port or URL)
        protocol: "grpc" or "http"
        insecure: Use plaintext instead of TLS
        headers: Optional headers to include
        http_path: URL path appended to a bare HTTP endpoint
        **kwargs: Additional exporter configuration

    Returns:
        Configured SpanExporter
    """
    if protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        return OTLPSpanExporter(
            endpoint=_grpc_endpoint(endpoint),
            insecure=insecure,
            headers=headers,
            **kwargs,
        )
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (  # type: ignore[assignment]
        OTLPSpanExporter,
    )

    return OTLPSpanExporter(
        endpoint=_http_endpoint(endpoint, insecure, http_path),
        headers=headers,
        **kwargs,
    )


def create_otlp_metric_exporter(
    endpoint: str = "localhost:4317",
    protocol: str = "grpc",
    insecure: bool = False,
    headers: dict[str, str] | None = None,
    http_path: str = DEFAULT_HTTP_PATHS["metrics"],
    **kwargs: Any,
):
    """
    Create an OTLP metric exporter.

    Args:
        endpoint: OTLP endpoint (host:port or URL)
        protocol: "grpc" or "http"
        insecure: Use plaintext instead of TLS
        headers: Optional headers to include
        http_path: URL path appended to a bare HTTP endpoint
        **kwargs: Additional exporter configuration

    Returns:
        Configured MetricExporter
    """
    if protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        return OTLPMetricExporter(
            endpoint=_grpc_endpoint(endpoint),
            insecure=insecure,
            headers=headers,
            **kwargs,
        )
    from opentelemetry.exporter.otlp.proto.http.metric_exporter import (  # type: ignore[assignment]
        OTLPMetricExporter,
    )

    return OTLPMetricExporter(
        endpoint=_http_endpoint(endpoint, insecure, http_path),
        headers=headers,
        **kwargs,
    )


def create_otlp_log_exporter(
    endpoint: str = "localhost:4317",
    protocol: str = "grpc",
    insecure: bool = False,
    headers: dict[str, str] | None = None,
    http_path: str = DEFAULT_HTTP_PATHS["logs"],
    **kwargs: Any,
):
    """
    Create an OTLP log exporter.

    Args:
        endpoint: OTLP endpoint (host:port or URL)
        protocol: "grpc" or "http"
        insecure: Use plaintext instead of TLS
        headers: Optional headers to include
        http_path: URL path appended to a bare HTTP endpoint
        **kwargs: Additional exporter configuration

    Returns:
        Configured LogRecordExporter
    """
    if protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter

        return OTLPLogExporter(
            endpoint=_grpc_endpoint(endpoint),
            insecure=insecure,
            headers=headers,
            **kwargs,
        )
    from opentelemetry.exporter.otlp.proto.http._log_exporter import (  # type: ignore[assignment]
        OTLPLogExporter,
    )

    return OTLPLogExporter(
        endpoint=_http_endpoint(endpoint, insecure, http_path),
        headers=headers,
        **kwargs,
    )
