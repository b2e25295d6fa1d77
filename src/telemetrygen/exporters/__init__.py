"""Telemetry exporters for various backends."""

from functools import partial

from ..config import SignalKind, StreamConfig
from .console_exporter import create_console_exporter
from .file_exporter import FileLogExporter, FileMetricExporter, FileSpanExporter
from .otlp_exporter import (
    create_otlp_log_exporter,
    create_otlp_metric_exporter,
    create_otlp_trace_exporter,
)

__all__ = [
    "create_otlp_trace_exporter",
    "create_otlp_metric_exporter",
    "create_otlp_log_exporter",
    "FileSpanExporter",
    "FileMetricExporter",
    "FileLogExporter",
    "create_console_exporter",
    "create_exporter_factory",
]

_FILE_EXPORTERS = {
    SignalKind.METRICS: FileMetricExporter,
    SignalKind.LOGS: FileLogExporter,
    SignalKind.TRACES: FileSpanExporter,
}
_OTLP_EXPORTERS = {
    SignalKind.METRICS: create_otlp_metric_exporter,
    SignalKind.LOGS: create_otlp_log_exporter,
    SignalKind.TRACES: create_otlp_trace_exporter,
}


def create_exporter_factory(config: StreamConfig):
    """
    Return a zero-argument callable that builds one exporter for a worker.

    Every worker calls it once, so each gets its own exporter instance
    (and its own connection for OTLP).
    """
    settings = config.exporter
    if settings.console:
        return partial(create_console_exporter, config.signal)
    if settings.output_file:
        return partial(_FILE_EXPORTERS[config.signal], settings.output_file)
    return partial(
        _OTLP_EXPORTERS[config.signal],
        endpoint=settings.resolved_endpoint(),
        protocol=settings.protocol,
        insecure=settings.insecure,
        headers=dict(settings.headers) or None,
        http_path=settings.resolved_http_path(config.signal),
    )
