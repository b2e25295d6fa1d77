"""
Console exporters for debugging and development.

Prints telemetry to stdout for quick verification.
"""

from opentelemetry.sdk._logs.export import ConsoleLogRecordExporter
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter
from opentelemetry.sdk.trace.export import ConsoleSpanExporter

from ..config import SignalKind


def create_console_exporter(signal: SignalKind):
    """
    Create a console exporter for one signal kind.

    Returns:
        ConsoleMetricExporter, ConsoleLogRecordExporter or ConsoleSpanExporter
    """
    if signal is SignalKind.METRICS:
        return ConsoleMetricExporter()
    if signal is SignalKind.LOGS:
        return ConsoleLogRecordExporter()
    return ConsoleSpanExporter()
