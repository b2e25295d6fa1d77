"""
Generate one log record per iteration.

Records carry the configured body and severity, the stream resource and
telemetry attributes, and optionally a fixed trace/span id so that a backend
can correlate them with generated traces.
"""

from typing import Any

from opentelemetry._logs import LogRecord, SeverityNumber
from opentelemetry.context import Context
from opentelemetry.sdk._logs import ReadableLogRecord
from opentelemetry.trace import (
    NonRecordingSpan,
    SpanContext,
    TraceFlags,
    set_span_in_context,
)

from ..config import LogSettings, SignalKind
from .base import SCOPE, SignalGenerator


class LogGenerator(SignalGenerator):
    """Synthesize log records with a fixed body and severity."""

    signal = SignalKind.LOGS

    def __init__(self, settings: LogSettings, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.settings = settings
        self.severity = SeverityNumber(settings.severity_number)
        self.context = self._correlation_context(settings)

    @staticmethod
    def _correlation_context(settings: LogSettings) -> Context | None:
        """Context carrying the configured trace/span ids, or None when neither is set."""
        if not settings.trace_id and not settings.span_id:
            return None
        span_context = SpanContext(
            trace_id=int(settings.trace_id, 16) if settings.trace_id else 0,
            span_id=int(settings.span_id, 16) if settings.span_id else 0,
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.SAMPLED if settings.trace_id else TraceFlags.DEFAULT),
        )
        return set_span_in_context(NonRecordingSpan(span_context), Context())

    def build(self, iteration: int) -> list[ReadableLogRecord]:
        now = self.clock()
        record = LogRecord(
            timestamp=now,
            observed_timestamp=now,
            context=self.context,
            severity_text=self.settings.severity_text,
            severity_number=self.severity,
            body=self.settings.body,
            attributes=dict(self.attributes),
        )
        return [ReadableLogRecord(log_record=record, resource=self.resource, instrumentation_scope=SCOPE)]
