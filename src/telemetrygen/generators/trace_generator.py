"""
Generate one small trace per iteration.

Tree:
  lets-go (CLIENT)
  ├── okey-dokey-0 (SERVER)
  ├── okey-dokey-1 (SERVER)
  └── ...

All spans share one random trace id and last span_duration each. Spans are
built directly as ReadableSpan so no tracer provider or span processor sits
between the generator and the exporter.
"""

from typing import Any

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.trace import SpanContext, SpanKind, Status, StatusCode, TraceFlags

from ..config import SignalKind, SpanStatus, TraceSettings
from .base import SCOPE, SignalGenerator

ROOT_SPAN_NAME = "lets-go"
CHILD_SPAN_PREFIX = "okey-dokey"

_STATUS_CODES = {
    SpanStatus.UNSET: StatusCode.UNSET,
    SpanStatus.OK: StatusCode.OK,
    SpanStatus.ERROR: StatusCode.ERROR,
}


class TraceGenerator(SignalGenerator):
    """Synthesize a root span with a fixed number of children."""

    signal = SignalKind.TRACES

    def __init__(self, settings: TraceSettings, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.settings = settings
        self.status = Status(_STATUS_CODES[settings.status])
        self.duration_ns = int(settings.span_duration * 1_000_000_000)

    def _new_id(self, bits: int) -> int:
        # Zero is the invalid id in OTEL.
        value = 0
        while value == 0:
            value = self.rng.getrandbits(bits)
        return value

    def _span(
        self,
        name: str,
        trace_id: int,
        kind: SpanKind,
        start: int,
        parent: SpanContext | None,
        attributes: dict[str, Any],
    ) -> ReadableSpan:
        context = SpanContext(
            trace_id=trace_id,
            span_id=self._new_id(64),
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )
        return ReadableSpan(
            name=name,
            context=context,
            parent=parent,
            resource=self.resource,
            attributes=attributes,
            kind=kind,
            status=self.status,
            start_time=start,
            end_time=start + self.duration_ns,
            instrumentation_scope=SCOPE,
        )

    def build(self, iteration: int) -> list[ReadableSpan]:
        start = self.clock()
        trace_id = self._new_id(128)
        attrs = dict(self.attributes)
        attrs.setdefault("net.peer.ip", "1.2.3.4")
        attrs.setdefault("peer.service", "telemetrygen-server")

        root = self._span(ROOT_SPAN_NAME, trace_id, SpanKind.CLIENT, start, None, attrs)
        spans = [root]
        for n in range(self.settings.child_spans):
            spans.append(
                self._span(
                    f"{CHILD_SPAN_PREFIX}-{n}",
                    trace_id,
                    SpanKind.SERVER,
                    start,
                    root.context,
                    dict(self.attributes),
                )
            )
        return spans
