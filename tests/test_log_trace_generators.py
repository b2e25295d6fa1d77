"""Tests for log record and trace payload generation."""

import random

from opentelemetry._logs import SeverityNumber
from opentelemetry.trace import SpanKind, StatusCode, TraceFlags

from telemetrygen.config import (
    LogSettings,
    SignalKind,
    SpanStatus,
    StreamConfig,
    TraceSettings,
)
from telemetrygen.generators import LogGenerator, TraceGenerator, create_generator
from telemetrygen.generators.trace_generator import CHILD_SPAN_PREFIX, ROOT_SPAN_NAME

NOW = 1_700_000_000_000_000_000


def test_log_record_fields(resource) -> None:
    settings = LogSettings(body="disk full", severity_text="Error", severity_number=17)
    gen = LogGenerator(settings, resource, {"host": "a"}, clock=lambda: NOW)
    batch = gen.build(0)
    assert len(batch) == 1
    record = batch[0].log_record
    assert record.body == "disk full"
    assert record.severity_text == "Error"
    assert record.severity_number == SeverityNumber.ERROR
    assert record.timestamp == NOW
    assert record.observed_timestamp == NOW
    assert dict(record.attributes) == {"host": "a"}
    assert batch[0].resource is resource
    assert batch[0].instrumentation_scope.name == "telemetrygen"
    assert record.trace_id == 0


def test_log_record_trace_correlation(resource) -> None:
    settings = LogSettings(trace_id="ab" * 16, span_id="cd" * 8)
    record = LogGenerator(settings, resource).build(0)[0].log_record
    assert record.trace_id == int("ab" * 16, 16)
    assert record.span_id == int("cd" * 8, 16)
    assert record.trace_flags == TraceFlags.SAMPLED


def test_log_record_span_id_without_trace_id(resource) -> None:
    record = LogGenerator(LogSettings(span_id="cd" * 8), resource).build(0)[0].log_record
    assert record.trace_id == 0
    assert record.span_id == int("cd" * 8, 16)


def test_trace_tree_shape(resource) -> None:
    """One root span plus child_spans children sharing the trace id."""
    settings = TraceSettings(child_spans=3, span_duration=0.002, status=SpanStatus.ERROR)
    gen = TraceGenerator(settings, resource, {"env": "test"}, random.Random(1), clock=lambda: NOW)
    spans = gen.build(0)
    assert len(spans) == 4

    root, children = spans[0], spans[1:]
    assert root.name == ROOT_SPAN_NAME
    assert root.kind == SpanKind.CLIENT
    assert root.parent is None
    assert root.attributes["peer.service"] == "telemetrygen-server"
    for n, child in enumerate(children):
        assert child.name == f"{CHILD_SPAN_PREFIX}-{n}"
        assert child.kind == SpanKind.SERVER
        assert child.parent.span_id == root.context.span_id
        assert child.context.trace_id == root.context.trace_id
        assert child.attributes["env"] == "test"

    for span in spans:
        assert span.start_time == NOW
        assert span.end_time - span.start_time == 2_000_000
        assert span.status.status_code == StatusCode.ERROR
        assert span.context.span_id != 0
    assert len({s.context.span_id for s in spans}) == 4


def test_each_iteration_gets_a_new_trace(resource) -> None:
    gen = TraceGenerator(TraceSettings(child_spans=0), resource)
    first, second = gen.build(0), gen.build(1)
    assert len(first) == 1
    assert first[0].context.trace_id != second[0].context.trace_id


def test_create_generator_per_signal(resource) -> None:
    for kind, cls in (
        (SignalKind.LOGS, LogGenerator),
        (SignalKind.TRACES, TraceGenerator),
    ):
        assert isinstance(create_generator(StreamConfig(signal=kind), resource), cls)


def test_create_generator_seeds_per_worker(resource) -> None:
    config = StreamConfig(signal=SignalKind.TRACES, seed=10)
    a0 = create_generator(config, resource, 0).build(0)[0].context.trace_id
    a0_again = create_generator(config, resource, 0).build(0)[0].context.trace_id
    a1 = create_generator(config, resource, 1).build(0)[0].context.trace_id
    assert a0 == a0_again
    assert a0 != a1
