"""Tests for running many streams from one descriptor."""

from pathlib import Path

import pytest
from conftest import ExporterRegistry

from telemetrygen.config import Descriptor, SignalKind, StreamConfig, parse_descriptor
from telemetrygen.engine import MultiStreamRunner
from telemetrygen.errors import ConfigError


class RegistryPerStream:
    """Builds one ExporterRegistry per stream, optionally broken for one signal kind."""

    def __init__(self, broken: SignalKind | None = None):
        self.broken = broken
        self.registries: dict[SignalKind, list[ExporterRegistry]] = {}

    def __call__(self, config: StreamConfig) -> ExporterRegistry:
        registry = ExporterRegistry()
        if config.signal is self.broken:
            registry.fail_first = config.workers
        self.registries.setdefault(config.signal, []).append(registry)
        return registry


def test_all_streams_complete() -> None:
    descriptor = parse_descriptor(
        {
            "metrics": [{"workers": 2, "metrics": 3}, {"metrics": 4, "metric_type": "histogram"}],
            "logs": [{"workers": 3, "logs": 2}],
            "traces": [{"traces": 5, "child_spans": 2}],
        }
    )
    builder = RegistryPerStream()
    report = MultiStreamRunner(builder).run(descriptor)

    assert report.ok
    assert len(report.streams) == 4
    assert [s.emitted for s in report.streams] == [6, 4, 6, 5]
    assert report.emitted == 21
    assert [r.total_batches for r in builder.registries[SignalKind.METRICS]] == [6, 4]


def test_failing_stream_does_not_stop_siblings() -> None:
    """Exporter construction failing in one stream leaves the others untouched."""
    descriptor = parse_descriptor(
        {
            "metrics": [{"workers": 2, "metrics": 3}],
            "logs": [{"workers": 2, "logs": 3}],
        }
    )
    builder = RegistryPerStream(broken=SignalKind.LOGS)
    report = MultiStreamRunner(builder).run(descriptor)

    metrics, logs = report.streams
    assert metrics.ok
    assert metrics.emitted == 6
    assert not logs.ok
    assert logs.exporter_failures == 2
    assert logs.emitted == 0
    assert len(report.errors) == 1


def test_empty_descriptor_runs_nothing() -> None:
    report = MultiStreamRunner(RegistryPerStream()).run(Descriptor())
    assert report.streams == []
    assert report.ok


def test_duration_streams_run_concurrently() -> None:
    descriptor = parse_descriptor(
        {
            "metrics": [{"duration": "200ms", "rate": 20}],
            "logs": [{"duration": "200ms", "rate": 20}],
            "traces": [{"duration": "200ms", "rate": 20}],
        }
    )
    report = MultiStreamRunner(RegistryPerStream()).run(descriptor)
    assert all(3 <= s.emitted <= 5 for s in report.streams)


def test_run_file(tmp_path: Path) -> None:
    path = tmp_path / "streams.yaml"
    path.write_text("metrics:\n  - metrics: 2\ntraces:\n  - traces: 1\n", encoding="utf-8")
    report = MultiStreamRunner(RegistryPerStream()).run_file(path)
    assert [s.config.signal for s in report.streams] == [SignalKind.METRICS, SignalKind.TRACES]
    assert report.emitted == 3


def test_run_file_parse_error_starts_nothing(tmp_path: Path) -> None:
    path = tmp_path / "streams.yaml"
    path.write_text("metrics:\n  - metric_type: exponential\n", encoding="utf-8")
    builder = RegistryPerStream()
    with pytest.raises(ConfigError):
        MultiStreamRunner(builder).run_file(path)
    assert builder.registries == {}
