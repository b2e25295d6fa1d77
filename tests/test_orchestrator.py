"""Tests for per-stream orchestration: termination, watchdog and error policies."""

import math
import time

from conftest import ExporterRegistry

from telemetrygen.config import ErrorPolicy, SignalKind, StreamConfig
from telemetrygen.engine import StreamOrchestrator, WorkerStatus
from telemetrygen.errors import ExportError


def _config(signal: SignalKind = SignalKind.METRICS, **kwargs) -> StreamConfig:
    return StreamConfig(signal=signal, **kwargs).validate()


def test_count_bound_stream(resource, registry) -> None:
    """Every worker exports its item count and shuts down once."""
    config = _config(workers=4, count=7)
    result = StreamOrchestrator(config, registry, resource=resource).run()

    assert result.ok
    assert result.emitted == 28
    assert len(result.workers) == 4
    assert len(registry.exporters) == 4
    for exporter in registry.exporters:
        assert len(exporter.batches) == 7
        assert exporter.shutdown_calls == 1


def test_duration_bound_stream_respects_rate(resource, registry) -> None:
    """Exports per worker stay within one of floor(duration * rate)."""
    duration, rate = 0.55, 10
    config = _config(workers=2, rate=rate, duration=duration, count=1000)
    started = time.monotonic()
    result = StreamOrchestrator(config, registry, resource=resource).run()
    elapsed = time.monotonic() - started

    expected = math.floor(duration * rate)
    for worker in result.workers:
        assert expected - 1 <= worker.emitted <= expected + 1
    assert elapsed < duration + 1.0


def test_tiny_duration_still_exports_once(resource, registry) -> None:
    config = _config(workers=3, rate=5, duration=0.001)
    result = StreamOrchestrator(config, registry, resource=resource).run()
    assert all(w.emitted >= 1 for w in result.workers)


def test_duration_without_rate_stops(resource, registry) -> None:
    config = _config(signal=SignalKind.LOGS, workers=2, duration=0.1)
    result = StreamOrchestrator(config, registry, resource=resource).run()
    assert result.ok
    assert all(w.status is WorkerStatus.COMPLETED for w in result.workers)
    assert result.emitted > 2


def test_run_state_cancelled_after_count_bound_run(resource, registry) -> None:
    orchestrator = StreamOrchestrator(_config(count=2), registry, resource=resource)
    orchestrator.run()
    assert orchestrator.run_state.stop.cancelled
    assert orchestrator.run_state.barrier.remaining == 0


def test_exporter_construction_failure_is_counted(resource) -> None:
    """A worker without an exporter degrades the stream; siblings still finish."""
    registry = ExporterRegistry()
    registry.fail_first = 1
    config = _config(workers=3, count=4)
    result = StreamOrchestrator(config, registry, resource=resource).run()

    assert result.exporter_failures == 1
    assert result.emitted == 8
    assert isinstance(result.error, RuntimeError)
    statuses = sorted(w.status.value for w in result.workers)
    assert statuses == ["completed", "completed", "exporter_unavailable"]


def test_isolate_policy_keeps_siblings_running(resource) -> None:
    """Under isolate, a failing worker stops alone and its error is reported."""
    registry = ExporterRegistry(fail_at=1)
    config = _config(workers=3, count=5, error_policy=ErrorPolicy.ISOLATE)
    result = StreamOrchestrator(config, registry, resource=resource).run()

    assert isinstance(result.error, ExportError)
    assert all(w.status is WorkerStatus.EXPORT_FAILED for w in result.workers)
    assert all(w.emitted == 1 for w in result.workers)


def test_abort_policy_stops_every_worker(resource) -> None:
    """Under abort, the first export failure ends an otherwise unbounded stream."""
    registry = ExporterRegistry()
    config = _config(workers=3, count=0, rate=200, error_policy=ErrorPolicy.ABORT)

    failing = ExporterRegistry(fail_at=3)
    created = []

    def factory():
        exporter = failing() if not created else registry()
        created.append(exporter)
        return exporter

    result = StreamOrchestrator(config, factory, resource=resource).run()

    assert isinstance(result.error, ExportError)
    statuses = {w.status for w in result.workers}
    assert WorkerStatus.EXPORT_FAILED in statuses
    assert statuses <= {WorkerStatus.EXPORT_FAILED, WorkerStatus.COMPLETED}
    for exporter in created:
        assert exporter.shutdown_calls == 1


def test_stop_latency_bounded_by_one_cycle(resource) -> None:
    """After the watchdog fires each worker finishes its current export and stops."""
    registry = ExporterRegistry(export_delay=0.05)
    config = _config(workers=4, count=0, duration=0.2)
    started = time.monotonic()
    StreamOrchestrator(config, registry, resource=resource).run()
    elapsed = time.monotonic() - started

    assert elapsed < 0.2 + 0.05 + 0.5
    for exporter in registry.exporters:
        assert exporter.events[-1] == "shutdown"
        assert exporter.events.count("export-start") == exporter.events.count("export-end")
