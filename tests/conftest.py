"""Shared fixtures: in-memory exporters and a test resource."""

import threading
import time
from typing import Any

import pytest
from opentelemetry.sdk.metrics.export import MetricExportResult
from opentelemetry.sdk.resources import Resource


class RecordingExporter:
    """In-memory exporter that records batches and lifecycle events."""

    def __init__(
        self,
        fail_at: int | None = None,
        raise_at: int | None = None,
        export_delay: float = 0.0,
        shutdown_error: Exception | None = None,
    ):
        self.fail_at = fail_at
        self.raise_at = raise_at
        self.export_delay = export_delay
        self.shutdown_error = shutdown_error
        self.batches: list[Any] = []
        self.events: list[str] = []
        self.shutdown_calls = 0

    def export(self, batch: Any) -> MetricExportResult:
        index = len(self.batches)
        self.events.append("export-start")
        if self.export_delay:
            time.sleep(self.export_delay)
        self.batches.append(batch)
        self.events.append("export-end")
        if self.raise_at is not None and index >= self.raise_at:
            raise ConnectionError("collector unreachable")
        if self.fail_at is not None and index >= self.fail_at:
            return MetricExportResult.FAILURE
        return MetricExportResult.SUCCESS

    def shutdown(self) -> None:
        self.shutdown_calls += 1
        self.events.append("shutdown")
        if self.shutdown_error is not None:
            raise self.shutdown_error


class ExporterRegistry:
    """Exporter factory that remembers every exporter it built."""

    def __init__(self, **exporter_kwargs: Any):
        self.exporter_kwargs = exporter_kwargs
        self.exporters: list[RecordingExporter] = []
        self.fail_first: int = 0
        self.construction_failures = 0
        self._lock = threading.Lock()

    def __call__(self) -> RecordingExporter:
        with self._lock:
            if self.construction_failures < self.fail_first:
                self.construction_failures += 1
                raise RuntimeError("cannot dial collector")
            exporter = RecordingExporter(**self.exporter_kwargs)
            self.exporters.append(exporter)
            return exporter

    @property
    def total_batches(self) -> int:
        return sum(len(e.batches) for e in self.exporters)


@pytest.fixture
def resource() -> Resource:
    return Resource.create({"service.name": "telemetrygen-test"})


@pytest.fixture
def registry() -> ExporterRegistry:
    return ExporterRegistry()
