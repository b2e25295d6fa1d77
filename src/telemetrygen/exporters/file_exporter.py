"""
File-based exporters for offline analysis and debugging.

Writes one JSON object per line (JSONL). All workers of a stream may share one
output file; writes to the same path are serialized by a per-path lock so
lines never interleave. Existing files are appended to.
"""

import json
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from opentelemetry.sdk._logs import ReadableLogRecord
from opentelemetry.sdk._logs.export import LogRecordExporter, LogRecordExportResult
from opentelemetry.sdk.metrics.export import MetricExporter, MetricExportResult, MetricsData
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

_path_locks: dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _path_locks_guard:
        return _path_locks.setdefault(path.resolve(), threading.Lock())


class _JsonlWriter:
    """Shared setup and line writing for the file exporters."""

    def __init__(self, output_path: str | Path):
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = _lock_for(self.output_path)

    def _write(self, rows: list[dict[str, Any]]) -> None:
        with self._lock, open(self.output_path, "a", encoding="utf-8") as f:
            for row in rows:
                f.write(json.dumps(row, default=str) + "\n")


class FileSpanExporter(_JsonlWriter, SpanExporter):
    """Export spans to a JSONL file."""

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        """Export spans to file."""
        try:
            self._write([span_to_dict(span) for span in spans])
            return SpanExportResult.SUCCESS
        except Exception:
            return SpanExportResult.FAILURE

    def shutdown(self) -> None:
        """Shutdown exporter."""
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True


class FileMetricExporter(_JsonlWriter, MetricExporter):
    """Export metrics to a JSONL file."""

    def __init__(self, output_path: str | Path):
        MetricExporter.__init__(self)
        _JsonlWriter.__init__(self, output_path)

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10000,
        **kwargs,
    ) -> MetricExportResult:
        """Export metrics to file."""
        try:
            self._write(metrics_to_dicts(metrics_data))
            return MetricExportResult.SUCCESS
        except Exception:
            return MetricExportResult.FAILURE

    def shutdown(self, timeout_millis: float = 30000, **kwargs) -> None:
        """Shutdown exporter."""
        pass

    def force_flush(self, timeout_millis: float = 10000) -> bool:
        return True


class FileLogExporter(_JsonlWriter, LogRecordExporter):
    """Export logs to a JSONL file."""

    def export(self, batch: Sequence[ReadableLogRecord]) -> LogRecordExportResult:
        """Export logs to file."""
        try:
            self._write([log_to_dict(item) for item in batch])
            return LogRecordExportResult.SUCCESS
        except Exception:
            return LogRecordExportResult.FAILURE

    def shutdown(self) -> None:
        """Shutdown exporter."""
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True


def span_to_dict(span: ReadableSpan) -> dict[str, Any]:
    return {
        "name": span.name,
        "trace_id": format(span.context.trace_id, "032x"),
        "span_id": format(span.context.span_id, "016x"),
        "parent_span_id": format(span.parent.span_id, "016x") if span.parent else None,
        "start_time": span.start_time,
        "end_time": span.end_time,
        "status": {
            "status_code": span.status.status_code.name,
            "description": span.status.description,
        },
        "attributes": dict(span.attributes) if span.attributes else {},
        "kind": span.kind.name if span.kind else "INTERNAL",
        "resource": dict(span.resource.attributes) if span.resource else {},
    }


def _point_to_dict(dp: Any) -> dict[str, Any]:
    point: dict[str, Any] = {
        "attributes": dict(dp.attributes) if dp.attributes else {},
        "start_time": dp.start_time_unix_nano,
        "time": dp.time_unix_nano,
    }
    if hasattr(dp, "value"):
        point["value"] = dp.value
    if hasattr(dp, "bucket_counts"):
        point["count"] = dp.count
        point["sum"] = dp.sum
        point["bucket_counts"] = list(dp.bucket_counts)
        point["explicit_bounds"] = list(dp.explicit_bounds)
        point["min"] = dp.min
        point["max"] = dp.max
    return point


def metrics_to_dicts(metrics_data: MetricsData) -> list[dict[str, Any]]:
    rows = []
    for resource_metrics in metrics_data.resource_metrics:
        resource_attrs = (
            dict(resource_metrics.resource.attributes) if resource_metrics.resource else {}
        )
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                data = metric.data
                row: dict[str, Any] = {
                    "name": metric.name,
                    "type": type(data).__name__,
                    "description": metric.description,
                    "unit": metric.unit,
                    "resource": resource_attrs,
                    "data_points": [_point_to_dict(dp) for dp in data.data_points],
                }
                temporality = getattr(data, "aggregation_temporality", None)
                if temporality is not None:
                    row["temporality"] = temporality.name
                if hasattr(data, "is_monotonic"):
                    row["is_monotonic"] = data.is_monotonic
                rows.append(row)
    return rows


def log_to_dict(item: ReadableLogRecord) -> dict[str, Any]:
    record = item.log_record
    return {
        "timestamp": record.timestamp,
        "observed_timestamp": record.observed_timestamp,
        "severity_number": record.severity_number.value if record.severity_number else None,
        "severity_text": record.severity_text,
        "body": str(record.body) if record.body is not None else None,
        "attributes": dict(record.attributes) if record.attributes else {},
        "trace_id": format(record.trace_id, "032x") if record.trace_id else None,
        "span_id": format(record.span_id, "016x") if record.span_id else None,
        "resource": dict(item.resource.attributes) if item.resource else {},
    }
