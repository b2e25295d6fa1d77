"""
Stream configuration for telemetry generation.

A stream is one independently configured generation run: one signal kind, a
number of workers, a per-worker rate and a termination policy (duration or
per-worker item count). Streams come from CLI flags (see cli.py) or from a YAML
descriptor that groups many of them under the top-level keys metrics, logs and
traces:

    metrics:
      - workers: 2
        rate: 10
        duration: 30s
        metric_type: histogram
        random_metric_values: true
    logs:
      - logs: 100
        severity_text: Warn
        severity_number: 13

Descriptor parsing returns a Descriptor value; nothing is cached at module level.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from opentelemetry.sdk.resources import Resource

from .defaults import (
    DEFAULT_HTTP_PATHS,
    DEFAULT_METRIC_NAME,
    get_default_endpoint,
    get_default_histogram_bounds,
    get_default_service_name,
    parse_bounds,
)
from .errors import ConfigError


class SignalKind(Enum):
    """Signal kinds; values double as descriptor section names."""

    METRICS = "metrics"
    LOGS = "logs"
    TRACES = "traces"


class MetricVariant(Enum):
    GAUGE = "gauge"
    SUM = "sum"
    HISTOGRAM = "histogram"


class ErrorPolicy(Enum):
    """What a stream does when one of its workers fails mid-run."""

    ISOLATE = "isolate"
    ABORT = "abort"


class SpanStatus(Enum):
    UNSET = "unset"
    OK = "ok"
    ERROR = "error"


PROTOCOLS = ("grpc", "http")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_HEX_TRACE_ID = re.compile(r"^[0-9a-fA-F]{32}$")
_HEX_SPAN_ID = re.compile(r"^[0-9a-fA-F]{16}$")


def parse_enum(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    """Resolve a case-insensitive string (or enum member) to a member of enum_cls."""
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip().lower()
    for member in enum_cls:
        if member.value == text:
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ConfigError(f"{field_name} must be one of {allowed}; got {value!r}")


def parse_duration(value: Any, field_name: str = "duration") -> float:
    """
    Parse a duration into seconds.

    Accepts numbers (seconds), numeric strings and Go-style strings such as
    "500ms", "10s", "1m30s" or "123us". None and empty strings mean 0.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be a duration; got {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        try:
            seconds = float(text)
        except ValueError:
            parts = _DURATION_PART.findall(text)
            if not parts or "".join(n + u for n, u in parts) != text:
                raise ConfigError(f"{field_name} is not a valid duration: {value!r}") from None
            seconds = sum(float(n) * _DURATION_UNITS[u] for n, u in parts)
    if not math.isfinite(seconds):
        raise ConfigError(f"{field_name} must be finite; got {value!r}")
    if seconds < 0:
        raise ConfigError(f"{field_name} must not be negative; got {value!r}")
    return seconds


def parse_bool(value: Any, field_name: str) -> bool:
    """Accept a YAML boolean or the strings true/false (any case); anything else is an error."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigError(f"{field_name} must be true or false; got {value!r}")


def _coerce_attribute_value(raw: str) -> Any:
    """Interpret a CLI attribute value: true/false, integers, or (optionally quoted) strings."""
    text = raw.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    if text.lower() in ("true", "false"):
        return text.lower() == "true"
    try:
        return int(text)
    except ValueError:
        return text


def parse_key_values(items: Any, field_name: str = "attributes") -> dict[str, Any]:
    """Build an attribute dict from a mapping or a list of key=value strings."""
    if not items:
        return {}
    if isinstance(items, dict):
        result: dict[str, Any] = {}
        for key, value in items.items():
            if not isinstance(value, (str, bool, int, float)):
                raise ConfigError(f"{field_name}.{key} must be a scalar; got {value!r}")
            result[str(key)] = value
        return result
    if isinstance(items, str):
        items = [items]
    result = {}
    for item in items:
        key, sep, value = str(item).partition("=")
        if not sep or not key.strip():
            raise ConfigError(f"{field_name} entries must look like key=value; got {item!r}")
        result[key.strip()] = _coerce_attribute_value(value)
    return result


@dataclass
class MetricSettings:
    """Metric payload parameters."""

    variant: MetricVariant = MetricVariant.GAUGE
    random_values: bool = False
    bucket_bounds: tuple[float, ...] = field(default_factory=get_default_histogram_bounds)
    name: str = DEFAULT_METRIC_NAME

    def validate(self) -> None:
        bounds = self.bucket_bounds
        if any(b >= nxt for b, nxt in zip(bounds, bounds[1:])):
            raise ConfigError(f"histogram bucket bounds must be strictly ascending: {list(bounds)}")
        if self.variant is MetricVariant.HISTOGRAM:
            if not bounds:
                raise ConfigError("histogram metrics need at least one bucket bound")
            if bounds[-1] < 1:
                raise ConfigError("the largest histogram bucket bound must be at least 1")
        if not self.name:
            raise ConfigError("metric name must not be empty")


@dataclass
class LogSettings:
    """Log record parameters."""

    body: str = "the message"
    severity_text: str = "Info"
    severity_number: int = 9
    trace_id: str | None = None
    span_id: str | None = None

    def validate(self) -> None:
        if not 1 <= self.severity_number <= 24:
            raise ConfigError(f"severity number must be between 1 and 24; got {self.severity_number}")
        if self.trace_id and not _HEX_TRACE_ID.match(self.trace_id):
            raise ConfigError(f"trace id must be 32 hex characters; got {self.trace_id!r}")
        if self.span_id and not _HEX_SPAN_ID.match(self.span_id):
            raise ConfigError(f"span id must be 16 hex characters; got {self.span_id!r}")


@dataclass
class TraceSettings:
    """Trace payload parameters."""

    child_spans: int = 1
    span_duration: float = 123e-6
    status: SpanStatus = SpanStatus.UNSET

    def validate(self) -> None:
        if self.child_spans < 0:
            raise ConfigError(f"child spans must not be negative; got {self.child_spans}")


@dataclass
class ExporterSettings:
    """Where batches go: OTLP (default), a JSONL file, or the console."""

    endpoint: str | None = None
    protocol: str = "grpc"
    insecure: bool = False
    headers: dict[str, str] = field(default_factory=dict)
    output_file: str | None = None
    console: bool = False
    http_path: str | None = None

    def validate(self) -> None:
        if self.protocol not in PROTOCOLS:
            raise ConfigError(f"protocol must be one of {', '.join(PROTOCOLS)}; got {self.protocol!r}")
        if self.http_path is not None and not self.http_path.startswith("/"):
            raise ConfigError(f"HTTP URL path must start with '/'; got {self.http_path!r}")
        if self.output_file and self.console:
            raise ConfigError("output file and console export are mutually exclusive")

    def resolved_endpoint(self) -> str:
        return self.endpoint or get_default_endpoint(self.protocol)

    def resolved_http_path(self, signal: SignalKind) -> str:
        return self.http_path or DEFAULT_HTTP_PATHS[signal.value]


@dataclass
class StreamConfig:
    """One stream: signal kind, concurrency, cadence, termination and payload parameters."""

    signal: SignalKind
    workers: int = 1
    rate: float = 0.0
    duration: float = 0.0
    count: int = 1
    service_name: str = field(default_factory=get_default_service_name)
    resource_attributes: dict[str, Any] = field(default_factory=dict)
    telemetry_attributes: dict[str, Any] = field(default_factory=dict)
    error_policy: ErrorPolicy = ErrorPolicy.ISOLATE
    seed: int | None = None
    metric: MetricSettings = field(default_factory=MetricSettings)
    log: LogSettings = field(default_factory=LogSettings)
    trace: TraceSettings = field(default_factory=TraceSettings)
    exporter: ExporterSettings = field(default_factory=ExporterSettings)

    @property
    def items_per_worker(self) -> int:
        """Per-worker item cap; 0 when the duration governs (or the stream runs until interrupted)."""
        if self.duration > 0:
            return 0
        return self.count

    def validate(self) -> "StreamConfig":
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1; got {self.workers}")
        if not math.isfinite(self.rate) or self.rate < 0:
            raise ConfigError(f"rate must be a finite, non-negative number; got {self.rate}")
        if not math.isfinite(self.duration):
            raise ConfigError(f"duration must be finite; got {self.duration}")
        if self.duration < 0:
            raise ConfigError(f"duration must not be negative; got {self.duration}")
        if self.count < 0:
            raise ConfigError(f"item count must not be negative; got {self.count}")
        if self.signal is SignalKind.METRICS:
            self.metric.validate()
        elif self.signal is SignalKind.LOGS:
            self.log.validate()
        else:
            self.trace.validate()
        self.exporter.validate()
        return self

    def describe(self) -> str:
        """Short one-line summary for progress output."""
        if self.duration > 0:
            termination = f"duration={self.duration:g}s"
        elif self.count:
            termination = f"{self.signal.value}={self.count}/worker"
        else:
            termination = "until interrupted"
        rate = f"{self.rate:g}/s" if self.rate > 0 else "unlimited"
        detail = ""
        if self.signal is SignalKind.METRICS:
            detail = f" type={self.metric.variant.value}"
            if self.metric.random_values:
                detail += " random"
        return f"{self.signal.value}: workers={self.workers} rate={rate} {termination}{detail}"

    @classmethod
    def from_dict(cls, signal: SignalKind, data: dict[str, Any]) -> "StreamConfig":
        """Create a StreamConfig from one descriptor entry."""
        if not isinstance(data, dict):
            raise ConfigError(f"{signal.value} entries must be mappings; got {data!r}")
        allowed = _COMMON_KEYS | _SIGNAL_KEYS[signal] | {signal.value}
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise ConfigError(f"unknown {signal.value} setting(s): {', '.join(unknown)}")

        try:
            config = cls(
                signal=signal,
                workers=int(data.get("workers", 1)),
                rate=float(data.get("rate", 0)),
                duration=parse_duration(data.get("duration")),
                count=int(data.get(signal.value, data.get("count", 1))),
                resource_attributes=parse_key_values(
                    data.get("resource_attributes"), "resource_attributes"
                ),
                telemetry_attributes=parse_key_values(
                    data.get("telemetry_attributes"), "telemetry_attributes"
                ),
                error_policy=parse_enum(
                    ErrorPolicy, data.get("on_export_error", "isolate"), "on_export_error"
                ),
                seed=int(data["seed"]) if data.get("seed") is not None else None,
                exporter=ExporterSettings(
                    endpoint=data.get("endpoint"),
                    protocol=str(data.get("protocol", "grpc")).lower(),
                    insecure=parse_bool(data.get("insecure", False), "insecure"),
                    headers={
                        k: str(v)
                        for k, v in parse_key_values(data.get("headers"), "headers").items()
                    },
                    output_file=data.get("output_file"),
                    console=parse_bool(data.get("console", False), "console"),
                    http_path=str(data["http_path"]) if data.get("http_path") is not None else None,
                ),
            )
            if data.get("service"):
                config.service_name = str(data["service"])

            if signal is SignalKind.METRICS:
                bounds = data.get("histogram_bucket_bounds")
                if isinstance(bounds, str):
                    bounds = parse_bounds(bounds)
                config.metric = MetricSettings(
                    variant=parse_enum(MetricVariant, data.get("metric_type", "gauge"), "metric_type"),
                    random_values=parse_bool(
                        data.get("random_metric_values", False), "random_metric_values"
                    ),
                    bucket_bounds=(
                        tuple(float(b) for b in bounds)
                        if bounds is not None
                        else get_default_histogram_bounds()
                    ),
                    name=str(data.get("metric_name", DEFAULT_METRIC_NAME)),
                )
            elif signal is SignalKind.LOGS:
                config.log = LogSettings(
                    body=str(data.get("body", "the message")),
                    severity_text=str(data.get("severity_text", "Info")),
                    severity_number=int(data.get("severity_number", 9)),
                    trace_id=data.get("trace_id") or None,
                    span_id=data.get("span_id") or None,
                )
            else:
                config.trace = TraceSettings(
                    child_spans=int(data.get("child_spans", 1)),
                    span_duration=(
                        parse_duration(data["span_duration"], "span_duration")
                        if "span_duration" in data
                        else 123e-6
                    ),
                    status=parse_enum(SpanStatus, data.get("status_code", "unset"), "status_code"),
                )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid {signal.value} entry: {e}") from e
        return config.validate()


_COMMON_KEYS = frozenset(
    {
        "workers",
        "rate",
        "duration",
        "count",
        "service",
        "resource_attributes",
        "telemetry_attributes",
        "on_export_error",
        "seed",
        "endpoint",
        "protocol",
        "insecure",
        "headers",
        "output_file",
        "console",
        "http_path",
    }
)
_SIGNAL_KEYS = {
    SignalKind.METRICS: frozenset(
        {"metric_type", "random_metric_values", "histogram_bucket_bounds", "metric_name"}
    ),
    SignalKind.LOGS: frozenset({"body", "severity_text", "severity_number", "trace_id", "span_id"}),
    SignalKind.TRACES: frozenset({"child_spans", "span_duration", "status_code"}),
}


@dataclass
class Descriptor:
    """Stream configurations grouped by signal kind, as read from a batch descriptor."""

    streams: dict[SignalKind, list[StreamConfig]] = field(default_factory=dict)

    def all_streams(self) -> list[StreamConfig]:
        """Every stream, metrics first, then logs, then traces."""
        return [cfg for kind in SignalKind for cfg in self.streams.get(kind, [])]

    def __len__(self) -> int:
        return sum(len(v) for v in self.streams.values())


def parse_descriptor(data: Any) -> Descriptor:
    """Build a Descriptor from already-loaded YAML data."""
    if data is None:
        return Descriptor()
    if not isinstance(data, dict):
        raise ConfigError("descriptor must be a mapping with metrics, logs and/or traces keys")
    sections = {kind.value: kind for kind in SignalKind}
    unknown = sorted(str(k) for k in data if k not in sections)
    if unknown:
        raise ConfigError(f"unknown descriptor section(s): {', '.join(unknown)}")

    descriptor = Descriptor()
    for key, kind in sections.items():
        entries = data.get(key) or []
        if not isinstance(entries, list):
            raise ConfigError(f"descriptor section {key!r} must be a list")
        descriptor.streams[kind] = [StreamConfig.from_dict(kind, entry) for entry in entries]
    return descriptor


def load_descriptor(path: str | Path) -> Descriptor:
    """Read and parse a YAML batch descriptor; read and parse failures raise ConfigError."""
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read descriptor {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse descriptor {path}: {e}") from e
    return parse_descriptor(data)


def build_resource(config: StreamConfig) -> Resource:
    """Build the OTEL resource shared by every payload of a stream."""
    attrs: dict[str, Any] = dict(config.resource_attributes)
    attrs["service.name"] = config.service_name
    return Resource.create(attrs)
