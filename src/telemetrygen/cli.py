"""
Command-line interface for telemetrygen.

Provides commands for:
- Generating a single metrics, logs or traces stream
- Running many streams at once from a YAML descriptor
"""

import argparse
import logging
import sys

from .config import (
    ErrorPolicy,
    ExporterSettings,
    LogSettings,
    MetricSettings,
    MetricVariant,
    SignalKind,
    SpanStatus,
    StreamConfig,
    TraceSettings,
    parse_duration,
    parse_enum,
    parse_key_values,
)
from .defaults import (
    DEFAULT_METRIC_NAME,
    get_default_histogram_bounds,
    get_default_service_name,
    parse_bounds,
)
from .engine import MultiStreamRunner, RunReport, StreamOrchestrator, StreamResult
from .errors import ConfigError
from .exporters import create_exporter_factory


def _add_common_arguments(parser: argparse.ArgumentParser, signal: SignalKind) -> None:
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of concurrent workers to run (default: 1)",
    )
    parser.add_argument(
        "--rate",
        type=float,
        default=0,
        help=f"Approximate number of {signal.value} per second per worker; 0 means no throttling",
    )
    parser.add_argument(
        "--duration",
        type=str,
        default=None,
        help=f"How long to run (e.g. 10s, 500ms, 2m); overrides --{signal.value}",
    )
    parser.add_argument(
        f"--{signal.value}",
        dest="count",
        type=int,
        default=1,
        help=(
            f"Number of {signal.value} to generate in each worker "
            "(ignored if --duration is set; 0 runs until interrupted)"
        ),
    )
    parser.add_argument(
        "--service",
        type=str,
        default=None,
        help="Service name for telemetry (default: OTEL_SERVICE_NAME or telemetrygen)",
    )
    parser.add_argument(
        "--otlp-attributes",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Resource attribute added to every payload (repeatable)",
    )
    parser.add_argument(
        "--telemetry-attributes",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Attribute added to every data point, record or span (repeatable)",
    )
    parser.add_argument(
        "--otlp-endpoint",
        dest="endpoint",
        type=str,
        default=None,
        help="OTLP endpoint (default: OTEL_EXPORTER_OTLP_ENDPOINT, else localhost:4317/4318)",
    )
    parser.add_argument(
        "--otlp-http",
        action="store_true",
        help="Use OTLP/HTTP instead of gRPC",
    )
    parser.add_argument(
        "--otlp-http-url-path",
        dest="http_path",
        type=str,
        default=None,
        help=f"URL path for OTLP/HTTP requests (default: /v1/{signal.value})",
    )
    parser.add_argument(
        "--otlp-insecure",
        action="store_true",
        help="Use plaintext instead of TLS",
    )
    parser.add_argument(
        "--otlp-header",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Header sent with every export request (repeatable)",
    )
    parser.add_argument(
        "--output-file",
        type=str,
        default=None,
        help="Output file path (if set, exports JSONL to file instead of OTLP)",
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Print payloads to stdout instead of exporting via OTLP",
    )
    parser.add_argument(
        "--on-export-error",
        choices=[p.value for p in ErrorPolicy],
        default=ErrorPolicy.ISOLATE.value,
        help="isolate: only the failing worker stops; abort: the whole stream stops (default: isolate)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for randomized payloads (worker n uses seed + n)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="telemetrygen",
        description="Simulates a client generating traces, metrics, and logs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 2 workers sending 10 histogram points/s each for 30 seconds
  telemetrygen metrics --workers 2 --rate 10 --duration 30s --metric-type histogram

  # 100 log records to a local collector over plaintext gRPC
  telemetrygen logs --logs 100 --otlp-insecure

  # Traces to a JSONL file instead of OTLP
  telemetrygen traces --traces 10 --output-file traces.jsonl

  # Many streams at once
  telemetrygen file --config-file streams.yaml
        """,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    metrics_parser = subparsers.add_parser("metrics", help="Simulates a client generating metrics")
    _add_common_arguments(metrics_parser, SignalKind.METRICS)
    metrics_parser.add_argument(
        "--metric-type",
        choices=[v.value for v in MetricVariant],
        type=str.lower,
        default=MetricVariant.GAUGE.value,
        help="Metric type (default: gauge)",
    )
    metrics_parser.add_argument(
        "--metric-name",
        type=str,
        default=DEFAULT_METRIC_NAME,
        help=f"Metric name (default: {DEFAULT_METRIC_NAME})",
    )
    metrics_parser.add_argument(
        "--random-metric-values",
        action="store_true",
        help="Use random values for metrics",
    )
    metrics_parser.add_argument(
        "--histogram-bucket-bounds",
        type=str,
        default=None,
        metavar="B1,B2,...",
        help="For histogram metrics, ascending bucket bounds (default: 2,4,8,16,32,64,128)",
    )

    logs_parser = subparsers.add_parser("logs", help="Simulates a client generating logs")
    _add_common_arguments(logs_parser, SignalKind.LOGS)
    logs_parser.add_argument("--body", type=str, default="the message", help="Body of the log")
    logs_parser.add_argument(
        "--severity-text", type=str, default="Info", help="Severity text of the log"
    )
    logs_parser.add_argument(
        "--severity-number", type=int, default=9, help="Severity number of the log, range 1 to 24"
    )
    logs_parser.add_argument(
        "--trace-id", type=str, default=None, help="TraceID of the log (32 hex characters)"
    )
    logs_parser.add_argument(
        "--span-id", type=str, default=None, help="SpanID of the log (16 hex characters)"
    )

    traces_parser = subparsers.add_parser("traces", help="Simulates a client generating traces")
    _add_common_arguments(traces_parser, SignalKind.TRACES)
    traces_parser.add_argument(
        "--child-spans", type=int, default=1, help="Number of child spans per trace (default: 1)"
    )
    traces_parser.add_argument(
        "--span-duration",
        type=str,
        default="123us",
        help="Duration of each generated span (default: 123us)",
    )
    traces_parser.add_argument(
        "--status-code",
        choices=[s.value for s in SpanStatus],
        type=str.lower,
        default=SpanStatus.UNSET.value,
        help="Status code of the generated spans (default: unset)",
    )

    file_parser = subparsers.add_parser(
        "file", help="Provide a YAML config file to generate multiple telemetry streams"
    )
    file_parser.add_argument(
        "--config-file",
        type=str,
        default=None,
        help="The path to a YAML stream descriptor",
    )

    return parser


def stream_config_from_args(signal: SignalKind, args: argparse.Namespace) -> StreamConfig:
    """Build and validate a StreamConfig from parsed single-stream arguments."""
    config = StreamConfig(
        signal=signal,
        workers=args.workers,
        rate=args.rate,
        duration=parse_duration(args.duration),
        count=args.count,
        service_name=args.service or get_default_service_name(),
        resource_attributes=parse_key_values(args.otlp_attributes, "--otlp-attributes"),
        telemetry_attributes=parse_key_values(args.telemetry_attributes, "--telemetry-attributes"),
        error_policy=parse_enum(ErrorPolicy, args.on_export_error, "--on-export-error"),
        seed=args.seed,
        exporter=ExporterSettings(
            endpoint=args.endpoint,
            protocol="http" if args.otlp_http else "grpc",
            insecure=args.otlp_insecure,
            headers={k: str(v) for k, v in parse_key_values(args.otlp_header, "--otlp-header").items()},
            output_file=args.output_file,
            console=args.console,
            http_path=args.http_path,
        ),
    )
    if signal is SignalKind.METRICS:
        config.metric = MetricSettings(
            variant=parse_enum(MetricVariant, args.metric_type, "--metric-type"),
            random_values=args.random_metric_values,
            bucket_bounds=(
                parse_bounds(args.histogram_bucket_bounds)
                if args.histogram_bucket_bounds
                else get_default_histogram_bounds()
            ),
            name=args.metric_name,
        )
    elif signal is SignalKind.LOGS:
        config.log = LogSettings(
            body=args.body,
            severity_text=args.severity_text,
            severity_number=args.severity_number,
            trace_id=args.trace_id,
            span_id=args.span_id,
        )
    else:
        config.trace = TraceSettings(
            child_spans=args.child_spans,
            span_duration=parse_duration(args.span_duration, "--span-duration"),
            status=parse_enum(SpanStatus, args.status_code, "--status-code"),
        )
    return config.validate()


def _print_stream_summary(result: StreamResult) -> None:
    config = result.config
    status = "ok" if result.ok else f"error: {result.error}"
    print(f"   {config.signal.value}: {result.emitted} emitted by {config.workers} workers ({status})")
    if result.exporter_failures:
        print(f"      {result.exporter_failures} workers could not create an exporter")


def cmd_signal(signal: SignalKind, args: argparse.Namespace) -> None:
    """Run a single stream built from command-line flags."""
    try:
        config = stream_config_from_args(signal, args)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Starting {signal.value} generation...")
    print(f"   {config.describe()}")
    if config.exporter.console:
        print("   Output: console")
    elif config.exporter.output_file:
        print(f"   Output: {config.exporter.output_file}")
    else:
        print(f"   Endpoint: {config.exporter.resolved_endpoint()} ({config.exporter.protocol})")
    print()

    try:
        orchestrator = StreamOrchestrator(config, create_exporter_factory(config))
        result = orchestrator.run()
    except KeyboardInterrupt:
        print("\nGeneration interrupted")
        sys.exit(0)

    print()
    print("Generation finished")
    _print_stream_summary(result)


def cmd_file(args: argparse.Namespace) -> None:
    """Run every stream of a YAML descriptor concurrently."""
    if not args.config_file:
        print("No config file path provided, exiting...")
        return

    runner = MultiStreamRunner()
    try:
        report: RunReport = runner.run_file(args.config_file)
    except ConfigError as e:
        print(f"Error loading file {args.config_file!r}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nGeneration interrupted")
        sys.exit(0)

    print()
    print(f"Generation finished: {len(report.streams)} streams, {report.emitted} emitted")
    for stream in report.streams:
        _print_stream_summary(stream)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "metrics":
        cmd_signal(SignalKind.METRICS, args)
    elif args.command == "logs":
        cmd_signal(SignalKind.LOGS, args)
    elif args.command == "traces":
        cmd_signal(SignalKind.TRACES, args)
    elif args.command == "file":
        cmd_file(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
