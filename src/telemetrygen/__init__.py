"""
telemetrygen - synthetic OTEL telemetry load generator.

This package emits configurable streams of metrics, logs and traces at a
controlled rate and volume to validate and benchmark telemetry pipelines.
"""

__version__ = "1.0.0"
