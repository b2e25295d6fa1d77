"""Payload generators for metrics, logs and traces."""

import random

from opentelemetry.sdk.resources import Resource

from ..config import SignalKind, StreamConfig
from .base import SignalGenerator
from .log_generator import LogGenerator
from .metric_generator import MetricGenerator, bucket_index
from .trace_generator import TraceGenerator

__all__ = [
    "SignalGenerator",
    "MetricGenerator",
    "LogGenerator",
    "TraceGenerator",
    "bucket_index",
    "create_generator",
]


def create_generator(config: StreamConfig, resource: Resource, worker_index: int = 0) -> SignalGenerator:
    """
    Create the payload generator for one worker of a stream.

    With a configured seed, worker n draws from Random(seed + n) so runs are
    reproducible per worker.
    """
    rng = random.Random(config.seed + worker_index) if config.seed is not None else random.Random()
    attrs = config.telemetry_attributes
    if config.signal is SignalKind.METRICS:
        return MetricGenerator(config.metric, resource, attrs, rng)
    if config.signal is SignalKind.LOGS:
        return LogGenerator(config.log, resource, attrs, rng)
    return TraceGenerator(config.trace, resource, attrs, rng)
