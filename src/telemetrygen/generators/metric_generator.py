"""
Generate one metric data point per iteration.

Three variants are supported, each wrapped in a single-metric MetricsData batch:
- Gauge: the iteration counter, or a random value in [0, 10000)
- Sum: cumulative; monotonic with the iteration counter, non-monotonic when random
- Histogram: cumulative; one sample at the iteration counter, or a random number
  of random samples below the largest bucket bound
"""

import bisect
from typing import Any

from opentelemetry.sdk.metrics.export import (
    AggregationTemporality,
    Gauge,
    Histogram,
    HistogramDataPoint,
    Metric,
    MetricsData,
    NumberDataPoint,
    ResourceMetrics,
    ScopeMetrics,
    Sum,
)

from ..config import MetricSettings, MetricVariant, SignalKind
from ..defaults import MAX_RANDOM_HISTOGRAM_SAMPLES, RANDOM_VALUE_CEILING
from ..errors import ConfigError
from .base import SCOPE, SignalGenerator

_NANOS_PER_SECOND = 1_000_000_000


def bucket_index(bounds: tuple[float, ...], value: float) -> int:
    """Index of the first bucket whose bound is strictly greater than value; len(bounds) is overflow."""
    return bisect.bisect_right(bounds, value)


class MetricGenerator(SignalGenerator):
    """Synthesize gauge, sum or histogram data points."""

    signal = SignalKind.METRICS

    def __init__(self, settings: MetricSettings, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.settings = settings
        self._builders = {
            MetricVariant.GAUGE: self._gauge,
            MetricVariant.SUM: self._sum,
            MetricVariant.HISTOGRAM: self._histogram,
        }
        if settings.variant not in self._builders:
            raise ConfigError(f"unknown metric type: {settings.variant!r}")

    def build(self, iteration: int) -> MetricsData:
        now = self.clock()
        data = self._builders[self.settings.variant](iteration, now)
        metric = Metric(
            name=self.settings.name,
            description="",
            unit="",
            data=data,
        )
        return MetricsData(
            resource_metrics=[
                ResourceMetrics(
                    resource=self.resource,
                    scope_metrics=[ScopeMetrics(scope=SCOPE, metrics=[metric], schema_url="")],
                    schema_url="",
                )
            ]
        )

    def _random_value(self) -> int:
        return self.rng.randrange(RANDOM_VALUE_CEILING)

    def _gauge(self, iteration: int, now: int) -> Gauge:
        value = self._random_value() if self.settings.random_values else iteration
        return Gauge(
            data_points=[
                NumberDataPoint(
                    attributes=self.attributes,
                    start_time_unix_nano=0,
                    time_unix_nano=now,
                    value=value,
                )
            ]
        )

    def _sum(self, iteration: int, now: int) -> Sum:
        if self.settings.random_values:
            value, monotonic = self._random_value(), False
        else:
            value, monotonic = iteration, True
        return Sum(
            data_points=[
                NumberDataPoint(
                    attributes=self.attributes,
                    start_time_unix_nano=now - _NANOS_PER_SECOND,
                    time_unix_nano=now,
                    value=value,
                )
            ],
            aggregation_temporality=AggregationTemporality.CUMULATIVE,
            is_monotonic=monotonic,
        )

    def _histogram(self, iteration: int, now: int) -> Histogram:
        bounds = tuple(self.settings.bucket_bounds)
        counts = [0] * (len(bounds) + 1)

        if self.settings.random_values:
            upper = int(bounds[-1])
            samples = [
                self.rng.randrange(upper)
                for _ in range(self.rng.randint(1, MAX_RANDOM_HISTOGRAM_SAMPLES))
            ]
        else:
            samples = [iteration]
        for sample in samples:
            counts[bucket_index(bounds, sample)] += 1

        return Histogram(
            data_points=[
                HistogramDataPoint(
                    attributes=self.attributes,
                    start_time_unix_nano=now - _NANOS_PER_SECOND,
                    time_unix_nano=now,
                    count=len(samples),
                    sum=sum(samples),
                    bucket_counts=counts,
                    explicit_bounds=list(bounds),
                    min=min(samples),
                    max=max(samples),
                )
            ],
            aggregation_temporality=AggregationTemporality.CUMULATIVE,
        )
