"""Tests for gauge, sum and histogram payload generation."""

import random

import pytest
from opentelemetry.sdk.metrics.export import AggregationTemporality, Gauge, Histogram, Sum

from telemetrygen.config import MetricSettings, MetricVariant
from telemetrygen.generators import MetricGenerator, bucket_index

NOW = 1_700_000_000_000_000_000
BOUNDS = (2.0, 4.0, 8.0)


def _generator(resource, variant: MetricVariant, random_values: bool = False, **kwargs):
    settings = MetricSettings(variant=variant, random_values=random_values, bucket_bounds=BOUNDS)
    return MetricGenerator(settings, resource, {"k": "v"}, clock=lambda: NOW, **kwargs)


def _metric(batch):
    resource_metrics = batch.resource_metrics
    assert len(resource_metrics) == 1
    metrics = resource_metrics[0].scope_metrics[0].metrics
    assert len(metrics) == 1
    return metrics[0]


def _point(batch):
    points = _metric(batch).data.data_points
    assert len(points) == 1
    return points[0]


def test_gauge_uses_iteration_counter(resource) -> None:
    """Deterministic gauge value equals the iteration."""
    gen = _generator(resource, MetricVariant.GAUGE)
    for i in (0, 1, 42):
        batch = gen.build(i)
        assert isinstance(_metric(batch).data, Gauge)
        point = _point(batch)
        assert point.value == i
        assert point.time_unix_nano == NOW
        assert dict(point.attributes) == {"k": "v"}


def test_gauge_random_values_in_range(resource) -> None:
    gen = _generator(resource, MetricVariant.GAUGE, random_values=True)
    values = [_point(gen.build(i)).value for i in range(500)]
    assert all(0 <= v < 10000 for v in values)
    assert len(set(values)) > 1


def test_sum_deterministic_is_monotonic(resource) -> None:
    gen = _generator(resource, MetricVariant.SUM)
    data = _metric(gen.build(7)).data
    assert isinstance(data, Sum)
    assert data.is_monotonic is True
    assert data.aggregation_temporality == AggregationTemporality.CUMULATIVE
    point = data.data_points[0]
    assert point.value == 7
    assert point.start_time_unix_nano == NOW - 1_000_000_000


def test_sum_random_is_not_monotonic(resource) -> None:
    gen = _generator(resource, MetricVariant.SUM, random_values=True)
    data = _metric(gen.build(7)).data
    assert data.is_monotonic is False
    assert data.aggregation_temporality == AggregationTemporality.CUMULATIVE
    assert 0 <= data.data_points[0].value < 10000


@pytest.mark.parametrize(
    ("iteration", "bucket"),
    [(0, 0), (1, 0), (2, 1), (3, 1), (4, 2), (7, 2), (8, 3), (100, 3)],
)
def test_histogram_deterministic_bucket(resource, iteration: int, bucket: int) -> None:
    """One sample lands in the first bucket whose bound exceeds it, else overflow."""
    gen = _generator(resource, MetricVariant.HISTOGRAM)
    data = _metric(gen.build(iteration)).data
    assert isinstance(data, Histogram)
    point = data.data_points[0]
    expected = [0] * (len(BOUNDS) + 1)
    expected[bucket] = 1
    assert list(point.bucket_counts) == expected
    assert point.count == 1
    assert point.sum == iteration
    assert point.min == point.max == iteration
    assert list(point.explicit_bounds) == list(BOUNDS)
    assert data.aggregation_temporality == AggregationTemporality.CUMULATIVE


def test_histogram_random_samples(resource) -> None:
    """Random samples stay below the largest bound and the counts add up."""
    gen = _generator(resource, MetricVariant.HISTOGRAM, random_values=True)
    for i in range(200):
        point = _point(gen.build(i))
        assert 1 <= point.count <= 100
        assert sum(point.bucket_counts) == point.count
        assert point.bucket_counts[-1] == 0
        assert 0 <= point.sum <= point.count * (int(BOUNDS[-1]) - 1)
        assert 0 <= point.min <= point.max < BOUNDS[-1]


def test_seeded_generators_repeat_values(resource) -> None:
    a = _generator(resource, MetricVariant.HISTOGRAM, random_values=True, rng=random.Random(3))
    b = _generator(resource, MetricVariant.HISTOGRAM, random_values=True, rng=random.Random(3))
    for i in range(20):
        pa, pb = _point(a.build(i)), _point(b.build(i))
        assert list(pa.bucket_counts) == list(pb.bucket_counts)
        assert pa.sum == pb.sum


def test_metric_carries_name_and_resource(resource) -> None:
    settings = MetricSettings(name="requests")
    gen = MetricGenerator(settings, resource)
    batch = gen.build(0)
    assert _metric(batch).name == "requests"
    assert batch.resource_metrics[0].resource is resource


def test_bucket_index_boundaries() -> None:
    assert bucket_index(BOUNDS, -1) == 0
    assert bucket_index(BOUNDS, 2) == 1
    assert bucket_index(BOUNDS, 8) == 3
