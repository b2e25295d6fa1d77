"""Base class for per-iteration payload generators."""

import random
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.util.instrumentation import InstrumentationScope

from .. import __version__
from ..config import SignalKind

SCOPE = InstrumentationScope("telemetrygen", __version__)


class SignalGenerator(ABC):
    """
    Build exactly one exporter batch per iteration.

    One generator is created per worker; it owns its random source so that a
    seeded stream reproduces the same values worker by worker.
    """

    signal: SignalKind

    def __init__(
        self,
        resource: Resource,
        attributes: dict[str, Any] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], int] = time.time_ns,
    ):
        self.resource = resource
        self.attributes = dict(attributes or {})
        self.rng = rng or random.Random()
        self.clock = clock

    @abstractmethod
    def build(self, iteration: int) -> Any:
        """Return the batch to hand to the exporter for this iteration."""
        pass
