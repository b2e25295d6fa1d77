"""
Run one stream: N workers sharing a stop token and a completion barrier.

When the stream has a duration, a watchdog timer cancels the stop token once
it elapses; otherwise each worker stops after its item count. Worker failures
come back as WorkerResult values; under the abort policy the first mid-run
failure also cancels the stop token so every sibling winds down.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from opentelemetry.sdk.resources import Resource

from ..config import ErrorPolicy, StreamConfig, build_resource
from ..generators import create_generator
from ..generators.base import SignalGenerator
from .rate_limiter import RateLimiter
from .run_state import CancellationToken, RunState
from .worker import ExporterFactory, Worker, WorkerContext, WorkerResult, WorkerStatus

logger = logging.getLogger(__name__)

GeneratorFactory = Callable[[StreamConfig, Resource, int], SignalGenerator]


@dataclass
class StreamResult:
    """Outcome of one stream."""

    config: StreamConfig
    workers: list[WorkerResult] = field(default_factory=list)
    error: Exception | None = None

    @property
    def emitted(self) -> int:
        return sum(w.emitted for w in self.workers)

    @property
    def exporter_failures(self) -> int:
        """Workers that never ran because their exporter could not be created."""
        return sum(1 for w in self.workers if w.status is WorkerStatus.EXPORTER_UNAVAILABLE)

    @property
    def ok(self) -> bool:
        return self.error is None


class StreamOrchestrator:
    """Start a stream's workers, bound the run by duration or count, and collect results."""

    def __init__(
        self,
        config: StreamConfig,
        exporter_factory: ExporterFactory,
        resource: Resource | None = None,
        interrupt: CancellationToken | None = None,
        generator_factory: GeneratorFactory = create_generator,
    ):
        self.config = config
        self.exporter_factory = exporter_factory
        self.resource = resource or build_resource(config)
        self.interrupt = interrupt or CancellationToken()
        self.generator_factory = generator_factory
        self.run_state: RunState | None = None

    def _contexts(self, state: RunState) -> list[WorkerContext]:
        config = self.config
        return [
            WorkerContext(
                index=i,
                signal=config.signal,
                run_state=state,
                limiter=RateLimiter(config.rate),
                generator=self.generator_factory(config, self.resource, i),
                max_items=config.items_per_worker,
                interrupt=self.interrupt,
            )
            for i in range(config.workers)
        ]

    def run(self) -> StreamResult:
        """Block until every worker has terminated and return the stream's result."""
        config = self.config
        state = RunState(config.workers, abort_on_error=config.error_policy is ErrorPolicy.ABORT)
        self.run_state = state
        workers = [Worker(ctx, self.exporter_factory) for ctx in self._contexts(state)]

        logger.info("starting stream %s", config.describe())
        threads = [
            threading.Thread(
                target=worker.run,
                name=f"telemetrygen-{config.signal.value}-{worker.context.index}",
                daemon=True,
            )
            for worker in workers
        ]
        for thread in threads:
            thread.start()

        watchdog = None
        if config.duration > 0:
            watchdog = threading.Timer(config.duration, state.stop.cancel)
            watchdog.daemon = True
            watchdog.start()

        try:
            self._await(state)
        finally:
            if watchdog is not None:
                watchdog.cancel()
        # Count-bounded streams: everyone is done, the run is over.
        state.stop.cancel()
        for thread in threads:
            thread.join()

        results = [w.result for w in workers if w.result is not None]
        result = StreamResult(config=config, workers=results, error=state.first_error)
        if result.exporter_failures:
            logger.warning(
                "%s stream: %d of %d workers could not create an exporter",
                config.signal.value,
                result.exporter_failures,
                config.workers,
            )
        failed = [w for w in results if w.error is not None]
        if len(failed) > 1:
            logger.warning(
                "%s stream: %d workers failed; reporting the first: %s",
                config.signal.value,
                len(failed),
                result.error,
            )
        logger.info("stream %s finished: %d emitted", config.signal.value, result.emitted)
        return result

    def _await(self, state: RunState) -> None:
        try:
            state.barrier.wait()
        except KeyboardInterrupt:
            logger.warning("interrupted; stopping %s workers", self.config.signal.value)
            self.interrupt.cancel()
            state.barrier.wait()
            raise
