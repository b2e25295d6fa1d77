"""
Launch every stream of a batch descriptor concurrently.

Each StreamConfig gets its own StreamOrchestrator on its own thread; the
runner waits on a barrier sized to the number of streams. Streams are
isolated: a failing stream is logged and reported, never re-raised, and does
not stop its siblings.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from ..config import Descriptor, StreamConfig, load_descriptor
from ..exporters import create_exporter_factory
from .orchestrator import StreamOrchestrator, StreamResult
from .run_state import CancellationToken, CompletionBarrier
from .worker import ExporterFactory

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Per-stream results of a multi-stream run, in descriptor order."""

    streams: list[StreamResult] = field(default_factory=list)

    @property
    def emitted(self) -> int:
        return sum(s.emitted for s in self.streams)

    @property
    def errors(self) -> list[Exception]:
        return [s.error for s in self.streams if s.error is not None]

    @property
    def ok(self) -> bool:
        return not self.errors


class MultiStreamRunner:
    """Run many independent streams and wait for all of them."""

    def __init__(
        self,
        exporter_factory_builder: Callable[[StreamConfig], ExporterFactory] = create_exporter_factory,
        interrupt: CancellationToken | None = None,
    ):
        self.exporter_factory_builder = exporter_factory_builder
        self.interrupt = interrupt or CancellationToken()

    def run_file(self, path: str | Path) -> RunReport:
        """Load a descriptor and run it; read/parse errors raise ConfigError before anything starts."""
        return self.run(load_descriptor(path))

    def run(self, descriptor: Descriptor) -> RunReport:
        configs = descriptor.all_streams()
        orchestrators = [
            StreamOrchestrator(cfg, self.exporter_factory_builder(cfg), interrupt=self.interrupt)
            for cfg in configs
        ]
        results: list[StreamResult | None] = [None] * len(orchestrators)
        barrier = CompletionBarrier(len(orchestrators))

        threads = [
            threading.Thread(
                target=self._run_stream,
                args=(i, orchestrator, results, barrier),
                name=f"telemetrygen-stream-{i}",
                daemon=True,
            )
            for i, orchestrator in enumerate(orchestrators)
        ]
        for thread in threads:
            thread.start()

        try:
            barrier.wait()
        except KeyboardInterrupt:
            logger.warning("interrupted; stopping %d streams", len(orchestrators))
            self.interrupt.cancel()
            barrier.wait()
            raise
        for thread in threads:
            thread.join()

        report = RunReport(streams=[r for r in results if r is not None])
        for stream in report.streams:
            if stream.error is not None:
                logger.error("%s stream failed: %s", stream.config.signal.value, stream.error)
        return report

    @staticmethod
    def _run_stream(
        index: int,
        orchestrator: StreamOrchestrator,
        results: list[StreamResult | None],
        barrier: CompletionBarrier,
    ) -> None:
        try:
            results[index] = orchestrator.run()
        except Exception as e:
            logger.exception("%s stream crashed", orchestrator.config.signal.value)
            results[index] = StreamResult(config=orchestrator.config, error=e)
        finally:
            barrier.done()
