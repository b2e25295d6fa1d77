"""
The per-worker generate → export → throttle loop.

Lifecycle: INITIALIZING (create exporter) → RUNNING → STOPPING (shutdown
exporter, signal completion) → TERMINATED. The stop condition is checked only
between iterations, so a stop request never interrupts an in-flight export.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from opentelemetry.sdk._logs.export import LogRecordExportResult
from opentelemetry.sdk.metrics.export import MetricExportResult
from opentelemetry.sdk.trace.export import SpanExportResult

from ..config import SignalKind
from ..errors import ExportError, RateLimitWaitCancelled
from ..generators.base import SignalGenerator
from .rate_limiter import RateLimiter
from .run_state import CancellationToken, RunState

logger = logging.getLogger(__name__)

ExporterFactory = Callable[[], Any]

_SUCCESS_RESULTS = (
    MetricExportResult.SUCCESS,
    SpanExportResult.SUCCESS,
    LogRecordExportResult.SUCCESS,
)


class WorkerState(Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    STOPPING = "stopping"
    TERMINATED = "terminated"


class WorkerStatus(Enum):
    """How a worker ended."""

    COMPLETED = "completed"
    EXPORTER_UNAVAILABLE = "exporter_unavailable"
    EXPORT_FAILED = "export_failed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class WorkerResult:
    index: int
    status: WorkerStatus
    emitted: int = 0
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status is WorkerStatus.COMPLETED


@dataclass(frozen=True)
class WorkerContext:
    """Everything one worker reads; shared pieces are the run state and interrupt token."""

    index: int
    signal: SignalKind
    run_state: RunState
    limiter: RateLimiter
    generator: SignalGenerator
    max_items: int = 0
    interrupt: CancellationToken | None = None


class Worker:
    """Run the generation loop for one concurrent task of a stream."""

    def __init__(self, context: WorkerContext, exporter_factory: ExporterFactory):
        self.context = context
        self.exporter_factory = exporter_factory
        self.state = WorkerState.INITIALIZING
        self.result: WorkerResult | None = None

    def _should_stop(self, emitted: int) -> bool:
        ctx = self.context
        if ctx.run_state.stop.cancelled:
            return True
        if ctx.interrupt is not None and ctx.interrupt.cancelled:
            return True
        return bool(ctx.max_items) and emitted >= ctx.max_items

    def run(self) -> WorkerResult:
        """Run to completion; always signals the stream's completion barrier."""
        ctx = self.context
        try:
            try:
                result = self._run()
            except Exception as e:
                logger.exception("worker crashed (signal=%s worker=%d)", ctx.signal.value, ctx.index)
                result = WorkerResult(ctx.index, WorkerStatus.FAILED, error=e)
            if result.error is not None:
                ctx.run_state.record_error(
                    result.error,
                    fatal=result.status in (WorkerStatus.EXPORT_FAILED, WorkerStatus.FAILED),
                )
            self.result = result
        finally:
            self.state = WorkerState.TERMINATED
            ctx.run_state.barrier.done()
        return result

    def _run(self) -> WorkerResult:
        ctx = self.context
        try:
            exporter = self.exporter_factory()
        except Exception as e:
            logger.error(
                "failed to create the exporter (signal=%s worker=%d): %s",
                ctx.signal.value,
                ctx.index,
                e,
            )
            return WorkerResult(ctx.index, WorkerStatus.EXPORTER_UNAVAILABLE, error=e)

        self.state = WorkerState.RUNNING
        emitted = 0
        status = WorkerStatus.COMPLETED
        error: Exception | None = None
        try:
            while True:
                batch = ctx.generator.build(emitted)
                self._export(exporter, batch, emitted)
                emitted += 1
                ctx.limiter.acquire(ctx.interrupt)
                if self._should_stop(emitted):
                    break
        except ExportError as e:
            logger.error("%s", e)
            status, error = WorkerStatus.EXPORT_FAILED, e
        except RateLimitWaitCancelled as e:
            logger.warning(
                "rate limiter wait cancelled (signal=%s worker=%d iteration=%d)",
                ctx.signal.value,
                ctx.index,
                emitted,
            )
            status, error = WorkerStatus.CANCELLED, e
        finally:
            self.state = WorkerState.STOPPING
            logger.debug("stopping the exporter (signal=%s worker=%d)", ctx.signal.value, ctx.index)
            try:
                exporter.shutdown()
            except Exception as e:
                logger.error(
                    "failed to stop the exporter (signal=%s worker=%d): %s",
                    ctx.signal.value,
                    ctx.index,
                    e,
                )

        logger.info("%s generated: %d (worker=%d)", ctx.signal.value, emitted, ctx.index)
        return WorkerResult(ctx.index, status, emitted, error)

    def _export(self, exporter: Any, batch: Any, iteration: int) -> None:
        ctx = self.context
        try:
            result = exporter.export(batch)
        except Exception as e:
            raise ExportError(f"exporter failed: {e}", ctx.signal.value, ctx.index, iteration) from e
        if result not in _SUCCESS_RESULTS:
            raise ExportError(
                f"exporter returned {result}", ctx.signal.value, ctx.index, iteration
            )
