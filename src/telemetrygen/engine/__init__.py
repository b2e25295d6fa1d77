"""Generation engine: rate limiting, workers, per-stream and multi-stream orchestration."""

from .orchestrator import StreamOrchestrator, StreamResult
from .rate_limiter import RateLimiter
from .run_state import CancellationToken, CompletionBarrier, RunState
from .runner import MultiStreamRunner, RunReport
from .worker import Worker, WorkerContext, WorkerResult, WorkerState, WorkerStatus

__all__ = [
    "RateLimiter",
    "CancellationToken",
    "CompletionBarrier",
    "RunState",
    "Worker",
    "WorkerContext",
    "WorkerResult",
    "WorkerState",
    "WorkerStatus",
    "StreamOrchestrator",
    "StreamResult",
    "MultiStreamRunner",
    "RunReport",
]
