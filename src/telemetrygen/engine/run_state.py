"""Shared per-stream run state: cancellation token, completion barrier, first error."""

import threading


class CancellationToken:
    """One-way stop signal; cancel() is idempotent and safe from any thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block up to timeout seconds; True if the token was cancelled."""
        return self._event.wait(timeout)


class CompletionBarrier:
    """Countdown latch: wait() returns once done() has been called ``count`` times."""

    def __init__(self, count: int):
        if count < 0:
            raise ValueError("count must not be negative")
        self._remaining = count
        self._cond = threading.Condition()

    @property
    def remaining(self) -> int:
        with self._cond:
            return self._remaining

    def done(self) -> None:
        with self._cond:
            if self._remaining <= 0:
                raise RuntimeError("completion barrier signaled more times than its count")
            self._remaining -= 1
            if self._remaining == 0:
                self._cond.notify_all()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every participant is done; False if timeout elapsed first."""
        with self._cond:
            return self._cond.wait_for(lambda: self._remaining == 0, timeout)


class RunState:
    """
    State shared by every worker of one stream.

    The stop token is cancelled by the duration watchdog, by the orchestrator
    once all workers finished, or under the abort policy by the first failing
    worker. Workers only read it between iterations.
    """

    def __init__(self, workers: int, abort_on_error: bool = False):
        self.stop = CancellationToken()
        self.barrier = CompletionBarrier(workers)
        self.abort_on_error = abort_on_error
        self._lock = threading.Lock()
        self._first_error: Exception | None = None

    @property
    def first_error(self) -> Exception | None:
        with self._lock:
            return self._first_error

    def record_error(self, error: Exception, fatal: bool = False) -> None:
        """Remember the first worker error; a fatal one stops the stream under the abort policy."""
        with self._lock:
            if self._first_error is None:
                self._first_error = error
        if fatal and self.abort_on_error:
            self.stop.cancel()
