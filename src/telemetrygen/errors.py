"""Exception types raised by configuration parsing and the generation engine."""


class TelemetryGenError(Exception):
    """Base class for telemetrygen errors."""


class ConfigError(TelemetryGenError):
    """Invalid stream configuration or unreadable descriptor."""


class ExportError(TelemetryGenError):
    """An exporter rejected a batch or raised while exporting it."""

    def __init__(self, message: str, signal: str, worker: int, iteration: int):
        super().__init__(message)
        self.signal = signal
        self.worker = worker
        self.iteration = iteration

    def __str__(self) -> str:
        return (
            f"{super().__str__()} (signal={self.signal} worker={self.worker} "
            f"iteration={self.iteration})"
        )


class RateLimitWaitCancelled(TelemetryGenError):
    """A rate limiter wait was interrupted by process-level cancellation."""
