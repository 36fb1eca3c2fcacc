"""Per-request prediction context carrying deadline and cancellation state."""

import threading
import time
from dataclasses import dataclass, field

from imagerec.api.core.exceptions.base import DeadlineExceededError


@dataclass
class PredictionContext:
    """Deadline and cancellation flag shared between a request and its worker thread.

    The pipeline calls ``check`` between stages; a request handler that gets
    cancelled calls ``cancel`` so the worker stops at the next stage boundary.
    """

    timeout_seconds: float | None = None
    deadline: float | None = field(default=None, init=False)
    _cancelled: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False
    )

    def __post_init__(self):
        if self.timeout_seconds is not None:
            if self.timeout_seconds <= 0:
                raise ValueError("timeout_seconds must be positive")
            self.deadline = time.monotonic() + self.timeout_seconds

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def cancel(self) -> None:
        self._cancelled.set()

    def check(self, stage: str) -> None:
        """Raise DeadlineExceededError if the work should not continue to ``stage``."""
        if self.cancelled:
            raise DeadlineExceededError(stage, cancelled=True)
        if self.expired:
            raise DeadlineExceededError(stage)
