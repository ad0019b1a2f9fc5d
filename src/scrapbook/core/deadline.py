"""Request deadlines threaded through extraction and retrieval calls."""

import time
from typing import Optional

import aiohttp

from scrapbook.core.errors import DeadlineExceeded


class Deadline:
    """Absolute point in time after which a request's work should stop.

    Each network step asks the deadline for its timeout, which is the step's
    own cap clipped to whatever time the originating request has left.
    """

    def __init__(self, seconds: Optional[float] = None):
        self._expires_at = (
            time.monotonic() + seconds if seconds is not None else None
        )

    @classmethod
    def none(cls) -> "Deadline":
        """A deadline that never expires."""
        return cls(None)

    def remaining(self) -> Optional[float]:
        """Seconds left, or None for an unbounded deadline."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, step: str = "request") -> None:
        """Raise DeadlineExceeded if no time is left for ``step``."""
        if self.expired:
            raise DeadlineExceeded(f"Deadline exceeded before {step}")

    def timeout(self, step_timeout: float) -> float:
        """Return the timeout to use for a step capped at ``step_timeout``."""
        remaining = self.remaining()
        if remaining is None:
            return step_timeout
        return min(step_timeout, remaining)

    def client_timeout(self, step_timeout: float) -> aiohttp.ClientTimeout:
        """aiohttp timeout object for a step capped at ``step_timeout``."""
        return aiohttp.ClientTimeout(total=self.timeout(step_timeout))


def ensure_deadline(deadline: Optional[Deadline]) -> Deadline:
    """Return ``deadline`` or an unbounded one."""
    return deadline if deadline is not None else Deadline.none()
