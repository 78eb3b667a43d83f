"""Cooperative cancellation for turns.

The token is checked between stream events; it also carries an optional
deadline so a stalled stream can be turned into an error.
"""

import time
from collections.abc import Callable


class CancellationToken:
    """Cancellation flag with an optional deadline."""

    def __init__(self, timeout: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._cancelled = False
        self._timeout = timeout
        self._deadline = clock() + timeout if timeout is not None else None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def cancel(self) -> None:
        self._cancelled = True

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())
