"""Deadlines propagated to transport calls.

A Deadline is created once per phase and its remaining budget is handed to
each HTTP call as a timeout, so the dial deadline and the deployment
deadline bound everything done under them.
"""

from __future__ import annotations

import time

import httpx


class Deadline:
    """A fixed point in time, measured with ``time.monotonic``.

    Example:
        >>> deadline = Deadline(300)
        >>> client.stream("POST", url, timeout=deadline.timeout())
    """

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def timeout(self, connect: float | None = None) -> httpx.Timeout:
        """Build an httpx timeout bounded by the remaining budget.

        Args:
            connect: Optional tighter bound on establishing the connection.
        """
        remaining = self.remaining()
        connect_timeout = remaining if connect is None else min(connect, remaining)
        return httpx.Timeout(remaining, connect=connect_timeout)

    def __repr__(self) -> str:
        return f"Deadline(seconds={self.seconds}, remaining={self.remaining():.3f})"
