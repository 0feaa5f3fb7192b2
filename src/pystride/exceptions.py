"""Custom exception hierarchy for pystride.

Runtime conditions such as a missing step sensor, a denied motion
permission or a redundant start/stop are not errors; they resolve to
simulation mode or a no-op. Only misuse at construction time raises.
"""

from __future__ import annotations


class StrideError(Exception):
    """Base exception for all pystride errors."""


class StrideConfigError(StrideError):
    """Invalid or missing configuration."""

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class StrideLoopError(StrideError):
    """Simulation was requested but no asyncio event loop can host it.

    Raised by :meth:`pystride.session.TrackingSession.start` when the
    session was neither bound to a loop nor started from inside one.
    """
