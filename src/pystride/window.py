"""Sliding-window step rate.

The rate reported here is the number of steps recorded inside the
trailing window, so with the default 1000 ms window it reads as
"steps in the last second". It is a trailing count, not a derivative.
"""

from __future__ import annotations

from collections import deque

DEFAULT_WINDOW_SIZE_MS: int = 1000


class WindowTracker:
    """Trailing history of step timestamps.

    Timestamps are monotonic milliseconds and are expected to arrive in
    non-decreasing order. An entry ``t`` is kept only while
    ``now - t < window_size_ms``; an entry exactly ``window_size_ms``
    old is dropped.
    """

    def __init__(self, window_size_ms: int = DEFAULT_WINDOW_SIZE_MS) -> None:
        self._window_size_ms = window_size_ms
        self._timestamps: deque[int] = deque()

    @property
    def window_size_ms(self) -> int:
        return self._window_size_ms

    def __len__(self) -> int:
        return len(self._timestamps)

    def _prune(self, now_ms: int) -> None:
        cutoff = now_ms - self._window_size_ms
        timestamps = self._timestamps
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    def record_step(self, timestamp_ms: int) -> None:
        """Append a step and drop everything that fell out of the window."""
        self._timestamps.append(timestamp_ms)
        self._prune(timestamp_ms)

    def current_rate(self, now_ms: int | None = None) -> float:
        """Return the number of steps in the window.

        When *now_ms* is given the window is pruned against it first,
        which lets the rate decay once steps stop arriving.
        """
        if now_ms is not None:
            self._prune(now_ms)
        return float(len(self._timestamps))

    def timestamps(self) -> list[int]:
        """Copy of the retained timestamps, oldest first."""
        return list(self._timestamps)

    def clear(self) -> None:
        self._timestamps.clear()
