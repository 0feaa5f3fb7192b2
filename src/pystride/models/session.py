"""Session snapshot and statistics models."""

from __future__ import annotations

from pydantic import Field

from pystride.models._base import StrideBaseModel


class SessionState(StrideBaseModel):
    """Authoritative tracking snapshot.

    Parameters
    ----------
    cumulative_steps : int
        Steps accrued since the last reset. Never decreases while
        tracking.
    steps_per_second : float
        Number of steps inside the trailing window (a trailing count,
        not an instantaneous derivative).
    is_tracking : bool
        Whether a session is currently ingesting steps.
    is_simulating : bool
        Whether the current (or last) session used the synthetic
        generator instead of a hardware source.
    """

    cumulative_steps: int = Field(default=0, ge=0)
    steps_per_second: float = Field(default=0.0, ge=0)
    is_tracking: bool = False
    is_simulating: bool = False


class SessionStats(StrideBaseModel):
    """Derived totals for a details view."""

    cumulative_steps: int = Field(default=0, ge=0)
    elapsed_seconds: float = Field(default=0.0, ge=0)

    @property
    def average_steps_per_second(self) -> float:
        """Mean cadence over the tracked time; ``0.0`` before any time has elapsed."""
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.cumulative_steps / self.elapsed_seconds

    def format_elapsed(self) -> str:
        """Render the tracked time as ``HH:MM:SS``."""
        total = int(self.elapsed_seconds)
        hours, remainder = divmod(total, 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
