"""Step event model."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from pystride.models._base import StrideBaseModel


class StepSource(StrEnum):
    """Where a step event came from."""

    DETECTOR = "detector"
    COUNTER = "counter"
    SIMULATED = "simulated"


class StepEvent(StrideBaseModel):
    """A single detected or synthesized step.

    Parameters
    ----------
    timestamp_ms : int
        Monotonic clock reading, in milliseconds, when the step occurred.
    source : StepSource
        Ingestion path that produced the step.
    """

    timestamp_ms: int = Field(..., ge=0)
    source: StepSource
