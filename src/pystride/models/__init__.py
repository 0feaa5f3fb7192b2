"""Data models for pystride snapshots and events."""

from pystride.models._base import StrideBaseModel
from pystride.models.session import SessionState, SessionStats
from pystride.models.step import StepEvent, StepSource

__all__ = [
    "SessionState",
    "SessionStats",
    "StepEvent",
    "StepSource",
    "StrideBaseModel",
]
