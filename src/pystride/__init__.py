"""pystride - Step-rate estimation and fallback simulation engine."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pystride")
except PackageNotFoundError:
    __version__ = "0+local"
from pystride.config import SimulationParameters, StrideConfig
from pystride.exceptions import StrideConfigError, StrideError, StrideLoopError
from pystride.milestones import MilestoneWatcher
from pystride.models import SessionState, SessionStats, StepEvent, StepSource
from pystride.publisher import StatePublisher
from pystride.sensors import ManualStepSensor, NullStepSensor, PermissionCheck, StepSensorSource
from pystride.session import TrackingSession
from pystride.simulation import SyntheticStepGenerator
from pystride.window import WindowTracker

__all__ = [
    "__version__",
    "ManualStepSensor",
    "MilestoneWatcher",
    "NullStepSensor",
    "PermissionCheck",
    "SessionState",
    "SessionStats",
    "SimulationParameters",
    "StatePublisher",
    "StepEvent",
    "StepSensorSource",
    "StepSource",
    "StrideConfig",
    "StrideConfigError",
    "StrideError",
    "StrideLoopError",
    "SyntheticStepGenerator",
    "TrackingSession",
    "WindowTracker",
]
