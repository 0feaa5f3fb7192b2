"""Hardware step source boundary.

The engine never talks to a platform sensor API directly. It sees a
:class:`StepSensorSource` that advertises which capabilities exist and
pushes readings through two callbacks:

* ``on_step(timestamp_ms)`` for a discrete per-step detection.
* ``on_total(total, timestamp_ms)`` for a cumulative lifetime total.

Callbacks may be invoked from any thread.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

_logger = logging.getLogger(__name__)

StepCallback = Callable[[int], None]
TotalCallback = Callable[[int | float, int], None]
PermissionCheck = Callable[[], bool]
"""Zero-argument callable answering "may motion sensing be used?"."""


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def always_granted() -> bool:
    return True


@runtime_checkable
class StepSensorSource(Protocol):
    """A platform step sensor as seen by the tracking session."""

    @property
    def has_step_detector(self) -> bool: ...

    @property
    def has_step_counter(self) -> bool: ...

    def register(self, on_step: StepCallback, on_total: TotalCallback) -> None: ...

    def unregister(self) -> None: ...


class NullStepSensor:
    """A device without any step hardware."""

    has_step_detector = False
    has_step_counter = False

    def register(self, on_step: StepCallback, on_total: TotalCallback) -> None:
        return None

    def unregister(self) -> None:
        return None


class ManualStepSensor:
    """In-process step source fed by explicit calls.

    Useful to replay recorded readings or to bridge a sensor library
    that delivers readings on its own thread. Readings pushed while no
    listener is registered are dropped, mirroring a platform sensor
    whose listener has been removed.
    """

    def __init__(
        self,
        *,
        step_detector: bool = True,
        step_counter: bool = False,
        clock: Callable[[], int] = _monotonic_ms,
    ) -> None:
        self._step_detector = step_detector
        self._step_counter = step_counter
        self._clock = clock
        self._lock = threading.Lock()
        self._on_step: StepCallback | None = None
        self._on_total: TotalCallback | None = None
        self._registered = False

    @property
    def has_step_detector(self) -> bool:
        return self._step_detector

    @property
    def has_step_counter(self) -> bool:
        return self._step_counter

    @property
    def is_registered(self) -> bool:
        with self._lock:
            return self._registered

    def register(self, on_step: StepCallback, on_total: TotalCallback) -> None:
        with self._lock:
            self._on_step = on_step if self._step_detector else None
            self._on_total = on_total if self._step_counter else None
            self._registered = True
        _logger.debug(
            "Manual sensor registered detector=%s counter=%s",
            self._step_detector,
            self._step_counter,
        )

    def unregister(self) -> None:
        with self._lock:
            self._on_step = None
            self._on_total = None
            self._registered = False

    def step(self, timestamp_ms: int | None = None) -> bool:
        """Deliver one detection. Returns ``False`` when nothing was listening."""
        with self._lock:
            callback = self._on_step
        if callback is None:
            return False
        callback(self._clock() if timestamp_ms is None else timestamp_ms)
        return True

    def report_total(self, total: int | float, timestamp_ms: int | None = None) -> bool:
        """Deliver a lifetime step total. Returns ``False`` when nothing was listening."""
        with self._lock:
            callback = self._on_total
        if callback is None:
            return False
        callback(total, self._clock() if timestamp_ms is None else timestamp_ms)
        return True
