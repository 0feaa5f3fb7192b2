"""Synthetic step generator.

Stands in for a hardware step sensor by emitting steps at a randomized,
walk-like cadence. Each step draws an activity band, derives a cadence
from it and sleeps for the matching interval:

=========  ======  =======================
band       share   cadence offset (steps/s)
=========  ======  =======================
normal     61 %    -0.2 .. 0.2
fast       20 %     0.3 .. 0.8
slow       10 %    -0.4 .. -0.1
run         9 %     1.0 .. 2.0
=========  ======  =======================
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable

from pystride.config import SimulationParameters

_logger = logging.getLogger(__name__)

#: ``(exclusive upper roll bound, low offset, high offset)`` per activity band.
ACTIVITY_BANDS: tuple[tuple[int, float, float], ...] = (
    (61, -0.2, 0.2),
    (81, 0.3, 0.8),
    (91, -0.4, -0.1),
    (100, 1.0, 2.0),
)

#: Jitter added to every interval, drawn from ``[-50, 50)`` ms.
INTERVAL_JITTER_MS: int = 50


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class SyntheticStepGenerator:
    """Produce step timestamps at a human-walk-like cadence.

    The random source, clock and sleep are injectable so the cadence
    model can be driven deterministically.
    """

    def __init__(
        self,
        params: SimulationParameters | None = None,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], int] = _monotonic_ms,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._params = params or SimulationParameters()
        self._rng = rng or random.Random()
        self._clock = clock
        self._sleep = sleep

    @property
    def params(self) -> SimulationParameters:
        return self._params

    def activity_offset(self) -> float:
        """Draw an activity band and a cadence offset inside it."""
        roll = self._rng.randrange(100)
        for upper, low, high in ACTIVITY_BANDS:
            if roll < upper:
                break
        return self._rng.uniform(low, high)

    def draw_speed(self) -> float:
        """Cadence for the next step, floored at ``min_speed``."""
        return max(self._params.base_speed + self.activity_offset(), self._params.min_speed)

    def interval_for_speed(self, speed: float) -> int:
        """Milliseconds until the next step at *speed*, jittered and floored."""
        base_interval = round(1000 / speed)
        jitter = self._rng.randrange(-INTERVAL_JITTER_MS, INTERVAL_JITTER_MS)
        return max(base_interval + jitter, self._params.min_interval_ms)

    def next_interval_ms(self) -> int:
        return self.interval_for_speed(self.draw_speed())

    async def run(self, is_active: Callable[[], bool], emit: Callable[[int], None]) -> None:
        """Emit steps until *is_active* turns false or the task is cancelled.

        *is_active* is re-checked after every sleep, so a step is never
        emitted once the caller has stopped tracking mid-sleep.
        """
        _logger.debug("Synthetic step loop started params=%s", self._params)
        try:
            while is_active():
                interval_ms = self.next_interval_ms()
                await self._sleep(interval_ms / 1000)
                if not is_active():
                    break
                emit(self._clock())
        finally:
            _logger.debug("Synthetic step loop finished")
