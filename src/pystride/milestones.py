"""Milestone alerts.

A read-side consumer of published snapshots that reports when the
cumulative step count crosses one of the configured thresholds, for a
notification layer to turn into a user-visible alert.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from pystride.models.session import SessionState
from pystride.publisher import StatePublisher

_logger = logging.getLogger(__name__)

MilestoneCallback = Callable[[int, SessionState], None]


class MilestoneWatcher:
    """Fire *on_milestone* once for every threshold the step count reaches.

    Several thresholds crossed by a single update fire in ascending
    order. When the count drops (after a reset) every threshold above
    the new count is armed again.
    """

    def __init__(
        self,
        publisher: StatePublisher,
        thresholds: Iterable[int],
        on_milestone: MilestoneCallback,
    ) -> None:
        self._thresholds = tuple(sorted(set(thresholds)))
        self._on_milestone = on_milestone
        self._last_steps = publisher.get_snapshot().cumulative_steps
        self._reached: set[int] = {value for value in self._thresholds if value <= self._last_steps}
        self._unsubscribe = publisher.subscribe(self._observe)

    @property
    def reached(self) -> tuple[int, ...]:
        return tuple(sorted(self._reached))

    def close(self) -> None:
        self._unsubscribe()

    def _observe(self, state: SessionState) -> None:
        steps = state.cumulative_steps
        if steps < self._last_steps:
            self._reached = {value for value in self._reached if value <= steps}
        self._last_steps = steps

        for threshold in self._thresholds:
            if threshold > steps:
                break
            if threshold in self._reached:
                continue
            self._reached.add(threshold)
            _logger.debug("Milestone reached threshold=%d steps=%d", threshold, steps)
            self._on_milestone(threshold, state)
