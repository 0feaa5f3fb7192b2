"""Tracking session state machine.

A :class:`TrackingSession` owns the authoritative :class:`SessionState`,
the sliding :class:`WindowTracker` and the choice between hardware and
simulated ingestion. It moves between two states only::

    Idle --start()--> Tracking --stop()/reset()--> Idle

Every mutation happens under one re-entrant lock, so hardware callbacks
arriving on a sensor thread and generator ticks arriving on the event
loop never interleave. Listeners are notified under the same lock, in
the context that produced the change.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import contextlib
import dataclasses
import logging
import random
import threading
import time
from collections.abc import Awaitable, Callable
from typing import Any

from pystride.config import SimulationParameters, StrideConfig
from pystride.exceptions import StrideLoopError
from pystride.models.session import SessionState, SessionStats
from pystride.models.step import StepEvent, StepSource
from pystride.sensors import NullStepSensor, PermissionCheck, StepSensorSource, always_granted
from pystride.simulation import SyntheticStepGenerator
from pystride.window import WindowTracker

_logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]
StepListener = Callable[[StepEvent], None]


def _monotonic_ms() -> int:
    """Current monotonic clock reading in milliseconds."""
    return int(time.monotonic() * 1000)


class TrackingSession:
    """Step tracking state machine.

    Usage::

        async with TrackingSession(StrideConfig(), sensors=sensor) as session:
            ...

    or call :meth:`start` / :meth:`stop` from the hosting lifecycle.
    Simulation mode needs an asyncio loop to run the generator on; it
    is taken from the ``loop`` argument, the context manager, or the
    loop running when :meth:`start` is called.
    """

    def __init__(
        self,
        config: StrideConfig | None = None,
        *,
        sensors: StepSensorSource | None = None,
        permission: PermissionCheck = always_granted,
        rng: random.Random | None = None,
        clock: Callable[[], int] = _monotonic_ms,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        loop: asyncio.AbstractEventLoop | None = None,
        on_state: StateListener | None = None,
        on_step: StepListener | None = None,
    ) -> None:
        self._config = config or StrideConfig()
        self._sensors: StepSensorSource = sensors if sensors is not None else NullStepSensor()
        self._permission = permission
        self._rng = rng or random.Random()
        self._clock = clock
        self._sleep = sleep
        self._loop = loop
        self._on_step = on_step

        self._lock = threading.RLock()
        self._window = WindowTracker(self._config.window_size_ms)
        self._generator = self._build_generator(self._config.simulation)
        self._state = SessionState()
        self._listeners: list[StateListener] = [on_state] if on_state is not None else []

        # Bumped on every start/stop so stale generator ticks are discarded.
        self._generation = 0
        self._simulation: asyncio.Task[None] | concurrent.futures.Future[None] | None = None
        self._uses_counter = False
        self._counter_baseline: int | None = None
        self._carried_steps = 0
        self._tracking_since_ms: int | None = None
        self._tracked_ms = 0

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TrackingSession:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop tracking and wait for the generator task to wind down."""
        pending = self._simulation
        self.stop()
        if isinstance(pending, asyncio.Task):
            with contextlib.suppress(asyncio.CancelledError):
                await pending

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def config(self) -> StrideConfig:
        return self._config

    @property
    def state(self) -> SessionState:
        """Latest published snapshot. Never blocks."""
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state.is_tracking

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener* for every published snapshot.

        Returns a callable that removes the listener again.
        """
        with self._lock:
            self._listeners.append(listener)

        def _remove() -> None:
            with self._lock:
                with contextlib.suppress(ValueError):
                    self._listeners.remove(listener)

        return _remove

    def stats(self) -> SessionStats:
        """Totals for the tracked time since the last reset."""
        with self._lock:
            elapsed_ms = self._tracked_ms
            if self._tracking_since_ms is not None:
                elapsed_ms += max(self._clock() - self._tracking_since_ms, 0)
            return SessionStats(
                cumulative_steps=self._state.cumulative_steps,
                elapsed_seconds=elapsed_ms / 1000,
            )

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin tracking. A no-op while already tracking."""
        with self._lock:
            if self._state.is_tracking:
                return

            simulate = self._select_simulation()
            loop = self._resolve_loop() if simulate else None

            self._generation += 1
            self._window.clear()
            self._counter_baseline = None
            self._carried_steps = self._state.cumulative_steps
            self._uses_counter = not simulate and self._sensors.has_step_counter
            self._tracking_since_ms = self._clock()
            self._state = SessionState(
                cumulative_steps=self._carried_steps,
                steps_per_second=0.0,
                is_tracking=True,
                is_simulating=simulate,
            )

            if loop is not None:
                self._launch_simulation(loop, self._generation)
            else:
                self._sensors.register(self._on_hardware_step, self._on_hardware_total)

            _logger.debug(
                "Tracking started simulating=%s carried_steps=%d",
                simulate,
                self._carried_steps,
            )
            self._publish()

    def stop(self) -> None:
        """Stop tracking. A no-op while idle. Cumulative steps are kept."""
        with self._lock:
            if not self._state.is_tracking:
                return

            self._generation += 1
            if self._state.is_simulating:
                self._cancel_simulation()
            else:
                self._sensors.unregister()

            if self._tracking_since_ms is not None:
                self._tracked_ms += max(self._clock() - self._tracking_since_ms, 0)
                self._tracking_since_ms = None
            self._window.clear()
            self._counter_baseline = None
            self._state = SessionState(
                cumulative_steps=self._state.cumulative_steps,
                steps_per_second=0.0,
                is_tracking=False,
                is_simulating=self._state.is_simulating,
            )

            _logger.debug("Tracking stopped cumulative_steps=%d", self._state.cumulative_steps)
            self._publish()

    def reset(self) -> None:
        """Stop, zero every counter and start a fresh session."""
        with self._lock:
            self.stop()
            self._window.clear()
            self._tracked_ms = 0
            self._carried_steps = 0
            self._state = SessionState(is_simulating=self._state.is_simulating)
            _logger.debug("Tracking reset")
            self.start()

    def reconfigure(self, params: SimulationParameters) -> None:
        """Replace the simulation parameters, restarting a running session."""
        with self._lock:
            if params == self._generator.params:
                return
            was_tracking = self._state.is_tracking
            self.stop()
            self._config = dataclasses.replace(self._config, simulation=params)
            self._generator = self._build_generator(params)
            if was_tracking:
                self.start()

    def refresh_rate(self) -> SessionState:
        """Re-prune the window against the clock so the rate decays when steps stop.

        Publishes only when the rate actually changed.
        """
        with self._lock:
            if not self._state.is_tracking:
                return self._state
            rate = self._window.current_rate(self._clock())
            if rate != self._state.steps_per_second:
                self._set_counts(self._state.cumulative_steps, rate)
                self._publish()
            return self._state

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def _on_hardware_step(self, timestamp_ms: int) -> None:
        with self._lock:
            if not self._state.is_tracking or self._state.is_simulating:
                return
            self._window.record_step(timestamp_ms)
            steps = self._state.cumulative_steps
            # A step counter, when present, is authoritative for the total.
            if not self._uses_counter:
                steps += 1
            self._set_counts(steps, self._window.current_rate())
            self._notify_step(timestamp_ms, StepSource.DETECTOR)
            self._publish()

    def _on_hardware_total(self, total: int | float, timestamp_ms: int) -> None:
        # Platform counters report the lifetime total as a float.
        total = int(total)
        with self._lock:
            if not self._state.is_tracking or self._state.is_simulating:
                return
            if self._counter_baseline is None:
                self._counter_baseline = total
                _logger.debug("Step counter baseline captured total=%d", total)

            session_steps = self._state.cumulative_steps - self._carried_steps
            delta = total - self._counter_baseline - session_steps
            if delta < 0:
                # Lifetime counter went backwards (device reboot): rebase, keep the total.
                _logger.debug("Step counter went backwards by %d; rebasing", -delta)
                self._counter_baseline += delta
                delta = 0

            self._set_counts(
                self._state.cumulative_steps + delta,
                self._window.current_rate(timestamp_ms),
            )
            if delta:
                self._notify_step(timestamp_ms, StepSource.COUNTER)
            self._publish()

    def _on_simulated_step(self, generation: int, timestamp_ms: int) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            self._window.record_step(timestamp_ms)
            self._set_counts(self._state.cumulative_steps + 1, self._window.current_rate())
            self._notify_step(timestamp_ms, StepSource.SIMULATED)
            self._publish()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_generator(self, params: SimulationParameters) -> SyntheticStepGenerator:
        return SyntheticStepGenerator(params, rng=self._rng, clock=self._clock, sleep=self._sleep)

    def _is_current(self, generation: int) -> bool:
        return self._state.is_tracking and self._generation == generation

    def _select_simulation(self) -> bool:
        if self._config.force_simulation:
            _logger.debug("Simulation forced by configuration")
            return True
        sensors = self._sensors
        if not (sensors.has_step_detector or sensors.has_step_counter):
            _logger.debug("No hardware step source; using simulation")
            return True
        try:
            granted = bool(self._permission())
        except Exception:
            _logger.debug("Motion permission check failed; treating as denied", exc_info=True)
            granted = False
        if not granted:
            _logger.debug("Motion permission denied; using simulation")
        return not granted

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None and not self._loop.is_closed():
            return self._loop
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise StrideLoopError(
                "Simulation needs an event loop. Use 'async with TrackingSession(...)', "
                "pass loop=..., or call start() from a running loop."
            ) from exc
        return self._loop

    def _launch_simulation(self, loop: asyncio.AbstractEventLoop, generation: int) -> None:
        coro = self._generator.run(
            lambda: self._is_current(generation),
            lambda timestamp_ms: self._on_simulated_step(generation, timestamp_ms),
        )
        if _running_loop() is loop:
            self._simulation = loop.create_task(coro)
        else:
            self._simulation = asyncio.run_coroutine_threadsafe(coro, loop)

    def _cancel_simulation(self) -> None:
        pending = self._simulation
        self._simulation = None
        if pending is None:
            return
        if isinstance(pending, asyncio.Task) and _running_loop() is not pending.get_loop():
            pending.get_loop().call_soon_threadsafe(pending.cancel)
        else:
            pending.cancel()

    def _set_counts(self, cumulative_steps: int, steps_per_second: float) -> None:
        self._state = SessionState(
            cumulative_steps=cumulative_steps,
            steps_per_second=steps_per_second,
            is_tracking=self._state.is_tracking,
            is_simulating=self._state.is_simulating,
        )

    def _notify_step(self, timestamp_ms: int, source: StepSource) -> None:
        if self._on_step is None:
            return
        try:
            self._on_step(StepEvent(timestamp_ms=timestamp_ms, source=source))
        except Exception:
            _logger.debug("on_step callback failed", exc_info=True)

    def _publish(self) -> None:
        state = self._state
        for listener in tuple(self._listeners):
            try:
                listener(state)
            except Exception:
                _logger.debug("State listener failed", exc_info=True)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
