"""Snapshot fan-out and control surface for external consumers.

Presentation, keep-alive and notification layers only ever talk to a
:class:`StatePublisher`: they read the latest :class:`SessionState`,
subscribe to updates, and forward start/stop/reset gestures.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from collections.abc import Callable

from pystride.models.session import SessionState
from pystride.session import TrackingSession

_logger = logging.getLogger(__name__)

Subscriber = Callable[[SessionState], None]


class StatePublisher:
    """Expose a :class:`TrackingSession` to any number of subscribers."""

    def __init__(self, session: TrackingSession) -> None:
        self._session = session
        self._subscribers: dict[int, Subscriber] = {}
        self._ids = itertools.count()
        self._step_waiters: list[tuple[int, asyncio.Future[SessionState]]] = []
        self._detach = session.add_listener(self._deliver)

    @property
    def session(self) -> TrackingSession:
        return self._session

    def get_snapshot(self) -> SessionState:
        """Return the latest snapshot without blocking."""
        return self._session.state

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def on_start(self) -> None:
        self._session.start()

    def on_stop(self) -> None:
        self._session.stop()

    def on_reset(self) -> None:
        self._session.reset()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber, *, replay: bool = False) -> Callable[[], None]:
        """Deliver every published snapshot to *callback*.

        With ``replay=True`` the current snapshot is delivered
        immediately. Returns a callable that cancels the subscription;
        calling it more than once is harmless.
        """
        token = next(self._ids)
        self._subscribers[token] = callback
        if replay:
            self._call(callback, self._session.state)

        def _unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return _unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def wait_for_steps(self, target: int, timeout: float) -> bool:
        """Wait until a snapshot with at least *target* cumulative steps is published.

        Returns ``False`` if *timeout* seconds pass first.
        """
        if self._session.state.cumulative_steps >= target:
            return True
        if timeout <= 0:
            return False

        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[SessionState] = loop.create_future()
        entry = (target, waiter)
        self._step_waiters.append(entry)
        try:
            await asyncio.wait_for(waiter, timeout)
            return True
        except TimeoutError:
            return False
        finally:
            with contextlib.suppress(ValueError):
                self._step_waiters.remove(entry)

    def close(self) -> None:
        """Detach from the session and drop every subscriber."""
        self._detach()
        self._subscribers.clear()
        for _, waiter in self._step_waiters:
            waiter.cancel()
        self._step_waiters.clear()

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    def _deliver(self, state: SessionState) -> None:
        # Snapshot the subscriber set so callbacks may (un)subscribe freely.
        for callback in tuple(self._subscribers.values()):
            self._call(callback, state)
        self._resolve_waiters(state)

    def _call(self, callback: Subscriber, state: SessionState) -> None:
        try:
            callback(state)
        except Exception:
            _logger.debug("Subscriber callback failed", exc_info=True)

    def _resolve_waiters(self, state: SessionState) -> None:
        for target, waiter in tuple(self._step_waiters):
            if state.cumulative_steps < target or waiter.done():
                continue
            loop = waiter.get_loop()
            if _running_loop() is loop:
                waiter.set_result(state)
            else:
                loop.call_soon_threadsafe(_set_if_pending, waiter, state)


def _set_if_pending(waiter: asyncio.Future[SessionState], state: SessionState) -> None:
    if not waiter.done():
        waiter.set_result(state)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
