"""Cooperative one-tick-per-second countdown for timed sessions.

Architecture note:
    The clock runs as a single ``asyncio`` task on the same loop as user
    actions, so a tick and a click never interleave mid-operation. The clock
    itself only counts: persistence, the low-time warning and finalize are
    callbacks owned by the session controller. Expiry fires ``on_expire``
    exactly once and cancellation is idempotent, which is what the
    submission path relies on when a manual submit races the last tick.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging

from assessment_app.constants.session_constants import (
    LOW_TIME_WARNING_DISMISS_SECONDS,
    LOW_TIME_WARNING_THRESHOLD_SECONDS,
    TICK_INTERVAL_SECONDS,
)
from assessment_app.core.models import ClockState

logger = logging.getLogger(__name__)


class LowTimeWarning:
    """One-shot warning that dismisses itself after a fixed delay."""

    def __init__(
        self,
        on_show: Callable[[], None],
        on_hide: Callable[[], None],
        dismiss_after_seconds: float = LOW_TIME_WARNING_DISMISS_SECONDS,
    ) -> None:
        self._on_show = on_show
        self._on_hide = on_hide
        self._dismiss_after_seconds = dismiss_after_seconds
        self._fired = False
        self._visible = False
        self._dismiss_handle: asyncio.TimerHandle | None = None

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def visible(self) -> bool:
        return self._visible

    def raise_once(self) -> bool:
        """Show the warning unless it already fired; returns True when shown now."""
        if self._fired:
            return False
        self._fired = True
        self._visible = True
        self._on_show()
        loop = asyncio.get_running_loop()
        self._dismiss_handle = loop.call_later(self._dismiss_after_seconds, self.dismiss)
        return True

    def dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None
        if self._visible:
            self._visible = False
            self._on_hide()


class CountdownClock:
    """State machine ``IDLE -> RUNNING -> {EXPIRED, CANCELLED}``."""

    def __init__(
        self,
        total_seconds: int,
        *,
        on_expire: Callable[[], None],
        on_tick: Callable[[int], None] | None = None,
        on_low_time: Callable[[], None] | None = None,
        remaining_seconds: int | None = None,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        warning_threshold: int = LOW_TIME_WARNING_THRESHOLD_SECONDS,
    ) -> None:
        if total_seconds <= 0:
            raise ValueError("Countdown length must be a positive number of seconds.")
        if tick_interval <= 0:
            raise ValueError("Tick interval must be positive.")
        self._total_seconds = int(total_seconds)
        if remaining_seconds is None:
            remaining_seconds = self._total_seconds
        # A restored value may only shrink the countdown.
        self._remaining = max(0, min(int(remaining_seconds), self._total_seconds))
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._on_low_time = on_low_time
        self._tick_interval = tick_interval
        self._warning_threshold = warning_threshold
        self._warned = False
        self._state = ClockState.IDLE
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def total_seconds(self) -> int:
        return self._total_seconds

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    def is_running(self) -> bool:
        return self._state is ClockState.RUNNING

    def start(self) -> None:
        """Begin ticking on the running loop."""
        if self._state is not ClockState.IDLE:
            raise RuntimeError(f"Countdown cannot start from state {self._state.value}.")
        self._state = ClockState.RUNNING
        if self._remaining <= 0:
            self._expire()
            return
        self._maybe_warn()
        self._task = asyncio.get_running_loop().create_task(self._run(), name="countdown-clock")

    def cancel(self) -> bool:
        """Stop ticking without expiring. Returns False if there was nothing to cancel."""
        if self._state in (ClockState.EXPIRED, ClockState.CANCELLED):
            return False
        self._state = ClockState.CANCELLED
        task = self._task
        self._task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        logger.debug("Countdown cancelled with %s seconds left", self._remaining)
        return True

    def tick(self) -> None:
        """Advance one second. Ticks after expiry or cancellation are ignored."""
        if self._state is not ClockState.RUNNING:
            return
        self._remaining = max(0, self._remaining - 1)
        if self._on_tick is not None:
            self._on_tick(self._remaining)
        if self._remaining <= 0:
            self._expire()
            return
        self._maybe_warn()

    async def _run(self) -> None:
        while self._state is ClockState.RUNNING:
            await asyncio.sleep(self._tick_interval)
            self.tick()

    def _maybe_warn(self) -> None:
        if self._warned or self._remaining >= self._warning_threshold:
            return
        self._warned = True
        if self._on_low_time is not None:
            self._on_low_time()

    def _expire(self) -> None:
        self._state = ClockState.EXPIRED
        self._task = None
        logger.info("Countdown expired")
        self._on_expire()
