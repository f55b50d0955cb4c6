#!/usr/bin/env python3
"""Tuya DP - the debounce (coalescing) gate.

Collapse rapid, repeated requests for a control (e.g. a slider being dragged) into a
single action, taken once the requests have been quiet for a while.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable, Hashable
from datetime import datetime as dt
from inspect import iscoroutinefunction
from typing import Any

from .const import DEBOUNCE_COLD_START, DEBOUNCE_STEADY_STATE
from .helpers import log_task_exception

_LOGGER = logging.getLogger(__name__)


def select_delay(
    is_cold_start: bool,
    *,
    cold_start: float = DEBOUNCE_COLD_START,
    steady_state: float = DEBOUNCE_STEADY_STATE,
) -> float:
    """Return the quiet period for a transition.

    Resuming from a stopped state needs longer (mechanical settle time) than adjusting
    a control that is already running.
    """
    return cold_start if is_cold_start else steady_state


@dataclasses.dataclass(kw_only=True)
class DebounceTimer:
    """A deferred action, pending until it fires (or is cancelled)."""

    key: Hashable
    target_value: Any
    scheduled_at: dt
    delay: float
    on_fire: Callable[[Any], Any]
    handle: asyncio.TimerHandle | None = None


class DebounceGate:
    """Keep at most one pending action per control key."""

    def __init__(self, name: str | None = None) -> None:
        self._name = name or hex(id(self))
        self._timers: dict[Hashable, DebounceTimer] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._name})"

    def is_pending(self, key: Hashable) -> bool:
        return key in self._timers

    def pending_value(self, key: Hashable, default: Any = None) -> Any:
        """Return the target value of a pending action."""
        if timer := self._timers.get(key):
            return timer.target_value
        return default

    def schedule(
        self,
        key: Hashable,
        target_value: Any,
        delay: float,
        on_fire: Callable[[Any], Any],
    ) -> DebounceTimer:
        """Schedule on_fire(target_value) after delay seconds.

        Any action already pending for the key is cancelled (it will never fire).
        """

        loop = asyncio.get_running_loop()

        self.cancel(key)

        self._timers[key] = timer = DebounceTimer(
            key=key,
            target_value=target_value,
            scheduled_at=dt.now(),
            delay=delay,
            on_fire=on_fire,
        )
        timer.handle = loop.call_later(delay, self._fire, timer)

        _LOGGER.debug("%s: %s -> %r in %ss", self, key, target_value, delay)
        return timer

    def cancel(self, key: Hashable) -> bool:
        """Cancel the action pending for a key, return True if there was one."""

        if (timer := self._timers.pop(key, None)) is None:
            return False
        if timer.handle:
            timer.handle.cancel()
        _LOGGER.debug("%s: %s -> %r cancelled", self, key, timer.target_value)
        return True

    def cancel_all(self) -> None:
        for key in list(self._timers):
            self.cancel(key)

    def _fire(self, timer: DebounceTimer) -> None:
        if self._timers.get(timer.key) is not timer:
            return  # superseded/cancelled (shouldn't happen, as handles are cancelled)
        del self._timers[timer.key]

        _LOGGER.debug("%s: %s -> %r firing", self, timer.key, timer.target_value)

        if iscoroutinefunction(timer.on_fire):
            task = asyncio.get_running_loop().create_task(
                timer.on_fire(timer.target_value), name=f"{self}: {timer.key}"
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            task.add_done_callback(log_task_exception)
            return

        try:
            timer.on_fire(timer.target_value)
        except Exception as err:
            _LOGGER.error(
                "%s: %s -> %r failed: %r", self, timer.key, timer.target_value, err
            )
