#!/usr/bin/env python3
"""Tuya DP - Helper functions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from inspect import getmembers, isclass, iscoroutinefunction
from sys import modules
from types import ModuleType
from typing import Any

from .const import DUPLICATE_EPSILON

_LOGGER = logging.getLogger(__name__)


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Return the value, limited to lower..upper."""
    return max(lower, min(upper, value))


def values_equal(a: Any, b: Any, epsilon: float = DUPLICATE_EPSILON) -> bool:
    """Return True if two datapoint values are the same (floats within epsilon)."""

    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    if isinstance(a, float) or isinstance(b, float):
        if not isinstance(a, int | float) or not isinstance(b, int | float):
            return False
        return abs(a - b) <= epsilon
    return bool(a == b)


def schedule_task(
    fnc: Awaitable[Any] | Callable[..., Any],
    *args: Any,
    delay: float | None = None,
    **kwargs: Any,
) -> asyncio.Task[Any]:
    """Start a coro (or call a function) after delay seconds."""

    async def execute_fnc(
        fnc: Awaitable[Any] | Callable[..., Any], *args: Any, **kwargs: Any
    ) -> Any:
        if iscoroutinefunction(fnc):  # Awaitable, else Callable
            return await fnc(*args, **kwargs)
        return fnc(*args, **kwargs)  # type: ignore[operator]

    async def schedule_fnc(
        fnc: Awaitable[Any] | Callable[..., Any],
        delay: float | None,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        if delay:
            await asyncio.sleep(delay)
        return await execute_fnc(fnc, *args, **kwargs)

    return asyncio.create_task(schedule_fnc(fnc, delay, *args, **kwargs), name=str(fnc))


def log_task_exception(task: asyncio.Task[Any]) -> None:
    """A done callback: log the exception of a (scheduled) task, if any."""

    if task.cancelled():
        return
    if (err := task.exception()) is not None:
        _LOGGER.error("Task %s failed: %r", task.get_name(), err, exc_info=err)


def class_by_attr(name: str, attr: str) -> dict[str, Any]:
    """Return a mapping of a (unique) attr of classes in a module to that class."""

    def predicate(m: ModuleType) -> bool:
        return isclass(m) and m.__module__ == name and bool(getattr(m, attr, None))

    return {getattr(c[1], attr): c[1] for c in getmembers(modules[name], predicate)}
