#!/usr/bin/env python3
"""Tuya DP - multi-gang fan controllers (e.g. MOES 3-gang fan/dimmer)."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..const import (
    DEBOUNCE_COLD_START,
    DEBOUNCE_STEADY_STATE,
    FAN_SETTLE_DELAY,
    MIN_FAN_SPEED,
    SZ_COLD_START_DELAY,
    SZ_STEADY_STATE_DELAY,
    DevClass,
    DpRole,
)
from ..debounce import DebounceTimer, select_delay
from ..exceptions import SendExhausted, SettingsInvalid
from ..helpers import clamp, class_by_attr
from ..reconciler import CascadeRule, Transition
from .base import Gang, Node

_LOGGER = logging.getLogger(__name__)


def _pct(ratio: float | None) -> float | None:
    return None if ratio is None else round(ratio * 100, 1)


class FanGang(Gang):
    """A fan (motor) of a fan controller: on/off, and a speed (0..1).

    A speed > 0 implies the fan is on, a speed of 0 that it is off.
    """

    _node: FanNode

    def _cascades(self) -> Iterable[CascadeRule]:
        return (
            CascadeRule.level_implies_on_off(
                self.dp(DpRole.LEVEL), self.dp(DpRole.ON_OFF)
            ),
        )

    @property
    def is_on(self) -> bool | None:
        return self.get_value(DpRole.ON_OFF)  # type: ignore[no-any-return]

    @property
    def speed(self) -> float | None:
        return self.get_value(DpRole.LEVEL)  # type: ignore[no-any-return]

    @property
    def speed_limits(self) -> tuple[float | None, float | None]:
        return self.get_value(DpRole.LEVEL_MIN), self.get_value(DpRole.LEVEL_MAX)

    async def set_on_off(self, value: bool) -> list[Transition]:
        """Turn the fan on/off (no write is sent if it is already so).

        Turning off cancels any pending speed change, and sets the speed to 0.
        Turning on from a speed of 0 will also set the minimum speed, shortly after.
        """

        if self.is_on is bool(value):
            _LOGGER.debug("%s: already %s, skipping", self, "on" if value else "off")
            return []

        self._gate.cancel(DpRole.LEVEL)

        if not value:
            return await self._turn_off()

        result = await self._write(DpRole.ON_OFF, True)
        if not self.speed:
            _LOGGER.info("%s: starting from 0, setting the minimum speed", self)

            async def on_fire(target: float) -> None:
                await self._write(DpRole.LEVEL, target)

            self._gate.schedule(DpRole.LEVEL, MIN_FAN_SPEED, FAN_SETTLE_DELAY, on_fire)
        return result

    async def _turn_off(self) -> list[Transition]:
        """Write off, then a speed of 0 (if the latter fails, off is rolled back)."""

        was_on = self.is_on
        result = await self._write(DpRole.ON_OFF, False)

        try:
            return result + await self._write(DpRole.LEVEL, 0.0)
        except SendExhausted:
            if was_on is not None:
                _LOGGER.warning("%s: speed not set to 0, restoring on/off", self)
                self._reconciler.set_local(self.dp(DpRole.ON_OFF), was_on)
            raise

    def set_speed(self, value: float) -> DebounceTimer:
        """Request a speed (0..1), to be written once the requests are quiet.

        Starting a stopped fan waits longer than adjusting a running one.
        """

        value = clamp(value)
        is_cold_start = not self.is_on and value > 0

        delay = select_delay(
            is_cold_start,
            cold_start=self._node.debounce_delays[0],
            steady_state=self._node.debounce_delays[1],
        )

        async def on_fire(target: float) -> None:
            await self._apply_speed(target, is_cold_start=is_cold_start)

        return self._gate.schedule(DpRole.LEVEL, value, delay, on_fire)

    async def _apply_speed(self, value: float, *, is_cold_start: bool) -> None:
        if value > 0:
            if is_cold_start:
                _LOGGER.info("%s: motor startup, speed %s%%", self, round(value * 100))
            await self._write(DpRole.LEVEL, value)  # will imply on
            return

        _LOGGER.info("%s: stopping motor", self)
        await self._turn_off()

    async def set_speed_limits(
        self, min_speed: int | None = None, max_speed: int | None = None
    ) -> list[Transition]:
        """Set the minimum/maximum speeds, as percentages (min must be below max)."""

        for pct in (min_speed, max_speed):
            if pct is not None and not 0 <= pct <= 100:
                raise SettingsInvalid(f"{self}: speed is not a percentage: {pct}")

        cur_min, cur_max = self.speed_limits
        new_min = _pct(cur_min) if min_speed is None else min_speed
        new_max = _pct(cur_max) if max_speed is None else max_speed

        if new_min is not None and new_max is not None and new_min >= new_max:
            raise SettingsInvalid(
                f"{self}: minimum speed ({new_min}%) must be less than "
                f"maximum speed ({new_max}%)"
            )

        result: list[Transition] = []
        if min_speed is not None:
            result += await self._write(DpRole.LEVEL_MIN, min_speed / 100)
        if max_speed is not None:
            result += await self._write(DpRole.LEVEL_MAX, max_speed / 100)
        return result


class FanNode(Node):
    """A fan controller, with one fan per gang."""

    _SLUG: str = DevClass.FAN
    _GANG_CLASS = FanGang

    @property
    def debounce_delays(self) -> tuple[float, float]:
        """Return the quiet periods: (cold start, steady state)."""
        return (
            self._debounce.get(SZ_COLD_START_DELAY, DEBOUNCE_COLD_START),
            self._debounce.get(SZ_STEADY_STATE_DELAY, DEBOUNCE_STEADY_STATE),
        )

    @property
    def gangs(self) -> list[FanGang]:  # type: ignore[override]
        return list(self._gangs)  # type: ignore[arg-type]

    def gang(self, idx: int) -> FanGang:
        return self._gangs[idx]  # type: ignore[return-value]

    async def set_backlight_mode(self, value: str) -> list[Transition]:
        """Set the backlight mode: off, normal or inverted."""
        return await self.main_gang._write(DpRole.BACKLIGHT, value)

    @property
    def backlight_mode(self) -> str | None:
        return self.main_gang.get_value(DpRole.BACKLIGHT)  # type: ignore[no-any-return]


FAN_CLASS_BY_SLUG: dict[str, type[Node]] = class_by_attr(__name__, "_SLUG")
