#!/usr/bin/env python3
"""Tuya DP - sirens (e.g. NEO siren, with a battery)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime as dt
from typing import Any

from ..const import (
    SIREN_ARM_DELAY,
    SIREN_BEEP_DURATION,
    SIREN_BEEP_MELODY,
    SIREN_BEEP_RESTORE_DELAY,
    SIREN_BEEP_VOLUME,
    SIREN_DEFAULT_DURATION,
    SIREN_DEFAULT_MELODY,
    SIREN_DEFAULT_VOLUME,
    SZ_BATTERY,
    SZ_BATTERY_LOW,
    SZ_DURATION,
    SZ_IS_PLAYING,
    SZ_MELODY,
    SZ_REASON,
    SZ_VOLUME,
    DevClass,
    DpRole,
    SirenEvent,
    SirenStopReason,
)
from ..helpers import class_by_attr
from ..reconciler import Transition
from .base import Node

_LOGGER = logging.getLogger(__name__)

SirenEventHandlerT = Callable[[SirenEvent, dict[str, Any]], None]


def _first(*values: Any) -> Any:
    """Return the first value that is not None."""
    return next((v for v in values if v is not None), None)


class SirenNode(Node):
    """A siren: an alarm (on/off) with a melody, volume & duration, and a battery.

    The device stops the alarm by itself, once its duration has elapsed.
    """

    _SLUG: str = DevClass.SIREN

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)

        self.is_playing = False
        self.last_activation: dt | None = None

        self._event_handlers: list[SirenEventHandlerT] = []
        self.main_gang.add_handler(self._handle_transition)

    def add_event_handler(self, handler: SirenEventHandlerT) -> Callable[[], None]:
        """Add a handler of activated/deactivated events, return a remover."""

        def del_handler() -> None:
            if handler in self._event_handlers:
                self._event_handlers.remove(handler)

        if handler not in self._event_handlers:
            self._event_handlers.append(handler)

        return del_handler

    def _emit(self, event: SirenEvent, **tokens: Any) -> None:
        _LOGGER.info("%s: siren %s: %s", self, event, tokens)
        for handler in self._event_handlers:
            try:
                handler(event, tokens)
            except Exception as err:
                _LOGGER.error("%s: event handler %s failed: %r", self, handler, err)

    def _handle_transition(self, transition: Transition) -> None:
        if transition.dp != self.main_gang.dp(DpRole.ALARM):
            return

        if transition.new_value:
            self.is_playing = True
            self.last_activation = dt.now()
            self._emit(SirenEvent.ACTIVATED, duration=self.duration)
            return

        was_playing, self.is_playing = self.is_playing, False
        if was_playing:  # stopped by the device, not by stop_siren()
            self._emit(SirenEvent.DEACTIVATED, reason=SirenStopReason.AUTO)

    @property
    def alarm(self) -> bool | None:
        return self.main_gang.get_value(DpRole.ALARM)  # type: ignore[no-any-return]

    @property
    def volume(self) -> str | None:
        return self.main_gang.get_value(DpRole.VOLUME)  # type: ignore[no-any-return]

    @property
    def melody(self) -> str | None:
        return self.main_gang.get_value(DpRole.MELODY)  # type: ignore[no-any-return]

    @property
    def duration(self) -> int:
        return _first(self.main_gang.get_value(DpRole.DURATION), SIREN_DEFAULT_DURATION)

    @property
    def battery(self) -> int | None:
        return self.main_gang.get_value(DpRole.BATTERY)  # type: ignore[no-any-return]

    @property
    def battery_low(self) -> bool | None:
        if (battery := self.battery) is None:
            return None
        return battery < self._battery_low_threshold

    async def set_volume(self, value: int | str) -> list[Transition]:
        """Set the volume: low (0), medium (1) or high (2)."""
        return await self.main_gang._write(DpRole.VOLUME, value)

    async def set_duration(self, value: int) -> list[Transition]:
        """Set the duration of the alarm, in seconds."""
        return await self.main_gang._write(DpRole.DURATION, value)

    async def set_melody(self, value: int | str) -> list[Transition]:
        """Set the melody, by its code (0-17) or name."""
        return await self.main_gang._write(DpRole.MELODY, value)

    async def _configure(
        self, melody: int | str, volume: int | str, duration: int
    ) -> None:
        await self.set_melody(melody)
        await self.set_volume(volume)
        await self.set_duration(duration)

    async def start_siren(
        self,
        melody: int | str | None = None,
        volume: int | str | None = None,
        duration: int | None = None,
    ) -> list[Transition]:
        """Configure the siren (by default, as it was), then start the alarm."""

        await self._configure(
            _first(melody, self.melody, SIREN_DEFAULT_MELODY),
            _first(volume, self.volume, SIREN_DEFAULT_VOLUME),
            _first(duration, self.duration),
        )
        await asyncio.sleep(SIREN_ARM_DELAY)  # let the settings be applied
        return await self.main_gang._write(DpRole.ALARM, True)

    async def stop_siren(self) -> list[Transition]:
        """Stop the alarm (a manual stop)."""

        was_playing, self.is_playing = self.is_playing, False
        try:
            result = await self.main_gang._write(DpRole.ALARM, False)
        except Exception:
            self.is_playing = was_playing
            raise

        self._emit(SirenEvent.DEACTIVATED, reason=SirenStopReason.MANUAL)
        return result

    async def play_test_beep(self) -> list[Transition]:
        """Play a short beep, then restore the previous settings."""

        settings = (
            _first(self.melody, SIREN_DEFAULT_MELODY),
            _first(self.volume, SIREN_DEFAULT_VOLUME),
            self.duration,
        )

        await self._configure(SIREN_BEEP_MELODY, SIREN_BEEP_VOLUME, SIREN_BEEP_DURATION)
        await asyncio.sleep(SIREN_ARM_DELAY)
        result = await self.main_gang._write(DpRole.ALARM, True)

        self._schedule(self._configure, *settings, delay=SIREN_BEEP_RESTORE_DELAY)
        return result

    @property
    def status(self) -> dict[str, Any]:
        return super().status | {
            SZ_IS_PLAYING: self.is_playing,
            SZ_MELODY: self.melody,
            SZ_VOLUME: self.volume,
            SZ_DURATION: self.duration,
            SZ_BATTERY: self.battery,
            SZ_BATTERY_LOW: self.battery_low,
        }


SIREN_CLASS_BY_SLUG: dict[str, type[Node]] = class_by_attr(__name__, "_SLUG")
