#!/usr/bin/env python3
"""Tuya DP - multi-gang wall switches (e.g. Zemismart 4/6-gang)."""

from __future__ import annotations

import logging

from ..const import DevClass, DpRole
from ..helpers import class_by_attr
from ..reconciler import Transition
from .base import Gang, Node

_LOGGER = logging.getLogger(__name__)


class SwitchGang(Gang):
    """A relay of a wall switch."""

    @property
    def is_on(self) -> bool | None:
        return self.get_value(DpRole.ON_OFF)  # type: ignore[no-any-return]

    async def set_on_off(self, value: bool) -> list[Transition]:
        """Switch the relay on/off (no write is sent if it is already so)."""

        if self.is_on is bool(value):
            _LOGGER.debug("%s: already %s, skipping", self, "on" if value else "off")
            return []
        return await self._write(DpRole.ON_OFF, bool(value))


class SwitchNode(Node):
    """A wall switch, with one relay per gang."""

    _SLUG: str = DevClass.SWITCH
    _GANG_CLASS = SwitchGang

    @property
    def gangs(self) -> list[SwitchGang]:  # type: ignore[override]
        return list(self._gangs)  # type: ignore[arg-type]

    def gang(self, idx: int) -> SwitchGang:
        return self._gangs[idx]  # type: ignore[return-value]


SWITCH_CLASS_BY_SLUG: dict[str, type[Node]] = class_by_attr(__name__, "_SLUG")
