#!/usr/bin/env python3
"""Tuya DP - the state reconciliation engine.

Merge inbound datapoint values with the cached state of a gang (or a node): suppress
duplicates (no-op reports), and resolve derived state (e.g. speed > 0 implies on).
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime as dt
from typing import Any

from tuya_tx import DataType, Source

from .const import DUPLICATE_EPSILON, DpRole
from .exceptions import UnknownEnumValue
from .helpers import clamp, values_equal

_LOGGER = logging.getLogger(__name__)

# the (decoded) value types of each datatype
_VALUE_TYPES: dict[DataType, tuple[type, ...]] = {
    DataType.RAW: (bytes, bytearray),
    DataType.BOOL: (bool, int),
    DataType.VALUE: (int,),
    DataType.STRING: (str,),
    DataType.ENUM: (int,),
    DataType.BITMAP: (int,),
}


@dataclasses.dataclass(frozen=True, kw_only=True)
class DatapointSpec:
    """How the decoded value of a datapoint is normalised (and denormalised)."""

    dp: int
    role: DpRole | str
    datatype: DataType
    scale: int | None = None  # value <-> ratio (0..1)
    enum_map: Mapping[int, str] | None = None  # code <-> name
    valid_range: tuple[int, int] | None = None

    def normalise(self, value: Any) -> Any:
        """Return the cached form of a decoded value.

        Raise UnknownEnumValue if the value has no meaning for this datapoint.
        """

        if not isinstance(value, _VALUE_TYPES[self.datatype]) or (
            isinstance(value, bool) and self.datatype != DataType.BOOL
        ):
            raise UnknownEnumValue(self.dp, value, reason="unexpected datatype")

        if self.datatype == DataType.BOOL:
            return value is True or value == 1

        if self.valid_range and not (
            isinstance(value, int)
            and self.valid_range[0] <= value <= self.valid_range[1]
        ):
            raise UnknownEnumValue(self.dp, value, reason="out of range")

        if self.enum_map is not None:
            try:
                return self.enum_map[value]
            except (KeyError, TypeError) as err:
                raise UnknownEnumValue(self.dp, value) from err

        if self.scale:
            return clamp(value / self.scale)

        return value

    def denormalise(self, value: Any) -> Any:
        """Return the value to be written for a cached form (the inverse of above)."""

        if self.datatype == DataType.BOOL:
            return bool(value)

        if self.enum_map is not None:
            if isinstance(value, str):
                for code, name in self.enum_map.items():
                    if name == value:
                        return code
            elif value in self.enum_map:
                return value
            raise UnknownEnumValue(self.dp, value)

        if self.scale:
            return round(clamp(value) * self.scale)

        return value


@dataclasses.dataclass(frozen=True)
class CascadeRule:
    """A derived-state rule: a change to source_dp implies a value for target_dp."""

    source_dp: int
    target_dp: int
    derive: Callable[[Any], Any]

    @classmethod
    def level_implies_on_off(cls, level_dp: int, on_off_dp: int) -> CascadeRule:
        """A level > 0 implies on, a level of 0 implies off."""
        return cls(level_dp, on_off_dp, lambda level: bool(level and level > 0))


@dataclasses.dataclass(frozen=True, kw_only=True)
class Transition:
    """The outcome of applying a datapoint value to the cached state."""

    dp: int
    old_value: Any
    new_value: Any
    source: Source
    changed: bool
    derived: bool = False  # True if it was the result of a cascade
    error: UnknownEnumValue | None = None

    def __str__(self) -> str:
        flag = "derived" if self.derived else "changed" if self.changed else "same"
        return (
            f"dp {self.dp}: {self.old_value!r} -> {self.new_value!r} "
            f"({self.source}, {flag})"
        )


class DeviceState:
    """The last known value of each datapoint, and the source of the last change."""

    def __init__(self) -> None:
        self._values: dict[int, Any] = {}
        self._updated: dict[int, dt] = {}
        self.last_source: Source | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._values})"

    def __contains__(self, dp: object) -> bool:
        return dp in self._values

    def get(self, dp: int, default: Any = None) -> Any:
        return self._values.get(dp, default)

    def updated(self, dp: int) -> dt | None:
        """Return when the datapoint was last changed."""
        return self._updated.get(dp)

    @property
    def values(self) -> dict[int, Any]:
        return dict(self._values)

    def _set(self, dp: int, value: Any, source: Source) -> None:
        self._values[dp] = value
        self._updated[dp] = dt.now()
        self.last_source = source

    def snapshot(self) -> dict[int, Any]:
        """Return the cached values (e.g. to be stored)."""
        return dict(self._values)

    def restore(self, values: Mapping[int, Any]) -> None:
        """Seed the cached values (e.g. from a store), without any transitions."""
        self._values.update({int(k): v for k, v in values.items()})


class StateReconciler:
    """The state reconciliation engine of a gang (or a node).

    Only the datapoints owned by the engine are processed, others are ignored.
    """

    def __init__(
        self,
        owned_dps: Iterable[int],
        *,
        specs: Iterable[DatapointSpec] = (),
        cascades: Iterable[CascadeRule] = (),
        epsilon: float = DUPLICATE_EPSILON,
        name: str | None = None,
    ) -> None:
        self._owned_dps = frozenset(owned_dps)
        self._specs = {s.dp: s for s in specs}
        self._cascades: dict[int, list[CascadeRule]] = {}
        for rule in cascades:
            self._cascades.setdefault(rule.source_dp, []).append(rule)
        self._epsilon = epsilon
        self._name = name or hex(id(self))

        self._state = DeviceState()
        self._handlers: list[Callable[[Transition], None]] = []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._name})"

    @property
    def owned_dps(self) -> frozenset[int]:
        return self._owned_dps

    @property
    def state(self) -> DeviceState:
        return self._state

    def owns(self, dp: int) -> bool:
        return dp in self._owned_dps

    def spec(self, dp: int) -> DatapointSpec | None:
        return self._specs.get(dp)

    def get(self, dp: int, default: Any = None) -> Any:
        """Return the cached value of a datapoint."""
        return self._state.get(dp, default)

    def add_handler(self, handler: Callable[[Transition], None]) -> Callable[[], None]:
        """Add a handler of changed transitions, return a callback to remove it."""

        def del_handler() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        if handler not in self._handlers:
            self._handlers.append(handler)

        return del_handler

    def apply(self, dp: int, value: Any, source: Source) -> list[Transition]:
        """Apply a decoded (inbound) value to the cached state.

        Return nothing if the dp is not owned, a single unchanged transition if the
        value is a duplicate (or has no meaning), otherwise the transition followed by
        any derived transitions.
        """

        if dp not in self._owned_dps:
            return []

        if spec := self._specs.get(dp):
            try:
                value = spec.normalise(value)
            except UnknownEnumValue as err:
                _LOGGER.warning("%s: %s (state is retained)", self, err)
                old_value = self._state.get(dp)
                return [
                    Transition(
                        dp=dp,
                        old_value=old_value,
                        new_value=old_value,
                        source=source,
                        changed=False,
                        error=err,
                    )
                ]

        return self._reconcile(dp, value, source)

    def set_local(self, dp: int, value: Any) -> list[Transition]:
        """Apply a value (in its cached form) that was written to the device.

        Call this only once the write was acknowledged.
        """

        if dp not in self._owned_dps:
            raise KeyError(f"{self}: dp {dp} is not owned")
        return self._reconcile(dp, value, Source.APP)

    def _reconcile(self, dp: int, value: Any, source: Source) -> list[Transition]:
        old_value = self._state.get(dp)

        if dp in self._state and values_equal(old_value, value, self._epsilon):
            _LOGGER.debug("%s: dp %s is unchanged: %r (%s)", self, dp, value, source)
            return [
                Transition(
                    dp=dp,
                    old_value=old_value,
                    new_value=old_value,
                    source=source,
                    changed=False,
                )
            ]

        self._state._set(dp, value, source)
        result = [
            Transition(
                dp=dp, old_value=old_value, new_value=value, source=source, changed=True
            )
        ]

        for rule in self._cascades.get(dp, ()):
            derived = rule.derive(value)
            target_old = self._state.get(rule.target_dp)
            if rule.target_dp in self._state and values_equal(
                target_old, derived, self._epsilon
            ):
                continue
            self._state._set(rule.target_dp, derived, source)
            result.append(
                Transition(
                    dp=rule.target_dp,
                    old_value=target_old,
                    new_value=derived,
                    source=source,
                    changed=True,
                    derived=True,
                )
            )

        for transition in result:
            _LOGGER.info("%s: %s", self, transition)
            self._notify(transition)

        return result

    def _notify(self, transition: Transition) -> None:
        for handler in self._handlers:
            try:
                handler(transition)
            except Exception as err:
                _LOGGER.error("%s: handler %s failed: %r", self, handler, err)
