#!/usr/bin/env python3
"""Tuya DP - a Tuya datapoint protocol core.

Base for all nodes (physical devices) and their gangs (logical channels).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime as dt
from typing import TYPE_CHECKING, Any

from tuya_tx import (
    DataType,
    Packet,
    ReliableSender,
    RetryParams,
    TransactionSequencer,
    TuyaCommand,
)
from tuya_tx import exceptions as exc
from tuya_tx.schemas import SZ_COMMS_PARAMS, SZ_FRAME_LOG

from ..const import (
    BATTERY_LOW_THRESHOLD,
    DUPLICATE_EPSILON,
    ENUM_MAPS,
    LEVEL_SCALE,
    SZ_BATTERY_LOW_THRESHOLD,
    SZ_CLASS,
    SZ_DEBOUNCE,
    SZ_DUPLICATE_EPSILON,
    SZ_EXPECTED_DPS,
    SZ_GANGS,
    SZ_MIN_COUNT,
    SZ_NAME,
    SZ_NODE_DPS,
    SZ_ONLINE_DELAY,
    SZ_POLICY,
    SZ_PRODUCT,
    SZ_RECOVERY,
    SZ_START_DELAY,
    SZ_STATE,
    SZ_TIMEOUT,
    DevClass,
    DpRole,
)
from ..debounce import DebounceGate
from ..exceptions import DeviceConfigInvalid
from ..helpers import log_task_exception, schedule_task
from ..reconciler import CascadeRule, DatapointSpec, StateReconciler, Transition
from ..recovery import RecoveryTracker
from ..schemas import SCH_NODE_CONFIG

if TYPE_CHECKING:
    from tuya_tx import TuyaTransportT


_LOGGER = logging.getLogger(__name__)


ROLE_DATATYPES: dict[DpRole, DataType] = {
    DpRole.ON_OFF: DataType.BOOL,
    DpRole.LEVEL: DataType.VALUE,
    DpRole.LEVEL_MIN: DataType.VALUE,
    DpRole.LEVEL_MAX: DataType.VALUE,
    DpRole.POWER_ON: DataType.ENUM,
    DpRole.BACKLIGHT: DataType.ENUM,
    DpRole.VOLUME: DataType.ENUM,
    DpRole.DURATION: DataType.VALUE,
    DpRole.ALARM: DataType.BOOL,
    DpRole.BATTERY: DataType.VALUE,
    DpRole.MELODY: DataType.ENUM,
}

_SCALED_ROLES = (DpRole.LEVEL, DpRole.LEVEL_MIN, DpRole.LEVEL_MAX)


def dp_spec(role: DpRole, dp: int) -> DatapointSpec:
    """Return how the value of a datapoint is normalised, according to its role."""

    return DatapointSpec(
        dp=dp,
        role=role,
        datatype=ROLE_DATATYPES[role],
        scale=LEVEL_SCALE if role in _SCALED_ROLES else None,
        enum_map=ENUM_MAPS.get(role),
        valid_range=(0, 100) if role == DpRole.BATTERY else None,
    )


class Gang:
    """The Gang base class: one controllable channel of a node.

    Its datapoints are defined by a role -> dp table, so that the gangs of a node
    differ only by their configuration.
    """

    def __init__(
        self,
        node: Node,
        idx: int,
        dps: dict[str, int],
        *,
        epsilon: float = DUPLICATE_EPSILON,
    ) -> None:
        self._node = node
        self.idx = idx
        self.id = f"{node.id}_{idx + 1}"

        self._dps: dict[DpRole, int] = {DpRole(r): dp for r, dp in dps.items()}

        self._reconciler = StateReconciler(
            self._dps.values(),
            specs=(dp_spec(r, dp) for r, dp in self._dps.items()),
            cascades=self._cascades(),
            epsilon=epsilon,
            name=self.id,
        )
        self._gate = DebounceGate(name=self.id)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.id})"

    def __str__(self) -> str:
        return self.id

    def _cascades(self) -> Iterable[CascadeRule]:
        return ()

    @property
    def is_main(self) -> bool:
        """Return True if this is the node's main gang (it owns the node-wide dps)."""
        return self.idx == 0

    @property
    def reconciler(self) -> StateReconciler:
        return self._reconciler

    @property
    def gate(self) -> DebounceGate:
        return self._gate

    @property
    def dps(self) -> dict[DpRole, int]:
        return dict(self._dps)

    def dp(self, role: DpRole) -> int:
        """Return the dp of a role, or raise DeviceConfigInvalid."""
        try:
            return self._dps[role]
        except KeyError as err:
            raise DeviceConfigInvalid(f"{self}: has no {role} datapoint") from err

    def has_role(self, role: DpRole) -> bool:
        return role in self._dps

    def get_value(self, role: DpRole, default: Any = None) -> Any:
        """Return the cached value of a role."""
        if role not in self._dps:
            return default
        return self._reconciler.get(self._dps[role], default)

    def add_handler(self, handler: Callable[[Transition], None]) -> Callable[[], None]:
        """Add a handler of (changed) transitions, return a callback to remove it."""
        return self._reconciler.add_handler(handler)

    def _handle_pkt(self, pkt: Packet) -> list[Transition]:
        return self._reconciler.apply(pkt.dp, pkt.value, pkt.source)

    async def _write(self, role: DpRole, value: Any) -> list[Transition]:
        """Write a value (in its cached form), and cache it once acknowledged.

        Raise SendExhausted (and leave the cache unchanged) if it is not.
        """

        dp = self.dp(role)
        spec = self._reconciler.spec(dp)
        assert spec  # mypy

        wire_value = spec.denormalise(value)
        cached_value = spec.normalise(wire_value)
        await self._node.sender.send(dp, spec.datatype, wire_value)
        return self._reconciler.set_local(dp, cached_value)

    def _cancel_timers(self) -> None:
        self._gate.cancel_all()

    @property
    def status(self) -> dict[str, Any]:
        return {str(r): self._reconciler.get(dp) for r, dp in self._dps.items()}


class Node:
    """The Node base class: a physical device, with one or more gangs.

    Inbound frames are processed synchronously, in order of arrival.
    """

    _SLUG: str = None  # type: ignore[assignment]
    _GANG_CLASS: type[Gang] = Gang

    def __init__(
        self,
        transport: TuyaTransportT,
        product: dict[str, Any],
        *,
        name: str | None = None,
        comms_params: dict[str, Any] | None = None,
        debounce: dict[str, Any] | None = None,
        duplicate_epsilon: float = DUPLICATE_EPSILON,
        battery_low_threshold: int = BATTERY_LOW_THRESHOLD,
        **kwargs: Any,
    ) -> None:
        self.id: str = name or f"{self._SLUG}_{id(self):x}"

        self._transport = transport
        self._product = product
        self._debounce = debounce or {}
        self._battery_low_threshold = battery_low_threshold

        self._sequencer = TransactionSequencer()
        self._sender = ReliableSender(
            transport,
            self._sequencer,
            retry_params=RetryParams(**(comms_params or {})),
            name=self.id,
        )

        self._recovery_config: dict[str, Any] = product[SZ_RECOVERY]
        self._recovery = RecoveryTracker(
            policy=self._recovery_config[SZ_POLICY],
            min_count=self._recovery_config.get(SZ_MIN_COUNT),
            name=self.id,
        )
        self._recovery_timer: asyncio.TimerHandle | None = None

        gangs: list[dict[str, int]] = [dict(g) for g in product[SZ_GANGS]]
        gangs[0].update(product.get(SZ_NODE_DPS, {}))  # the main gang owns these
        self._gangs: list[Gang] = [
            self._GANG_CLASS(self, idx, dps, epsilon=duplicate_epsilon)
            for idx, dps in enumerate(gangs)
        ]

        self._tasks: set[asyncio.Task[Any]] = set()
        self._is_online = False
        self._last_pkt_dtm: dt | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.id})"

    def __str__(self) -> str:
        return f"{self.id} ({self._SLUG})"

    @classmethod
    def create_from_schema(cls, transport: TuyaTransportT, **schema: Any) -> Node:
        """Create a node from a (validated) configuration.

        The appropriate Node class should have been determined by a factory.
        """

        config = SCH_NODE_CONFIG(schema)
        config.pop(SZ_FRAME_LOG, None)  # the frame log is configured elsewhere

        if cls._SLUG and config[SZ_PRODUCT][SZ_CLASS] != cls._SLUG:
            raise DeviceConfigInvalid(
                f"{cls.__name__} is not a {config[SZ_PRODUCT][SZ_CLASS]}"
            )

        return cls(
            transport,
            config[SZ_PRODUCT],
            name=config[SZ_NAME],
            comms_params=config[SZ_COMMS_PARAMS],
            debounce=config[SZ_DEBOUNCE],
            duplicate_epsilon=config[SZ_DUPLICATE_EPSILON],
            battery_low_threshold=config[SZ_BATTERY_LOW_THRESHOLD],
        )

    @property
    def transport(self) -> TuyaTransportT:
        return self._transport

    @property
    def sender(self) -> ReliableSender:
        return self._sender

    @property
    def sequencer(self) -> TransactionSequencer:
        return self._sequencer

    @property
    def recovery(self) -> RecoveryTracker:
        return self._recovery

    @property
    def gangs(self) -> list[Gang]:
        return list(self._gangs)

    @property
    def main_gang(self) -> Gang:
        return self._gangs[0]

    def gang(self, idx: int) -> Gang:
        """Return a gang by its index (0 is the main gang)."""
        return self._gangs[idx]

    @property
    def is_online(self) -> bool:
        return self._is_online

    @property
    def dev_class(self) -> DevClass:
        return DevClass(self._product[SZ_CLASS])

    # inbound...

    def frame_received(
        self,
        frame: bytes,
        command: TuyaCommand | int,
        dtm: dt | None = None,
    ) -> list[Transition]:
        """Process a frame, as delivered by the transport (invalid frames are dropped).

        The source of the frame (physical or app) is derived from its command id.
        """

        try:
            pkt = Packet.from_bytes(frame, command=command, dtm=dtm)
        except exc.PacketInvalid as err:
            _LOGGER.warning("%s: frame dropped: %s", self, err)
            return []
        return self.packet_received(pkt)

    def packet_received(self, pkt: Packet) -> list[Transition]:
        """Route a packet to the gang that owns its dp, and track any recovery."""

        self._last_pkt_dtm = pkt.dtm

        result: list[Transition] = []
        for gang in self._gangs:
            result.extend(gang._handle_pkt(pkt))

        if not result:
            _LOGGER.debug("%s: dp %s is not owned by any gang", self, pkt.dp)
            return result

        if any(t.dp == pkt.dp and t.error is None for t in result):
            self._recovery.observe(pkt.dp)

        self._handle_transitions(result)
        return result

    def _handle_transitions(self, transitions: list[Transition]) -> None:
        """Process the transitions of an inbound packet (a hook for subclasses)."""
        pass

    # connection events...

    def connection_made(self) -> None:
        """The node has been initialized: start a recovery after the start delay."""
        self._is_online = True
        self._schedule_recovery(self._recovery_config[SZ_START_DELAY])

    def online(self) -> None:
        """The node has (re)announced itself: start a recovery after a delay."""
        _LOGGER.info("%s: online", self)
        self._is_online = True
        self._schedule_recovery(self._recovery_config[SZ_ONLINE_DELAY])

    def connection_lost(self, err: Exception | None = None) -> None:
        """The node has gone offline."""

        if err:
            _LOGGER.warning("%s: offline: %r", self, err)
        else:
            _LOGGER.info("%s: offline", self)

        self._is_online = False
        self._cancel_recovery()

    def _schedule_recovery(self, delay: float) -> None:
        loop = asyncio.get_running_loop()

        if self._recovery_timer:
            self._recovery_timer.cancel()
        self._recovery_timer = loop.call_later(delay, self.start_recovery)

    def _cancel_recovery(self) -> None:
        if self._recovery_timer:
            self._recovery_timer.cancel()
            self._recovery_timer = None
        self._recovery.close()

    def start_recovery(self) -> None:
        """Open a recovery window (reset it, if one is already active)."""

        self._recovery_timer = None
        self._recovery.open(
            self._recovery_config[SZ_EXPECTED_DPS], self._recovery_config[SZ_TIMEOUT]
        )

    # outbound...

    def _schedule(self, fnc: Callable[..., Any], *args: Any, delay: float) -> None:
        """Schedule a (deferred) write, any exception is logged."""

        task = schedule_task(fnc, *args, delay=delay)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(log_task_exception)

    async def set_power_on_behaviour(self, value: str) -> list[Transition]:
        """Set the power-on behaviour: off, on or memory."""
        return await self.main_gang._write(DpRole.POWER_ON, value)

    @property
    def power_on_behaviour(self) -> str | None:
        return self.main_gang.get_value(DpRole.POWER_ON)  # type: ignore[no-any-return]

    def remove(self) -> None:
        """The node is being removed: cancel all its timers (and pending writes)."""

        self._cancel_recovery()
        for gang in self._gangs:
            gang._cancel_timers()
        for task in list(self._tasks):
            task.cancel()
        _LOGGER.info("%s: removed", self)

    # state...

    def restore_state(self, values: dict[int, Any]) -> None:
        """Seed the cached values of the gangs (e.g. from a store)."""
        for gang in self._gangs:
            gang.reconciler.state.restore(
                {dp: v for dp, v in values.items() if gang.reconciler.owns(int(dp))}
            )

    def snapshot(self) -> dict[int, Any]:
        """Return the cached values of all the gangs (e.g. to be stored)."""
        result: dict[int, Any] = {}
        for gang in self._gangs:
            result |= gang.reconciler.state.snapshot()
        return result

    @property
    def schema(self) -> dict[str, Any]:
        return {SZ_CLASS: self._SLUG, SZ_GANGS: [g.dps for g in self._gangs]}

    @property
    def params(self) -> dict[str, Any]:
        return {
            SZ_COMMS_PARAMS: self._sender.stats,
            SZ_DEBOUNCE: dict(self._debounce),
            SZ_BATTERY_LOW_THRESHOLD: self._battery_low_threshold,
        }

    @property
    def status(self) -> dict[str, Any]:
        return {
            SZ_STATE: [g.status for g in self._gangs],
            SZ_RECOVERY: str(self._recovery.state),
        }
