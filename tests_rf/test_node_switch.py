#!/usr/bin/env python3
"""Tuya DP - Test the multi-gang wall switches (and the base node behaviours)."""

import asyncio
from typing import Any

import pytest

from tuya_dp import Node, SwitchGang, SwitchNode, Transition, node_factory
from tuya_dp.exceptions import SendExhausted, TransportUnavailable
from tuya_tx import Command, DataType, Source, TuyaCommand
from tuya_tx import exceptions as exc

from .conftest import FAST_COMMS_PARAMS, MockTransport

pytestmark = pytest.mark.asyncio()

# a 2-gang switch, with a quick recovery
SWITCH_2_GANG = {
    "class": "switch",
    "gangs": [{"on_off": 1}, {"on_off": 2}],
    "recovery": {
        "expected_dps": [1, 2],
        "timeout": 0.2,
        "start_delay": 0.01,
        "online_delay": 0.01,
    },
}


def report(
    node: Node,
    dp: int,
    value: Any,
    command: TuyaCommand = TuyaCommand.REPORTING,
) -> list[Transition]:
    """Deliver an on/off frame from the device, as if received by the transport."""
    return node.frame_received(Command.put_bool(dp, value).to_bytes(), command)


@pytest.fixture()
def switch_2(transport: MockTransport) -> SwitchNode:
    return node_factory(  # type: ignore[return-value]
        transport,
        name="switch_02",
        product=SWITCH_2_GANG,
        comms_params=FAST_COMMS_PARAMS,
    )


async def test_switch_layout(switch: SwitchNode, transport: MockTransport) -> None:
    assert isinstance(switch, SwitchNode)
    assert all(isinstance(g, SwitchGang) for g in switch.gangs)
    assert [g.dps for g in switch.gangs] == [
        {"on_off": 1, "power_on": 14},  # the main gang owns the node-wide dps
        {"on_off": 2},
        {"on_off": 3},
        {"on_off": 4},
    ]

    switch_6 = node_factory(transport, product="switch_6_gang")
    assert len(switch_6.gangs) == 6
    assert switch_6.main_gang.dps == {"on_off": 1}


async def test_set_on_off(switch: SwitchNode, transport: MockTransport) -> None:
    result = await switch.gang(2).set_on_off(True)

    assert [(t.dp, t.new_value, t.source) for t in result] == [(3, True, Source.APP)]
    assert transport.sent == [(3, True)]
    assert transport.frames[0].datatype == DataType.BOOL
    assert switch.gang(2).is_on is True

    assert await switch.gang(2).set_on_off(True) == []  # already on
    assert len(transport.frames) == 1

    await switch.gang(2).set_on_off(False)
    assert [f.seqn for f in transport.frames] == [0, 1]


async def test_source_is_preserved(switch: SwitchNode) -> None:
    (result,) = report(switch, 1, True)
    assert result.source == Source.PHYSICAL

    (result,) = report(switch, 1, False, command=TuyaCommand.RESPONSE)
    assert result.source == Source.APP

    assert switch.gang(0).reconciler.state.last_source == Source.APP


async def test_reports_in_order(switch: SwitchNode) -> None:
    for value in (True, False, True, False):
        report(switch, 4, value)

    assert switch.gang(3).is_on is False


async def test_unowned_dp(switch: SwitchNode) -> None:
    assert report(switch, 99, True) == []
    assert switch.snapshot() == {}


async def test_invalid_frames_are_dropped(switch: SwitchNode) -> None:
    assert switch.frame_received(b"\x00\x01", TuyaCommand.REPORTING) == []
    assert switch.frame_received(Command.put_bool(1, True).to_bytes(), 0x00) == []
    assert switch.frame_received(bytes.fromhex("00 00 01 01 0002 0101"), 0x01) == []

    assert switch.gang(0).is_on is None


async def test_retry_then_ok(switch: SwitchNode, transport: MockTransport) -> None:
    transport.failures = [exc.TransportError("busy")]

    await switch.gang(0).set_on_off(True)

    assert [(f.dp, f.seqn) for f in transport.frames] == [(1, 0), (1, 1)]
    assert switch.gang(0).is_on is True


async def test_write_failure(switch: SwitchNode, transport: MockTransport) -> None:
    """A failed write is reported, and leaves the cached state unchanged."""

    report(switch, 2, False)
    transport.always_fail = exc.TransportError("no ack")

    with pytest.raises(SendExhausted):
        await switch.gang(1).set_on_off(True)

    assert switch.gang(1).is_on is False


async def test_node_offline(switch: SwitchNode, transport: MockTransport) -> None:
    transport.available = False

    with pytest.raises(SendExhausted) as exc_info:
        await switch.gang(0).set_on_off(True)

    assert isinstance(exc_info.value.last_error, TransportUnavailable)
    assert transport.frames == []
    assert switch.sequencer.current == 0
    assert switch.gang(0).is_on is None


async def test_power_on_behaviour(switch: SwitchNode, transport: MockTransport) -> None:
    await switch.set_power_on_behaviour("memory")

    assert [(f.dp, f.datatype, f.data) for f in transport.frames] == [
        (14, DataType.ENUM, b"\x02")
    ]
    assert switch.power_on_behaviour == "memory"


async def test_restore_state(switch: SwitchNode) -> None:
    switch.restore_state({1: True, 3: False, "14": "on"})

    assert switch.gang(0).is_on is True
    assert switch.gang(2).is_on is False
    assert switch.power_on_behaviour == "on"
    assert switch.snapshot() == {1: True, 3: False, 14: "on"}

    (result,) = report(switch, 1, True)
    assert result.changed is False


async def test_recovery_on_connect(switch_2: SwitchNode) -> None:
    switch_2.connection_made()
    assert switch_2.is_online
    assert not switch_2.recovery.is_active  # after the start delay

    await asyncio.sleep(0.05)
    assert switch_2.recovery.is_active

    report(switch_2, 2, False)
    report(switch_2, 99, True)  # not owned
    report(switch_2, 1, True)

    assert switch_2.recovery.is_complete
    assert switch_2.recovery.last_result is not None
    assert switch_2.recovery.last_result.received_dps == {1, 2}
    assert switch_2.recovery.last_result.timed_out is False


async def test_recovery_counts_duplicates(switch_2: SwitchNode) -> None:
    """A report of an unchanged value is still evidence of a synchronized state."""

    report(switch_2, 1, True)
    report(switch_2, 2, True)

    switch_2.start_recovery()
    report(switch_2, 1, True)
    report(switch_2, 2, True)

    assert switch_2.recovery.is_complete


async def test_recovery_timeout(switch_2: SwitchNode) -> None:
    switch_2.online()
    await asyncio.sleep(0.05)

    report(switch_2, 1, True)

    result = await asyncio.wait_for(switch_2.recovery.wait_for_completion(), 1.0)
    assert result.timed_out is True
    assert result.received_dps == {1}


async def test_connection_lost(switch_2: SwitchNode) -> None:
    switch_2.connection_made()
    switch_2.connection_lost(ConnectionError("gone"))

    assert not switch_2.is_online

    await asyncio.sleep(0.05)
    assert switch_2.recovery.state == "idle"  # never started


async def test_status(switch: SwitchNode) -> None:
    report(switch, 1, True)

    assert switch.status == {
        "state": [
            {"on_off": True, "power_on": None},
            {"on_off": None},
            {"on_off": None},
            {"on_off": None},
        ],
        "recovery": "idle",
    }
    assert switch.params["comms_params"]["max_retries"] == 2
