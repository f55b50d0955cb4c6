#!/usr/bin/env python3
"""Tuya DP - Test packets (received frames), and their source."""

import logging
from datetime import datetime as dt

import pytest

from tuya_tx import DataType, Frame, Packet, Source, TuyaCommand
from tuya_tx import exceptions as exc

DTM = dt(2024, 1, 2, 3, 4, 5, 500000)


def test_packet_source() -> None:
    raw = bytes.fromhex("00 05 01 01 0001 01")

    pkt = Packet.from_bytes(raw, command=TuyaCommand.REPORTING, dtm=DTM)
    assert pkt.source == Source.PHYSICAL
    assert pkt.command == TuyaCommand.REPORTING
    assert pkt.value is True
    assert pkt.dtm == DTM

    pkt = Packet.from_bytes(raw, command=TuyaCommand.RESPONSE)
    assert pkt.source == Source.APP

    pkt = Packet.from_bytes(raw, command=TuyaCommand.REPORTING_CONFIGURATION)
    assert pkt.source == Source.PHYSICAL

    pkt = Packet.from_bytes(raw, command=2)  # a plain int will do
    assert pkt.source == Source.APP


def test_packet_values() -> None:
    pkt = Packet.from_bytes(
        bytes.fromhex("00 00 02 02 0004 000001f4"), command=TuyaCommand.REPORTING
    )
    assert (pkt.dp, pkt.datatype, pkt.value) == (2, DataType.VALUE, 500)

    pkt = Packet.from_bytes(
        bytes.fromhex("00 00 0e 04 0001 02"), command=TuyaCommand.REPORTING
    )
    assert (pkt.dp, pkt.datatype, pkt.value) == (14, DataType.ENUM, 2)


def test_packet_from_frame() -> None:
    frame = Frame(7, DataType.BOOL, b"\x00", seqn=9)
    pkt = Packet.from_frame(frame, command=TuyaCommand.RESPONSE)

    assert pkt == frame
    assert pkt.source == Source.APP
    assert pkt.value is False


@pytest.mark.parametrize(
    "raw",
    [
        "00 05 01",  # too short
        "00 05 01 01 0002 01",  # length mismatch
        "00 05 01 09 0001 01",  # unsupported datatype
        "00 05 02 02 0001 01",  # value is four bytes
    ],
)
def test_packet_invalid(raw: str) -> None:
    with pytest.raises(exc.PacketInvalid):
        Packet.from_bytes(bytes.fromhex(raw), command=TuyaCommand.REPORTING)


@pytest.mark.parametrize("command", [TuyaCommand.DATAPOINT, 0x03, 0x24, "report"])
def test_packet_not_inbound(command: int) -> None:
    with pytest.raises(exc.PacketInvalid):
        Packet.from_bytes(bytes.fromhex("00 05 01 01 0001 01"), command=command)


def test_packet_logs_invalid(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="tuya_tx.frame_log"):
        with pytest.raises(exc.PacketInvalid):
            Packet.from_bytes(
                bytes.fromhex("00 05 01 01 0002 01"), command=TuyaCommand.REPORTING
            )

    assert any(r.levelno == logging.WARNING for r in caplog.records)
