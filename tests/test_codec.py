#!/usr/bin/env python3
"""Tuya DP - Test the datapoint codec."""

from typing import Any

import pytest

from tuya_tx import DataType, decode, encode
from tuya_tx import exceptions as exc
from tuya_tx.codec import (
    bytes_from_bitmap,
    bytes_from_bool,
    bytes_from_string,
    bytes_from_value,
    bytes_to_bitmap,
    bytes_to_bool,
    bytes_to_value,
    decode_data,
    encode_data,
)

ROUND_TRIP_VALUES: list[tuple[DataType, Any]] = [
    (DataType.BOOL, True),
    (DataType.BOOL, False),
    (DataType.VALUE, 0),
    (DataType.VALUE, 1),
    (DataType.VALUE, 4294967295),
    (DataType.STRING, ""),
    (DataType.STRING, "A"),
    (DataType.STRING, "".join(chr(i) for i in range(1, 256))),  # 255 chars
    (DataType.ENUM, 0),
    (DataType.ENUM, 255),
    (DataType.RAW, b""),
    (DataType.RAW, bytes(range(16))),
    (DataType.BITMAP, 0),
    (DataType.BITMAP, 0x80000001),
]


@pytest.mark.parametrize("datatype, value", ROUND_TRIP_VALUES)
def test_round_trip(datatype: DataType, value: Any) -> None:
    frame = encode(1, datatype, value)

    assert frame.datatype == datatype
    assert decode(frame) == value
    assert type(decode(frame)) is type(value)


def test_value_is_big_endian() -> None:
    assert bytes_from_value(0x01020304) == b"\x01\x02\x03\x04"
    assert bytes_from_value(1000) == b"\x00\x00\x03\xe8"
    assert bytes_to_value(b"\x00\x00\x03\xe8") == 1000
    assert bytes_to_value(b"\xff\xff\xff\xff") == 0xFFFFFFFF


def test_bitmap_widths() -> None:
    assert bytes_from_bitmap(0x0102, width=2) == b"\x01\x02"
    assert bytes_from_bitmap(0x01) == b"\x00\x00\x00\x01"  # default width is 4
    assert bytes_from_bitmap(0xFF, width=1) == b"\xff"

    assert bytes_to_bitmap(b"\x80") == 0x80
    assert bytes_to_bitmap(b"\x01\x00") == 0x0100

    with pytest.raises(exc.InvalidPayload):
        bytes_from_bitmap(0x100, width=1)
    with pytest.raises(exc.InvalidPayload):
        bytes_from_bitmap(1, width=3)
    with pytest.raises(exc.InvalidPayload):
        bytes_to_bitmap(b"\x00\x00\x00")


def test_bool_decoding() -> None:
    """Only 0x01 is True, any other byte is False."""

    assert bytes_to_bool(b"\x01") is True
    assert bytes_to_bool(b"\x00") is False
    assert bytes_to_bool(b"\x02") is False
    assert bytes_to_bool(b"\xff") is False

    assert bytes_from_bool(True) == b"\x01"
    assert bytes_from_bool(0) == b"\x00"

    with pytest.raises(exc.InvalidPayload):
        bytes_from_bool(2)
    with pytest.raises(exc.InvalidPayload):
        bytes_from_bool("on")  # type: ignore[arg-type]


def test_string_is_one_byte_per_char() -> None:
    assert bytes_from_string("\xe9t\xe9") == b"\xe9t\xe9"
    assert decode_data(DataType.STRING, b"\xe9t\xe9") == "\xe9t\xe9"

    with pytest.raises(exc.InvalidPayload):
        bytes_from_string("€")  # the euro sign is above 255


def test_encode_invalid_dp() -> None:
    for dp in (-1, 256, 1000, True, "1"):
        with pytest.raises(exc.InvalidDatapointId):
            encode(dp, DataType.BOOL, True)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "datatype, value",
    [
        (DataType.RAW, "not a buffer"),
        (DataType.RAW, [1, 2, 3]),
        (DataType.VALUE, -1),
        (DataType.VALUE, 0x100000000),
        (DataType.VALUE, 1.5),
        (DataType.VALUE, True),
        (DataType.ENUM, 256),
        (DataType.ENUM, "high"),
        (DataType.STRING, 1),
    ],
)
def test_encode_invalid_payload(datatype: DataType, value: Any) -> None:
    with pytest.raises(exc.InvalidPayload):
        encode(1, datatype, value)


def test_unsupported_datatype() -> None:
    with pytest.raises(exc.UnsupportedDatatype):
        encode_data(6, 1)
    with pytest.raises(exc.UnsupportedDatatype):
        decode_data(0x10, b"\x01")


def test_codec_errors_are_not_retried() -> None:
    """All codec errors share a base class, distinct from the transport errors."""

    assert issubclass(exc.InvalidDatapointId, exc.CodecError)
    assert issubclass(exc.InvalidPayload, exc.CodecError)
    assert issubclass(exc.UnsupportedDatatype, exc.CodecError)

    assert not issubclass(exc.CodecError, exc.TransportError)
    assert issubclass(exc.TransportUnavailable, exc.TransportError)
