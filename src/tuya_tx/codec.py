#!/usr/bin/env python3
"""Tuya DP - a Tuya datapoint protocol core.

Encode/decode the typed value of a datapoint to/from the data of a frame.

Integers (value, bitmap) are big-endian: each successive byte is accumulated by
shifting the result left 8 bits and adding the byte.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeAlias

from . import exceptions as exc
from .const import (
    BITMAP_LENS,
    DEFAULT_BITMAP_LEN,
    MAX_DP_ID,
    MAX_VALUE,
    VALUE_LEN,
    DataType,
)
from .frame import Frame, datatype_from_tag

DpValueT: TypeAlias = bool | int | str | bytes

_LOGGER = logging.getLogger(__name__)


def _int_from_bytes(data: bytes) -> int:
    result = 0
    for byte in data:
        result = (result << 8) + byte
    return result


def _int_to_bytes(value: int, width: int) -> bytes:
    return bytes((value >> (8 * i)) & 0xFF for i in reversed(range(width)))


def _check_int(value: Any, max_value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise exc.InvalidPayload(f"Invalid {name}: {value!r} is not an integer")
    if not 0 <= value <= max_value:
        raise exc.InvalidPayload(f"Invalid {name}: {value} is not in 0..{max_value}")
    return value


def _check_len(data: bytes, lens: tuple[int, ...], name: str) -> bytes:
    if len(data) not in lens:
        raise exc.InvalidPayload(f"Invalid {name} data: {data.hex()!r}")
    return data


# BOOL: one byte, only 0x01 is True
def bytes_from_bool(value: bool | int) -> bytes:
    """Convert a boolean to one byte."""
    if not isinstance(value, bool | int) or value not in (0, 1):
        raise exc.InvalidPayload(f"Invalid bool: {value!r}")
    return b"\x01" if value else b"\x00"


def bytes_to_bool(data: bytes) -> bool:
    """Convert one byte to a boolean, anything other than 0x01 is False."""
    return _check_len(data, (1,), "bool")[0] == 0x01


# VALUE: four bytes, unsigned
def bytes_from_value(value: int) -> bytes:
    """Convert an unsigned 32-bit integer to four bytes."""
    return _int_to_bytes(_check_int(value, MAX_VALUE, "value"), VALUE_LEN)


def bytes_to_value(data: bytes) -> int:
    """Convert four bytes to an unsigned 32-bit integer."""
    return _int_from_bytes(_check_len(data, (VALUE_LEN,), "value"))


# BITMAP: 1, 2 or 4 bytes
def bytes_from_bitmap(value: int, width: int | None = None) -> bytes:
    """Convert an unsigned integer to a bitmap of width bytes (default 4)."""
    width = width or DEFAULT_BITMAP_LEN
    if width not in BITMAP_LENS:
        raise exc.InvalidPayload(f"Invalid bitmap width: {width}")
    return _int_to_bytes(_check_int(value, (1 << (8 * width)) - 1, "bitmap"), width)


def bytes_to_bitmap(data: bytes) -> int:
    """Convert a bitmap of 1, 2 or 4 bytes to an unsigned integer."""
    return _int_from_bytes(_check_len(data, BITMAP_LENS, "bitmap"))


# STRING: one byte per character (0..255)
def bytes_from_string(value: str) -> bytes:
    """Convert a string to bytes, one byte per character."""
    if not isinstance(value, str):
        raise exc.InvalidPayload(f"Invalid string: {value!r}")
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError as err:
        raise exc.InvalidPayload(
            f"Invalid string: {value!r} has a character above 255"
        ) from err


def bytes_to_string(data: bytes) -> str:
    """Convert bytes to a string, one character per byte."""
    return data.decode("latin-1")


# ENUM: one byte, uninterpreted
def bytes_from_enum(value: int) -> bytes:
    return bytes((_check_int(value, 0xFF, "enum"),))


def bytes_to_enum(data: bytes) -> int:
    return _check_len(data, (1,), "enum")[0]


# RAW: passthrough
def bytes_from_raw(value: bytes | bytearray) -> bytes:
    if not isinstance(value, bytes | bytearray):
        raise exc.InvalidPayload(f"Invalid raw: {value!r} is not a bytes-like buffer")
    return bytes(value)


def bytes_to_raw(data: bytes) -> bytes:
    return bytes(data)


_ENCODERS: dict[DataType, Callable[[Any], bytes]] = {
    DataType.RAW: bytes_from_raw,
    DataType.BOOL: bytes_from_bool,
    DataType.VALUE: bytes_from_value,
    DataType.STRING: bytes_from_string,
    DataType.ENUM: bytes_from_enum,
    DataType.BITMAP: bytes_from_bitmap,
}

_DECODERS: dict[DataType, Callable[[bytes], DpValueT]] = {
    DataType.RAW: bytes_to_raw,
    DataType.BOOL: bytes_to_bool,
    DataType.VALUE: bytes_to_value,
    DataType.STRING: bytes_to_string,
    DataType.ENUM: bytes_to_enum,
    DataType.BITMAP: bytes_to_bitmap,
}


def encode_data(
    datatype: DataType | int, value: Any, *, width: int | None = None
) -> bytes:
    """Return the data of a frame for a typed value.

    Raise UnsupportedDatatype or InvalidPayload if it cannot be encoded.
    """

    datatype = datatype_from_tag(datatype)
    if datatype == DataType.BITMAP:
        return bytes_from_bitmap(value, width=width)
    return _ENCODERS[datatype](value)


def decode_data(datatype: DataType | int, data: bytes) -> DpValueT:
    """Return the typed value of the data of a frame."""
    return _DECODERS[datatype_from_tag(datatype)](data)


def encode(
    dp: int,
    datatype: DataType | int,
    value: Any,
    *,
    width: int | None = None,
    seqn: int = 0,
) -> Frame:
    """Return a frame for a datapoint with a typed value.

    Raise a CodecError (InvalidDatapointId, InvalidPayload, UnsupportedDatatype) if
    it cannot be encoded.
    """

    if isinstance(dp, bool) or not isinstance(dp, int) or not 0 <= dp <= MAX_DP_ID:
        raise exc.InvalidDatapointId(f"Invalid dp: {dp!r}")

    return Frame(dp, datatype, encode_data(datatype, value, width=width), seqn=seqn)


def decode(frame: Frame) -> DpValueT:
    """Return the typed value of a frame."""
    return decode_data(frame.datatype, frame.data)
