#!/usr/bin/env python3
"""Tuya DP - a Tuya datapoint protocol core.

Provide the base class for commands (constructed/sent frames) and packets.
"""

from __future__ import annotations

import logging
from typing import Self

from . import exceptions as exc
from .const import (
    BITMAP_LENS,
    FRAME_HEADER_LEN,
    MAX_DATA_LEN,
    MAX_DP_ID,
    VALUE_LEN,
    DataType,
)

_LOGGER = logging.getLogger(__name__)


_FIXED_LENS: dict[DataType, tuple[int, ...]] = {
    DataType.BOOL: (1,),
    DataType.ENUM: (1,),
    DataType.VALUE: (VALUE_LEN,),
    DataType.BITMAP: BITMAP_LENS,
}


def datatype_from_tag(tag: int) -> DataType:
    """Return the DataType of a tag, or raise UnsupportedDatatype."""
    try:
        return DataType(tag)
    except ValueError as err:
        raise exc.UnsupportedDatatype(f"Unsupported datatype: {tag!r}") from err


class Frame:
    """The Frame class - used as a base by the Command and Packet classes.

    `00 05 01 01 0001 01` (status, transid, dp, datatype, length, data)
    """

    def __init__(
        self,
        dp: int,
        datatype: DataType | int,
        data: bytes,
        *,
        seqn: int = 0,
        status: int = 0,
    ) -> None:
        """Create a frame from its fields.

        Will raise a CodecError if it is invalid.
        """

        self.status: int = status
        self.seqn: int = seqn
        self.dp: int = dp
        self.datatype: DataType = datatype_from_tag(datatype)
        self.data: bytes = bytes(data)

        self._validate()

    def _validate(self) -> None:
        """Validate the frame: it may be a cmd or a (response) pkt.

        Raise a CodecError if it is not valid.
        """

        if not isinstance(self.dp, int) or not 0 <= self.dp <= MAX_DP_ID:
            raise exc.InvalidDatapointId(f"Bad frame: invalid dp: {self.dp!r}")

        for name in ("status", "seqn"):
            if not 0 <= (value := getattr(self, name)) <= 0xFF:
                raise exc.InvalidPayload(f"Bad frame: invalid {name}: {value!r}")

        if len(self.data) > MAX_DATA_LEN:
            raise exc.InvalidPayload(f"Bad frame: data too long: {len(self.data)}")

        if (lens := _FIXED_LENS.get(self.datatype)) and len(self.data) not in lens:
            raise exc.InvalidPayload(
                f"Bad frame: invalid length for {self.datatype.name}: {len(self.data)}"
            )

    @classmethod
    def from_bytes(cls, frame: bytes, **kwargs: object) -> Self:
        """Create a frame from its wire form.

        Will raise a CodecError if it is invalid.
        """

        if len(frame) < FRAME_HEADER_LEN:
            raise exc.InvalidPayload(f"Bad frame: too short: {frame.hex()}")

        length = int.from_bytes(frame[4:FRAME_HEADER_LEN], "big")
        data = frame[FRAME_HEADER_LEN:]
        if len(data) != length:
            raise exc.InvalidPayload(
                f"Bad frame: length mismatch: {length} is not len({data.hex()})"
            )

        return cls(
            frame[2],
            datatype_from_tag(frame[3]),
            data,
            seqn=frame[1],
            status=frame[0],
            **kwargs,  # type: ignore[arg-type]
        )

    def to_bytes(self) -> bytes:
        """Return the wire form of the frame."""
        return (
            bytes((self.status, self.seqn, self.dp, self.datatype))
            + self.length.to_bytes(2, "big")
            + self.data
        )

    @property
    def length(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        """Return a unambiguous string representation of this object."""
        return self.to_bytes().hex(" ")

    def __str__(self) -> str:
        """Return a brief readable string representation of this object."""
        return f"dp={self.dp:>3} {self.datatype.name:<6} {self.data.hex() or '-'}"

    def __eq__(self, other: object) -> bool:
        if not hasattr(other, "to_bytes"):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()  # type: ignore[no-any-return]

    def __hash__(self) -> int:
        return hash(self.to_bytes())
