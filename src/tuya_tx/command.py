#!/usr/bin/env python3
"""Tuya DP - a Tuya datapoint protocol core.

Construct a command (a frame that is to be sent).
"""

from __future__ import annotations

import logging
from typing import Any, Self

from .codec import DpValueT, decode, encode
from .const import DataType
from .frame import Frame

_LOGGER = logging.getLogger(__name__)


class Command(Frame):
    """The Command class (frames to be sent).

    The transaction id (seqn) of a command is assigned only when it is sent, each
    attempt having its own id.
    """

    def __str__(self) -> str:
        """Return a brief readable string representation of this object."""
        return f"{super().__str__()} (seqn={self.seqn:03})"

    @property
    def value(self) -> DpValueT:
        """Return the typed value of the command."""
        return decode(self)

    def with_seqn(self, seqn: int) -> Self:
        """Return a copy of this command with a (new) transaction id."""
        return self.__class__(self.dp, self.datatype, self.data, seqn=seqn)

    @classmethod
    def from_value(
        cls,
        dp: int,
        datatype: DataType | int,
        value: Any,
        *,
        width: int | None = None,
    ) -> Self:
        """Create a command from a typed value.

        Will raise a CodecError if the value cannot be encoded.
        """
        frame = encode(dp, datatype, value, width=width)
        return cls(frame.dp, frame.datatype, frame.data)

    @classmethod  # constructor for bool
    def put_bool(cls, dp: int, value: bool) -> Self:
        """Constructor to set a boolean datapoint (e.g. on/off, alarm)."""
        return cls.from_value(dp, DataType.BOOL, value)

    @classmethod  # constructor for value
    def put_value(cls, dp: int, value: int) -> Self:
        """Constructor to set an integer datapoint (e.g. a level, a duration)."""
        return cls.from_value(dp, DataType.VALUE, value)

    @classmethod  # constructor for string
    def put_string(cls, dp: int, value: str) -> Self:
        return cls.from_value(dp, DataType.STRING, value)

    @classmethod  # constructor for enum
    def put_enum(cls, dp: int, value: int) -> Self:
        """Constructor to set an enum datapoint (e.g. power-on behaviour, volume)."""
        return cls.from_value(dp, DataType.ENUM, value)

    @classmethod  # constructor for raw
    def put_raw(cls, dp: int, value: bytes) -> Self:
        return cls.from_value(dp, DataType.RAW, value)

    @classmethod  # constructor for bitmap
    def put_bitmap(cls, dp: int, value: int, width: int | None = None) -> Self:
        return cls.from_value(dp, DataType.BITMAP, value, width=width)
