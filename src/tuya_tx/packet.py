#!/usr/bin/env python3
"""Tuya DP - a Tuya datapoint protocol core.

Decode/process a packet (a frame that was received).
"""

from __future__ import annotations

import logging
from datetime import datetime as dt
from typing import Any, Self

from . import exceptions as exc
from .codec import DpValueT, decode
from .const import SOURCE_BY_COMMAND, DataType, Source, TuyaCommand
from .frame import Frame

_LOGGER = logging.getLogger(__name__)

FRAME_LOGGER = logging.getLogger(f"{__package__}.frame_log")


class Packet(Frame):
    """The Packet class (frames that were received); will trap/log invalid frames.

    They have a datetime (when received), the command id by which they arrived, and a
    source (a report initiated by the device itself, or a response to a write).
    """

    def __init__(
        self,
        dp: int,
        datatype: DataType | int,
        data: bytes,
        *,
        dtm: dt,
        command: TuyaCommand | int,
        seqn: int = 0,
        status: int = 0,
        comment: str = "",
    ) -> None:
        """Create a packet from its fields.

        Will raise PacketInvalid if it is invalid.
        """

        self._dtm = dtm
        self.comment = comment

        try:
            self._validate_command(command)
            super().__init__(dp, datatype, data, seqn=seqn, status=status)
            self._value: DpValueT = decode(self)

        except (exc.CodecError, exc.PacketInvalid) as err:
            FRAME_LOGGER.warning(
                "%s",
                err,
                extra={"dtm": dtm, "direction": "<<<", "frame": f"dp={dp!r}"},
            )
            if isinstance(err, exc.PacketInvalid):
                raise
            raise exc.PacketInvalid(f"Bad packet: {err}") from err

        FRAME_LOGGER.info("", extra=self._log_extra())  # the frame log line

    def _validate_command(self, command: TuyaCommand | int) -> None:
        """Set the command id and source, or raise PacketInvalid if not inbound."""

        try:
            self.command = TuyaCommand(command)
            self.source: Source = SOURCE_BY_COMMAND[self.command]
        except (KeyError, ValueError) as err:
            raise exc.PacketInvalid(
                f"Bad packet: not an inbound command: {command!r}"
            ) from err

    def _log_extra(self, **kwargs: Any) -> dict[str, Any]:
        return {
            "dtm": self._dtm,
            "direction": "<<<",
            "frame": f"{self.source:<8} {self!r}",
            "comment": self.comment,
        } | kwargs

    def __str__(self) -> str:
        """Return a brief readable string representation of this object."""
        return f"{super().__str__()} ({self.source}, seqn={self.seqn:03})"

    @property
    def dtm(self) -> dt:
        return self._dtm

    @property
    def value(self) -> DpValueT:
        """Return the typed value of the packet."""
        return self._value

    @classmethod
    def from_bytes(  # type: ignore[override]
        cls,
        frame: bytes,
        *,
        command: TuyaCommand | int,
        dtm: dt | None = None,
        **kwargs: Any,
    ) -> Self:
        """Create a packet from the wire form of a frame, as received.

        Will raise PacketInvalid (and log a warning) if it is invalid.
        """

        dtm = dtm or dt.now()
        try:
            return super().from_bytes(frame, dtm=dtm, command=command, **kwargs)
        except exc.CodecError as err:  # a corrupt header, the data is checked later
            FRAME_LOGGER.warning(
                "%s",
                err,
                extra={"dtm": dtm, "direction": "<<<", "frame": frame.hex(" ")},
            )
            raise exc.PacketInvalid(f"Bad packet: {err}") from err

    @classmethod
    def from_frame(
        cls,
        frame: Frame,
        *,
        command: TuyaCommand | int,
        dtm: dt | None = None,
        **kwargs: Any,
    ) -> Self:
        """Create a packet from an (already parsed) frame, as received."""
        return cls(
            frame.dp,
            frame.datatype,
            frame.data,
            dtm=dtm or dt.now(),
            command=command,
            seqn=frame.seqn,
            status=frame.status,
            **kwargs,
        )
