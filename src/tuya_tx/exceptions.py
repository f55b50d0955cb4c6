#!/usr/bin/env python3
"""Tuya DP - exceptions within the codec/protocol/transport layer."""

from __future__ import annotations


class _TuyaBaseException(Exception):
    """Base class for all tuya_tx exceptions."""

    pass


class TuyaException(_TuyaBaseException):
    """Base class for all tuya_tx exceptions."""

    HINT: None | str = None

    def __init__(self, *args: object):
        super().__init__(*args)
        self.message: str | None = args[0] if args else None  # type: ignore[assignment]

    def __str__(self) -> str:
        if self.message and self.HINT:
            return f"{self.message} (hint: {self.HINT})"
        if self.message:
            return self.message
        if self.HINT:
            return f"Hint: {self.HINT}"
        return ""


class _TuyaLowerError(TuyaException):
    """A failure in the lower layer (codec, frame, sender, transport)."""


########################################################################################
# Errors when encoding/decoding datapoints: these are never retried


class CodecError(_TuyaLowerError):
    """The datapoint cannot be encoded or decoded."""


class InvalidDatapointId(CodecError):
    """The datapoint id is not in the range 0..255."""

    HINT = "datapoint ids are a single byte"


class InvalidPayload(CodecError):
    """The value (or data) is inconsistent with its datatype."""


class UnsupportedDatatype(CodecError):
    """The datatype tag is not one of raw, bool, value, string, enum or bitmap."""


########################################################################################
# Errors when receiving frames


class PacketInvalid(_TuyaLowerError):
    """The received frame is corrupt/not internally consistent."""


########################################################################################
# Errors at/below the protocol/transport layer


class ProtocolError(_TuyaLowerError):
    """An error occurred when sending a command."""


class SendExhausted(ProtocolError):
    """The command was not acknowledged, despite all retries."""

    def __init__(self, dp: int, last_error: BaseException | None = None) -> None:
        super().__init__(
            f"Failed to send dp {dp} after all attempts"
            + (f": {last_error}" if last_error else "")
        )
        self.dp = dp
        self.last_error = last_error


class TransportError(ProtocolError):
    """An error when sending frames (bytes) via the transport."""


class TransportUnavailable(TransportError):
    """The transport was not available (e.g. the node is offline)."""

    HINT = "check the device is online"
