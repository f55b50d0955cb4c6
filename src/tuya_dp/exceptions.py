#!/usr/bin/env python3
"""Tuya DP - exceptions above the codec/protocol/transport layer."""

from __future__ import annotations

from typing import Any

from tuya_tx.exceptions import (
    CodecError as CodecError,
    PacketInvalid as PacketInvalid,
    ProtocolError as ProtocolError,
    SendExhausted as SendExhausted,
    TransportUnavailable as TransportUnavailable,
    TuyaException as TuyaException,
)


class _TuyaUpperError(TuyaException):
    """A failure in the upper layer (state, recovery, devices, configuration)."""


########################################################################################
# Errors above the protocol/transport layer, incl. state reconciliation


class UnknownEnumValue(_TuyaUpperError):
    """The reported value has no meaning for its datapoint (the state is retained)."""

    def __init__(self, dp: int, value: Any, reason: str = "unknown value") -> None:
        super().__init__(f"dp {dp}: {reason}: {value!r}")
        self.dp = dp
        self.value = value


########################################################################################
# Errors above the protocol/transport layer, incl. settings & schema


class SettingsInvalid(_TuyaUpperError):
    """The requested settings are not consistent (e.g. min speed is above max)."""


class DeviceConfigInvalid(_TuyaUpperError):
    """The device configuration (e.g. its product table) is not valid."""
