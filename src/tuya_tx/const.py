#!/usr/bin/env python3
"""Tuya DP - a Tuya datapoint protocol core."""

from __future__ import annotations

from enum import IntEnum, StrEnum
from typing import Final

__dev_mode__ = False  # NOTE: this is const.py
DEV_MODE = __dev_mode__

# the Zigbee cluster used by Tuya MCU-based devices (manufacturer specific)
TUYA_CLUSTER_ID: Final[int] = 0xEF00  # 61184

# used by the reliable sender...
DEFAULT_MAX_RETRIES: Final[int] = 2  # total attempts, incl. the 1st send
DEFAULT_BASE_DELAY: Final[float] = 0.3  # seconds, backoff is base_delay * attempt
DEFAULT_BULK_GAP: Final[float] = 0.1  # seconds, between commands of a bulk send
DEFAULT_READY_TIMEOUT: Final[float] = 10.0  # seconds, waiting for the transport
DEFAULT_READY_POLL: Final[float] = 0.1  # seconds

BACKOFF_LINEAR: Final = "linear"

# used by the sequencer...
SEQN_MODULUS: Final[int] = 0x100

# frame layout: status(1) transid(1) dp(1) datatype(1) length(2, BE) data(length)
FRAME_HEADER_LEN: Final[int] = 6
MAX_DATA_LEN: Final[int] = 0xFFFF
MAX_DP_ID: Final[int] = 0xFF
MAX_VALUE: Final[int] = 0xFFFFFFFF

VALUE_LEN: Final[int] = 4
BITMAP_LENS: Final[tuple[int, ...]] = (1, 2, 4)
DEFAULT_BITMAP_LEN: Final[int] = 4

SZ_ATTEMPT: Final = "attempt"
SZ_BACKOFF: Final = "backoff"
SZ_BASE_DELAY: Final = "base_delay"
SZ_DATATYPE: Final = "datatype"
SZ_DP: Final = "dp"
SZ_IS_READY: Final = "is_ready"
SZ_MAX_RETRIES: Final = "max_retries"
SZ_PAYLOAD: Final = "payload"
SZ_RESULT: Final = "result"
SZ_SUCCESS: Final = "success"
SZ_ERROR: Final = "error"
SZ_TRANSACTION_ID: Final = "transaction_id"


class DataType(IntEnum):
    """The datatype tags of a datapoint, as carried in the frame."""

    RAW = 0x00
    BOOL = 0x01
    VALUE = 0x02
    STRING = 0x03
    ENUM = 0x04
    BITMAP = 0x05


class TuyaCommand(IntEnum):
    """The command ids of the Tuya cluster."""

    DATAPOINT = 0x00  # host -> device (a write)
    REPORTING = 0x01  # device -> host
    RESPONSE = 0x02  # device -> host, a reply to a write
    REPORTING_CONFIGURATION = 0x06  # device -> host


class Source(StrEnum):
    """The origin of a state change."""

    PHYSICAL = "physical"  # pressed/turned on the device itself
    APP = "app"  # a change caused by a write from this host (or its echo)
    UNKNOWN = "unknown"


SOURCE_BY_COMMAND: Final[dict[int, Source]] = {
    TuyaCommand.REPORTING: Source.PHYSICAL,
    TuyaCommand.REPORTING_CONFIGURATION: Source.PHYSICAL,
    TuyaCommand.RESPONSE: Source.APP,
}
