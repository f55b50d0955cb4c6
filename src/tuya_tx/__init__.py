#!/usr/bin/env python3
"""Tuya DP - the codec/protocol layer of a Tuya datapoint protocol core."""

from __future__ import annotations

from .codec import DpValueT, decode, decode_data, encode, encode_data
from .command import Command
from .const import TUYA_CLUSTER_ID, DataType, Source, TuyaCommand
from .frame import Frame
from .logger import set_frame_logging
from .packet import FRAME_LOGGER, Packet
from .schemas import SCH_COMMS_PARAMS, SCH_FRAME_LOG, SZ_COMMS_PARAMS, SZ_FRAME_LOG
from .sender import ReliableSender
from .sequencer import TransactionSequencer
from .typing import PendingCommand, RetryParams, SendAttempt, TuyaTransportT
from .version import VERSION

__all__ = [
    "VERSION",
    #
    "FRAME_LOGGER",
    "SCH_COMMS_PARAMS",
    "SCH_FRAME_LOG",
    "SZ_COMMS_PARAMS",
    "SZ_FRAME_LOG",
    "TUYA_CLUSTER_ID",
    #
    "Command",
    "DataType",
    "DpValueT",
    "Frame",
    "Packet",
    "PendingCommand",
    "ReliableSender",
    "RetryParams",
    "SendAttempt",
    "Source",
    "TransactionSequencer",
    "TuyaCommand",
    "TuyaTransportT",
    #
    "decode",
    "decode_data",
    "encode",
    "encode_data",
    "set_frame_logging",
]
