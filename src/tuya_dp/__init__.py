#!/usr/bin/env python3
"""Tuya DP - the device layer of a Tuya datapoint protocol core.

Reconcile the state of nodes (and their gangs) with the datapoints they report, track
their recovery after a (re)connect, and debounce the writes made to them.
"""

from __future__ import annotations

from tuya_tx import VERSION

from .const import (
    BATTERY_LOW_THRESHOLD,
    DUPLICATE_EPSILON,
    CompletionPolicy,
    DevClass,
    DpRole,
    RecoveryState,
    SirenEvent,
    SirenStopReason,
)
from .debounce import DebounceGate, DebounceTimer, select_delay
from .device import (
    FanGang,
    FanNode,
    Gang,
    Node,
    SirenNode,
    SwitchGang,
    SwitchNode,
    node_factory,
)
from .products import PRODUCTS
from .reconciler import (
    CascadeRule,
    DatapointSpec,
    DeviceState,
    StateReconciler,
    Transition,
)
from .recovery import RecoveryResult, RecoverySession, RecoveryTracker
from .schemas import SCH_NODE_CONFIG, SCH_PRODUCT

__all__ = [
    "VERSION",
    #
    "BATTERY_LOW_THRESHOLD",
    "DUPLICATE_EPSILON",
    "PRODUCTS",
    "SCH_NODE_CONFIG",
    "SCH_PRODUCT",
    #
    "CascadeRule",
    "CompletionPolicy",
    "DatapointSpec",
    "DebounceGate",
    "DebounceTimer",
    "DevClass",
    "DeviceState",
    "DpRole",
    "FanGang",
    "FanNode",
    "Gang",
    "Node",
    "RecoveryResult",
    "RecoverySession",
    "RecoveryState",
    "RecoveryTracker",
    "SirenEvent",
    "SirenNode",
    "SirenStopReason",
    "StateReconciler",
    "SwitchGang",
    "SwitchNode",
    "Transition",
    #
    "node_factory",
    "select_delay",
]
