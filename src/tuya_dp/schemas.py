#!/usr/bin/env python3
"""Tuya DP - a Tuya datapoint protocol core.

Schema processor for the device (upper) layer.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Final

import voluptuous as vol

from tuya_tx.schemas import (
    SCH_COMMS_PARAMS,
    SZ_COMMS_PARAMS,
    sch_frame_log_dict_factory,
)

from .const import (
    BATTERY_LOW_THRESHOLD,
    DEBOUNCE_COLD_START,
    DEBOUNCE_STEADY_STATE,
    DEFAULT_RECOVERY_START_DELAY,
    DEFAULT_RECOVERY_TIMEOUT,
    DUPLICATE_EPSILON,
    SZ_BACKLIGHT,
    SZ_BATTERY_LOW_THRESHOLD,
    SZ_CLASS,
    SZ_COLD_START_DELAY,
    SZ_DEBOUNCE,
    SZ_DUPLICATE_EPSILON,
    SZ_EXPECTED_DPS,
    SZ_GANGS,
    SZ_MIN_COUNT,
    SZ_NAME,
    SZ_NODE_DPS,
    SZ_ONLINE_DELAY,
    SZ_POLICY,
    SZ_POWER_ON,
    SZ_PRODUCT,
    SZ_RECOVERY,
    SZ_START_DELAY,
    SZ_STEADY_STATE_DELAY,
    SZ_TIMEOUT,
    CompletionPolicy,
    DevClass,
    DpRole,
)
from .products import PRODUCTS

_LOGGER = logging.getLogger(__name__)


SCH_DP_ID = vol.All(int, vol.Range(min=0, max=255))
SCH_DELAY = vol.All(vol.Coerce(float), vol.Range(min=0.0, max=60.0))

#
# 1/3: Product (datapoint table) configuration
SCH_GANG = vol.All(
    vol.Schema(
        {
            vol.Optional(str(r)): SCH_DP_ID
            for r in DpRole
            if r not in (DpRole.POWER_ON, DpRole.BACKLIGHT)
        },
        extra=vol.PREVENT_EXTRA,
    ),
    vol.Length(min=1),
)

SCH_NODE_DPS = vol.Schema(
    {
        vol.Optional(SZ_POWER_ON): SCH_DP_ID,
        vol.Optional(SZ_BACKLIGHT): SCH_DP_ID,
    },
    extra=vol.PREVENT_EXTRA,
)

SCH_RECOVERY = vol.Schema(
    {
        vol.Required(SZ_EXPECTED_DPS): vol.All([SCH_DP_ID], vol.Length(min=1)),
        vol.Required(
            SZ_POLICY, default=CompletionPolicy.FULL_COVERAGE
        ): vol.Coerce(CompletionPolicy),
        vol.Optional(SZ_MIN_COUNT, default=None): vol.Any(
            None, vol.All(int, vol.Range(min=1))
        ),
        vol.Required(SZ_TIMEOUT, default=DEFAULT_RECOVERY_TIMEOUT): vol.All(
            vol.Coerce(float), vol.Range(min=0.1, max=120.0)
        ),
        vol.Required(SZ_START_DELAY, default=DEFAULT_RECOVERY_START_DELAY): SCH_DELAY,
        vol.Required(SZ_ONLINE_DELAY, default=0.0): SCH_DELAY,
    },
    extra=vol.PREVENT_EXTRA,
)


def _check_product(product: dict[str, Any]) -> dict[str, Any]:
    """Check the dps of a product are unique, and its recovery policy is complete."""

    dps = [dp for g in product[SZ_GANGS] for dp in g.values()]
    dps += list(product[SZ_NODE_DPS].values())
    if len(dps) != len(set(dps)):
        raise vol.Invalid(f"dps are not unique: {sorted(dps)}")

    recovery = product[SZ_RECOVERY]
    if recovery[SZ_POLICY] == CompletionPolicy.MIN_COUNT and not recovery[SZ_MIN_COUNT]:
        raise vol.Invalid("a min_count policy requires a min_count")
    if not set(recovery[SZ_EXPECTED_DPS]) <= set(dps):
        raise vol.Invalid(f"expected dps are not known: {recovery[SZ_EXPECTED_DPS]}")

    return product


SCH_PRODUCT = vol.All(
    vol.Schema(
        {
            vol.Required(SZ_CLASS): vol.Coerce(DevClass),
            vol.Required(SZ_GANGS): vol.All([SCH_GANG], vol.Length(min=1)),
            vol.Optional(SZ_NODE_DPS, default={}): SCH_NODE_DPS,
            vol.Required(SZ_RECOVERY): SCH_RECOVERY,
        },
        extra=vol.PREVENT_EXTRA,
    ),
    _check_product,
)


def NormaliseProduct(node_value: str | dict[str, Any]) -> dict[str, Any]:
    """Convert a product slug into (a copy of) its datapoint table."""

    if isinstance(node_value, str):
        if node_value not in PRODUCTS:
            raise vol.Invalid(f"unknown product: {node_value}")
        return deepcopy(PRODUCTS[node_value])
    return node_value


#
# 2/3: Debounce configuration
SCH_DEBOUNCE = vol.Schema(
    {
        vol.Required(SZ_COLD_START_DELAY, default=DEBOUNCE_COLD_START): SCH_DELAY,
        vol.Required(SZ_STEADY_STATE_DELAY, default=DEBOUNCE_STEADY_STATE): SCH_DELAY,
    },
    extra=vol.PREVENT_EXTRA,
)

#
# 3/3: Node configuration
SZ_NODE_CONFIG: Final = "node_config"

SCH_NODE_CONFIG = vol.Schema(
    {
        vol.Optional(SZ_NAME, default=None): vol.Any(None, str),
        vol.Required(SZ_PRODUCT): vol.All(NormaliseProduct, SCH_PRODUCT),
        vol.Optional(SZ_COMMS_PARAMS, default={}): SCH_COMMS_PARAMS,
        vol.Optional(SZ_DEBOUNCE, default={}): SCH_DEBOUNCE,
        vol.Optional(SZ_DUPLICATE_EPSILON, default=DUPLICATE_EPSILON): vol.All(
            vol.Coerce(float), vol.Range(min=0.0, max=0.1)
        ),
        vol.Optional(
            SZ_BATTERY_LOW_THRESHOLD, default=BATTERY_LOW_THRESHOLD
        ): vol.All(int, vol.Range(min=0, max=100)),
    },
    extra=vol.PREVENT_EXTRA,
).extend(sch_frame_log_dict_factory(default_backups=0))
