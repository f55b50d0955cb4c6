#!/usr/bin/env python3
"""Tuya DP - the datapoint tables of the supported products.

Each gang maps a role to a dp. Node-wide dps (e.g. power-on behaviour) are owned by the
main (first) gang.
"""

from __future__ import annotations

from typing import Any, Final

from .const import (
    SZ_ALARM,
    SZ_BACKLIGHT,
    SZ_BATTERY,
    SZ_CLASS,
    SZ_DURATION,
    SZ_EXPECTED_DPS,
    SZ_GANGS,
    SZ_LEVEL,
    SZ_LEVEL_MAX,
    SZ_LEVEL_MIN,
    SZ_MELODY,
    SZ_MIN_COUNT,
    SZ_NODE_DPS,
    SZ_ON_OFF,
    SZ_ONLINE_DELAY,
    SZ_POLICY,
    SZ_POWER_ON,
    SZ_RECOVERY,
    SZ_START_DELAY,
    SZ_TIMEOUT,
    SZ_VOLUME,
    CompletionPolicy,
    DevClass,
)

SZ_FAN_3_GANG: Final = "fan_3_gang"  # MOES 3-gang fan controller/dimmer
SZ_SIREN: Final = "siren"  # NEO siren (with battery)
SZ_SWITCH_4_GANG: Final = "switch_4_gang"  # Zemismart 4-gang wall switch
SZ_SWITCH_6_GANG: Final = "switch_6_gang"  # Zemismart 6-gang wall switch


PRODUCTS: Final[dict[str, dict[str, Any]]] = {
    SZ_FAN_3_GANG: {
        SZ_CLASS: DevClass.FAN,
        SZ_GANGS: [
            {SZ_ON_OFF: 1, SZ_LEVEL: 2, SZ_LEVEL_MIN: 3, SZ_LEVEL_MAX: 5},
            {SZ_ON_OFF: 7, SZ_LEVEL: 8, SZ_LEVEL_MIN: 9, SZ_LEVEL_MAX: 11},
            {SZ_ON_OFF: 15, SZ_LEVEL: 16, SZ_LEVEL_MIN: 17, SZ_LEVEL_MAX: 19},
        ],
        SZ_NODE_DPS: {SZ_POWER_ON: 14, SZ_BACKLIGHT: 21},
        SZ_RECOVERY: {  # at least 2 gangs worth of on/off & speed dps
            SZ_EXPECTED_DPS: [1, 2, 7, 8, 15, 16],
            SZ_POLICY: CompletionPolicy.MIN_COUNT,
            SZ_MIN_COUNT: 4,
            SZ_TIMEOUT: 8.0,
            SZ_START_DELAY: 2.0,
            SZ_ONLINE_DELAY: 1.0,
        },
    },
    SZ_SWITCH_4_GANG: {
        SZ_CLASS: DevClass.SWITCH,
        SZ_GANGS: [{SZ_ON_OFF: dp} for dp in (1, 2, 3, 4)],
        SZ_NODE_DPS: {SZ_POWER_ON: 14},
        SZ_RECOVERY: {
            SZ_EXPECTED_DPS: [1, 2, 3, 4],
            SZ_POLICY: CompletionPolicy.FULL_COVERAGE,
            SZ_TIMEOUT: 10.0,
            SZ_START_DELAY: 1.0,
            SZ_ONLINE_DELAY: 0.0,
        },
    },
    SZ_SWITCH_6_GANG: {
        SZ_CLASS: DevClass.SWITCH,
        SZ_GANGS: [{SZ_ON_OFF: dp} for dp in (1, 2, 3, 4, 5, 6)],
        SZ_NODE_DPS: {},
        SZ_RECOVERY: {
            SZ_EXPECTED_DPS: [1, 2, 3, 4, 5, 6],
            SZ_POLICY: CompletionPolicy.FULL_COVERAGE,
            SZ_TIMEOUT: 10.0,
            SZ_START_DELAY: 1.0,
            SZ_ONLINE_DELAY: 0.0,
        },
    },
    SZ_SIREN: {
        SZ_CLASS: DevClass.SIREN,
        SZ_GANGS: [
            {
                SZ_VOLUME: 5,
                SZ_DURATION: 7,
                SZ_ALARM: 13,
                SZ_BATTERY: 15,
                SZ_MELODY: 21,
            }
        ],
        SZ_NODE_DPS: {},
        SZ_RECOVERY: {
            SZ_EXPECTED_DPS: [13],
            SZ_POLICY: CompletionPolicy.FULL_COVERAGE,
            SZ_TIMEOUT: 10.0,
            SZ_START_DELAY: 1.0,
            SZ_ONLINE_DELAY: 0.0,
        },
    },
}
