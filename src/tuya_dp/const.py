#!/usr/bin/env python3
"""Tuya DP - the device (upper) layer of a Tuya datapoint protocol core."""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType
from typing import Final

# used by the reconciler...
DUPLICATE_EPSILON: Final[float] = 0.001  # for ratios (0..1), e.g. fan speed
LEVEL_SCALE: Final[int] = 1000  # device level 0..1000 <-> ratio 0..1

# used by the fan...
MIN_FAN_SPEED: Final[float] = 0.1  # used when turned on from a speed of 0
DEBOUNCE_COLD_START: Final[float] = 1.5  # seconds, motor startup (from stopped)
DEBOUNCE_STEADY_STATE: Final[float] = 0.8  # seconds, adjusting while running
FAN_SETTLE_DELAY: Final[float] = 0.2  # seconds, between on/off & speed writes

# used by the siren...
BATTERY_LOW_THRESHOLD: Final[int] = 20  # %
SIREN_ARM_DELAY: Final[float] = 0.2  # seconds, after configuring, before the alarm
SIREN_BEEP_RESTORE_DELAY: Final[float] = 3.0  # seconds
SIREN_BEEP_DURATION: Final[int] = 2  # seconds
SIREN_BEEP_MELODY: Final[int] = 1  # Fur Elise
SIREN_BEEP_VOLUME: Final[int] = 1  # medium
SIREN_DEFAULT_DURATION: Final[int] = 10  # seconds
SIREN_DEFAULT_MELODY: Final[int] = 5  # Turkish March
SIREN_DEFAULT_VOLUME: Final[int] = 2  # high

# used by the recovery tracker...
DEFAULT_RECOVERY_TIMEOUT: Final[float] = 10.0  # seconds
DEFAULT_RECOVERY_START_DELAY: Final[float] = 1.0  # seconds

SZ_ALARM: Final = "alarm"
SZ_BACKLIGHT: Final = "backlight"
SZ_BATTERY: Final = "battery"
SZ_BATTERY_LOW: Final = "battery_low"
SZ_CLASS: Final = "class"
SZ_CASCADES: Final = "cascades"
SZ_DATATYPE: Final = "datatype"
SZ_DURATION: Final = "duration"
SZ_EXPECTED_DPS: Final = "expected_dps"
SZ_GANGS: Final = "gangs"
SZ_IS_PLAYING: Final = "is_playing"
SZ_LEVEL: Final = "level"
SZ_LEVEL_MAX: Final = "level_max"
SZ_LEVEL_MIN: Final = "level_min"
SZ_MELODY: Final = "melody"
SZ_MIN_COUNT: Final = "min_count"
SZ_NAME: Final = "name"
SZ_NODE_DPS: Final = "node_dps"
SZ_ONLINE_DELAY: Final = "online_delay"
SZ_ON_OFF: Final = "on_off"
SZ_POLICY: Final = "policy"
SZ_POWER_ON: Final = "power_on"
SZ_PRODUCT: Final = "product"
SZ_REASON: Final = "reason"
SZ_RECOVERY: Final = "recovery"
SZ_START_DELAY: Final = "start_delay"
SZ_STATE: Final = "state"
SZ_TIMEOUT: Final = "timeout"
SZ_VOLUME: Final = "volume"

SZ_COLD_START_DELAY: Final = "cold_start_delay"
SZ_STEADY_STATE_DELAY: Final = "steady_state_delay"
SZ_DEBOUNCE: Final = "debounce"
SZ_DUPLICATE_EPSILON: Final = "duplicate_epsilon"
SZ_BATTERY_LOW_THRESHOLD: Final = "battery_low_threshold"


class DpRole(StrEnum):
    """The role of a datapoint within a gang (or a node)."""

    ON_OFF = SZ_ON_OFF
    LEVEL = SZ_LEVEL
    LEVEL_MIN = SZ_LEVEL_MIN
    LEVEL_MAX = SZ_LEVEL_MAX
    POWER_ON = SZ_POWER_ON
    BACKLIGHT = SZ_BACKLIGHT
    VOLUME = SZ_VOLUME
    DURATION = SZ_DURATION
    ALARM = SZ_ALARM
    BATTERY = SZ_BATTERY
    MELODY = SZ_MELODY


class DevClass(StrEnum):
    """The device classes, by slug."""

    SWITCH = "switch"
    FAN = "fan"
    SIREN = "siren"


class CompletionPolicy(StrEnum):
    """How a recovery window decides that the state is synchronized."""

    FULL_COVERAGE = "full_coverage"  # all the expected dps were received
    MIN_COUNT = "min_count"  # at least N of the expected dps were received


class RecoveryState(StrEnum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETE = "complete"


class SirenStopReason(StrEnum):
    MANUAL = "manual"  # stopped by a write from this host
    AUTO = "auto"  # stopped by the device, after its duration


POWER_ON_MAP: Final = MappingProxyType({0: "off", 1: "on", 2: "memory"})
BACKLIGHT_MAP: Final = MappingProxyType({0: "off", 1: "normal", 2: "inverted"})
VOLUME_MAP: Final = MappingProxyType({0: "low", 1: "medium", 2: "high"})
MELODY_MAP: Final = MappingProxyType(
    {
        0: "Doorbell Chime",
        1: "Fur Elise",
        2: "Westminster Chimes",
        3: "Fast double door bell",
        4: "William Tell Overture",
        5: "Turkish March",
        6: "Safe/Security Alarm",
        7: "Chemical Spill Alert",
        8: "Piercing Alarm Clock",
        9: "Smoke Alarm",
        10: "Dog Barking",
        11: "Police Siren",
        12: "Doorbell Chime (reverb)",
        13: "Mechanical Telephone",
        14: "Fire/Ambulance",
        15: "3/1 Elevator",
        16: "Buzzing Alarm Clock",
        17: "School Bell",
    }
)

ENUM_MAPS: Final = MappingProxyType(
    {
        DpRole.POWER_ON: POWER_ON_MAP,
        DpRole.BACKLIGHT: BACKLIGHT_MAP,
        DpRole.VOLUME: VOLUME_MAP,
        DpRole.MELODY: MELODY_MAP,
    }
)


class SirenEvent(StrEnum):
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"
