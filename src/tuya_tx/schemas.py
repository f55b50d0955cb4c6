#!/usr/bin/env python3
"""Tuya DP - a Tuya datapoint protocol core.

Schema processor for protocol (lower) layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Final, TypedDict

import voluptuous as vol

from .const import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_RETRIES,
    SZ_BASE_DELAY,
    SZ_MAX_RETRIES,
)

_LOGGER = logging.getLogger(__name__)


#
# 1/2: Comms (retry) configuration
SZ_COMMS_PARAMS: Final = "comms_params"

SCH_COMMS_PARAMS = vol.Schema(
    {
        vol.Required(SZ_MAX_RETRIES, default=DEFAULT_MAX_RETRIES): vol.All(
            int, vol.Range(min=1, max=10)
        ),
        vol.Required(SZ_BASE_DELAY, default=DEFAULT_BASE_DELAY): vol.All(
            vol.Coerce(float), vol.Range(min=0.0, max=10.0)
        ),
    },
    extra=vol.PREVENT_EXTRA,
)


#
# 2/2: Frame log configuration
SZ_FILE_NAME: Final = "file_name"
SZ_FRAME_LOG: Final = "frame_log"
SZ_ROTATE_BACKUPS: Final = "rotate_backups"
SZ_ROTATE_BYTES: Final = "rotate_bytes"


class FrameLogConfigT(TypedDict):
    file_name: str
    rotate_backups: int
    rotate_bytes: int | None


def sch_frame_log_dict_factory(
    default_backups: int = 0,
) -> dict[vol.Required, vol.Any]:
    """Return a frame log dict with a configurable default rotation policy.

    usage:

    SCH_FRAME_LOG_7 = vol.Schema(
        sch_frame_log_dict_factory(default_backups=7), extra=vol.PREVENT_EXTRA
    )
    """

    SCH_FRAME_LOG_CONFIG = vol.Schema(
        {
            vol.Optional(SZ_ROTATE_BACKUPS, default=default_backups): vol.Any(
                None, int
            ),
            vol.Optional(SZ_ROTATE_BYTES, default=None): vol.Any(None, int),
        },
        extra=vol.PREVENT_EXTRA,
    )

    SCH_FRAME_LOG_NAME = str

    def NormaliseFrameLog(rotate_backups: int = 0) -> Callable[..., Any]:
        def normalise_frame_log(node_value: str | FrameLogConfigT) -> FrameLogConfigT:
            if isinstance(node_value, str):
                return {
                    SZ_FILE_NAME: node_value,
                    SZ_ROTATE_BACKUPS: rotate_backups,
                    SZ_ROTATE_BYTES: None,
                }
            return node_value

        return normalise_frame_log

    return {  # SCH_FRAME_LOG_DICT
        vol.Required(SZ_FRAME_LOG, default=None): vol.Any(
            None,
            vol.All(
                SCH_FRAME_LOG_NAME,
                NormaliseFrameLog(rotate_backups=default_backups),
            ),
            SCH_FRAME_LOG_CONFIG.extend(
                {vol.Required(SZ_FILE_NAME): SCH_FRAME_LOG_NAME}
            ),
        )
    }


SCH_FRAME_LOG = vol.Schema(sch_frame_log_dict_factory(), extra=vol.PREVENT_EXTRA)
