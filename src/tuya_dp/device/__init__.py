#!/usr/bin/env python3
"""Tuya DP - Nodes (e.g. switches, fans, sirens)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import voluptuous as vol

from ..const import SZ_CLASS, SZ_PRODUCT
from ..exceptions import DeviceConfigInvalid
from ..schemas import NormaliseProduct

from .base import (  # noqa: F401, isort: skip, pylint: disable=unused-import
    Gang,
    Node,
)
from .fan import (  # noqa: F401, isort: skip, pylint: disable=unused-import
    FAN_CLASS_BY_SLUG as _FAN_CLASS_BY_SLUG,
    FanGang,
    FanNode,
)
from .siren import (  # noqa: F401, isort: skip, pylint: disable=unused-import
    SIREN_CLASS_BY_SLUG as _SIREN_CLASS_BY_SLUG,
    SirenNode,
)
from .switch import (  # noqa: F401, isort: skip, pylint: disable=unused-import
    SWITCH_CLASS_BY_SLUG as _SWITCH_CLASS_BY_SLUG,
    SwitchGang,
    SwitchNode,
)

if TYPE_CHECKING:
    from tuya_tx import TuyaTransportT

_LOGGER = logging.getLogger(__name__)


NODE_CLASS_BY_SLUG = _FAN_CLASS_BY_SLUG | _SIREN_CLASS_BY_SLUG | _SWITCH_CLASS_BY_SLUG


def best_node_class(**schema: Any) -> type[Node]:
    """Return the node class for a configuration, by the class of its product."""

    try:
        product = NormaliseProduct(schema[SZ_PRODUCT])
        slug = product[SZ_CLASS]
    except (KeyError, TypeError) as err:
        raise DeviceConfigInvalid(f"No product class in the schema: {schema}") from err
    except vol.Invalid as err:
        raise DeviceConfigInvalid(f"Invalid product: {err}") from err

    try:
        return NODE_CLASS_BY_SLUG[slug]
    except KeyError as err:
        raise DeviceConfigInvalid(f"Unknown node class: {slug}") from err


def node_factory(transport: TuyaTransportT, **schema: Any) -> Node:
    """Return a node for a given configuration (its product may be a slug)."""

    cls = best_node_class(**schema)
    _LOGGER.debug("Using the %s class for: %s", cls.__name__, schema.get(SZ_PRODUCT))
    return cls.create_from_schema(transport, **schema)
