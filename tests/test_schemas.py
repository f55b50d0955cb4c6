#!/usr/bin/env python3
"""Tuya DP - Test the schemas (products, nodes, comms params, frame log)."""

from copy import deepcopy
from typing import Any

import pytest
import voluptuous as vol

from tuya_dp import PRODUCTS, SCH_NODE_CONFIG, SCH_PRODUCT
from tuya_dp.const import CompletionPolicy, DevClass
from tuya_dp.device import FanNode, SirenNode, SwitchNode, best_node_class
from tuya_dp.exceptions import DeviceConfigInvalid
from tuya_tx import SCH_COMMS_PARAMS, SCH_FRAME_LOG

MIN_PRODUCT = {
    "class": "switch",
    "gangs": [{"on_off": 1}, {"on_off": 2}],
    "recovery": {"expected_dps": [1, 2]},
}


@pytest.mark.parametrize("slug", PRODUCTS)
def test_builtin_products(slug: str) -> None:
    product = SCH_PRODUCT(deepcopy(PRODUCTS[slug]))
    assert isinstance(product["class"], DevClass)


def test_product_defaults() -> None:
    product = SCH_PRODUCT(deepcopy(MIN_PRODUCT))

    assert product["node_dps"] == {}
    assert product["recovery"]["policy"] == CompletionPolicy.FULL_COVERAGE
    assert product["recovery"]["min_count"] is None
    assert product["recovery"]["timeout"] == 10.0
    assert product["recovery"]["start_delay"] == 1.0
    assert product["recovery"]["online_delay"] == 0.0


@pytest.mark.parametrize(
    "change",
    [
        {"gangs": [{"on_off": 1}, {"on_off": 1}]},  # dps are not unique
        {"gangs": [{"on_off": 1}, {}]},  # a gang has no dps
        {"gangs": [{"on_off": 256}]},  # not a dp
        {"gangs": [{"power_on": 14}]},  # a node-wide role
        {"gangs": [{"colour": 3}]},  # not a role
        {"class": "light"},
        {"recovery": {"expected_dps": [1, 9]}},  # not a known dp
        {"recovery": {"expected_dps": [1, 2], "policy": "min_count"}},
        {"recovery": {"expected_dps": []}},
    ],
)
def test_invalid_products(change: dict[str, Any]) -> None:
    with pytest.raises(vol.Invalid):
        SCH_PRODUCT(deepcopy(MIN_PRODUCT) | change)


def test_node_config() -> None:
    config = SCH_NODE_CONFIG({"product": "fan_3_gang"})

    assert config["name"] is None
    assert config["product"] == SCH_PRODUCT(deepcopy(PRODUCTS["fan_3_gang"]))
    assert config["comms_params"] == {"max_retries": 2, "base_delay": 0.3}
    assert config["debounce"] == {
        "cold_start_delay": 1.5,
        "steady_state_delay": 0.8,
    }
    assert config["duplicate_epsilon"] == 0.001
    assert config["battery_low_threshold"] == 20
    assert config["frame_log"] is None


def test_node_config_does_not_share_products() -> None:
    config = SCH_NODE_CONFIG({"product": "switch_4_gang"})
    config["product"]["gangs"].pop()

    assert len(PRODUCTS["switch_4_gang"]["gangs"]) == 4


@pytest.mark.parametrize(
    "config",
    [
        {},
        {"product": "toaster"},
        {"product": "siren", "battery_low_threshold": 101},
        {"product": "siren", "duplicate_epsilon": 0.5},
        {"product": "siren", "comms_params": {"max_retries": 0}},
        {"product": "siren", "comms_params": {"backoff": "exponential"}},
        {"product": "siren", "debounce": {"cold_start_delay": -1}},
        {"product": "siren", "colour": "red"},
    ],
)
def test_invalid_node_configs(config: dict[str, Any]) -> None:
    with pytest.raises(vol.Invalid):
        SCH_NODE_CONFIG(config)


def test_comms_params() -> None:
    assert SCH_COMMS_PARAMS({}) == {"max_retries": 2, "base_delay": 0.3}
    assert SCH_COMMS_PARAMS({"base_delay": 1}) == {"max_retries": 2, "base_delay": 1.0}


def test_frame_log() -> None:
    assert SCH_FRAME_LOG({"frame_log": "frames.log"}) == {
        "frame_log": {
            "file_name": "frames.log",
            "rotate_backups": 0,
            "rotate_bytes": None,
        }
    }
    assert SCH_FRAME_LOG({"frame_log": {"file_name": "frames.log"}}) == {
        "frame_log": {
            "file_name": "frames.log",
            "rotate_backups": 0,
            "rotate_bytes": None,
        }
    }
    assert SCH_FRAME_LOG({}) == {"frame_log": None}


@pytest.mark.parametrize(
    "product, klass",
    [
        ("fan_3_gang", FanNode),
        ("switch_4_gang", SwitchNode),
        ("switch_6_gang", SwitchNode),
        ("siren", SirenNode),
        (MIN_PRODUCT, SwitchNode),
    ],
)
def test_best_node_class(product: str | dict[str, Any], klass: type) -> None:
    assert best_node_class(product=product) is klass


@pytest.mark.parametrize("schema", [{}, {"product": "toaster"}, {"product": 42}])
def test_best_node_class_invalid(schema: dict[str, Any]) -> None:
    with pytest.raises(DeviceConfigInvalid):
        best_node_class(**schema)
