#!/usr/bin/env python3
"""Fixtures for testing."""

import asyncio
import logging
from typing import Any, Final

import pytest

from tuya_dp import FanNode, SirenNode, SwitchNode, node_factory
from tuya_tx import Command

_LOGGER = logging.getLogger(__name__)

# fast retries, so that failing sends don't slow the tests
FAST_COMMS_PARAMS: Final = {"max_retries": 2, "base_delay": 0.01}
FAST_DEBOUNCE: Final = {"cold_start_delay": 0.05, "steady_state_delay": 0.02}


class MockTransport:
    """A transport that records the frames sent to it (the frames are always acked).

    Set `available` to False to take the node offline, `always_fail` to an exception
    (or False) to fail every send, or append exceptions to `failures` to fail the next
    few sends.
    """

    def __init__(self) -> None:
        self.available = True
        self.always_fail: BaseException | bool | None = None
        self.failures: list[BaseException | bool] = []
        self.delay: float = 0

        self.frames: list[Command] = []
        self.max_in_flight = 0
        self._in_flight = 0

    def is_available(self) -> bool:
        return self.available

    async def send_frame(self, cmd: Command) -> Any:
        self.frames.append(cmd)

        self._in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self._in_flight -= 1

        if self.always_fail is not None:
            result = self.always_fail
        elif self.failures:
            result = self.failures.pop(0)
        else:
            return True

        if isinstance(result, BaseException):
            raise result
        return result

    @property
    def sent(self) -> list[tuple[int, Any]]:
        """Return the (dp, value) of each frame sent."""
        return [(f.dp, f.value) for f in self.frames]


@pytest.fixture()
def transport() -> MockTransport:
    return MockTransport()


@pytest.fixture()
def fan(transport: MockTransport) -> FanNode:
    return node_factory(  # type: ignore[return-value]
        transport,
        name="fan_01",
        product="fan_3_gang",
        comms_params=FAST_COMMS_PARAMS,
        debounce=FAST_DEBOUNCE,
    )


@pytest.fixture()
def switch(transport: MockTransport) -> SwitchNode:
    return node_factory(  # type: ignore[return-value]
        transport,
        name="switch_01",
        product="switch_4_gang",
        comms_params=FAST_COMMS_PARAMS,
    )


@pytest.fixture()
def siren(transport: MockTransport) -> SirenNode:
    return node_factory(  # type: ignore[return-value]
        transport,
        name="siren_01",
        product="siren",
        comms_params=FAST_COMMS_PARAMS,
    )
