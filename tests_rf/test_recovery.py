#!/usr/bin/env python3
"""Tuya DP - Test the recovery window tracker."""

import asyncio
import random

import pytest

from tuya_dp import CompletionPolicy, RecoveryResult, RecoveryState, RecoveryTracker

pytestmark = pytest.mark.asyncio()


async def test_complete_by_coverage() -> None:
    tracker = RecoveryTracker(name="switch_01")
    results: list[RecoveryResult] = []
    tracker.add_handler(results.append)

    assert tracker.state == RecoveryState.IDLE

    tracker.open({1, 2, 7, 8}, timeout=1.0)
    assert tracker.state == RecoveryState.ACTIVE

    dps = [1, 2, 7, 8]
    random.shuffle(dps)
    for dp in dps:
        assert tracker.observe(dp) is True

    assert tracker.is_complete
    assert len(results) == 1
    assert results[0].received_dps == {1, 2, 7, 8}
    assert results[0].timed_out is False
    assert results[0].duration < 1.0
    assert tracker.last_result is results[0]

    result = await asyncio.wait_for(tracker.wait_for_completion(), 0.1)
    assert result is results[0]


async def test_complete_by_timeout() -> None:
    tracker = RecoveryTracker()
    tracker.open({1, 2, 3, 4}, timeout=0.05)

    tracker.observe(1)
    assert tracker.is_active

    result = await asyncio.wait_for(tracker.wait_for_completion(), 1.0)

    assert tracker.is_complete
    assert result.timed_out is True
    assert result.received_dps == {1}
    assert result.expected_dps == {1, 2, 3, 4}
    assert 40 <= result.duration_ms < 500


async def test_observe_only_while_active() -> None:
    tracker = RecoveryTracker()

    assert tracker.observe(1) is False  # idle

    tracker.open({1, 2}, timeout=1.0)
    assert tracker.observe(3) is False  # not expected
    assert tracker.observe(1) is True
    assert tracker.observe(2) is True
    assert tracker.is_complete

    assert tracker.observe(1) is False  # complete
    assert tracker.last_result is not None
    assert tracker.last_result.received_dps == {1, 2}


async def test_reopen_resets_the_window() -> None:
    """Re-opening an active window cancels its deadline, and clears its dps."""

    tracker = RecoveryTracker()
    results: list[RecoveryResult] = []
    tracker.add_handler(results.append)

    tracker.open({1, 2}, timeout=0.05)
    tracker.observe(1)

    await asyncio.sleep(0.03)
    tracker.open({1, 2}, timeout=0.1)  # before the first deadline
    assert tracker.session is not None
    assert tracker.session.received_dps == set()

    await asyncio.sleep(0.05)  # the first deadline has passed
    assert tracker.is_active
    assert results == []

    result = await asyncio.wait_for(tracker.wait_for_completion(), 1.0)
    assert result.timed_out is True
    assert result.received_dps == set()
    assert len(results) == 1


async def test_reopen_after_complete() -> None:
    tracker = RecoveryTracker()

    tracker.open({1}, timeout=1.0)
    tracker.observe(1)
    first = await tracker.wait_for_completion()

    tracker.open({1, 2}, timeout=1.0)
    assert tracker.is_active
    tracker.observe(2)
    tracker.observe(1)

    second = await tracker.wait_for_completion()
    assert second is not first
    assert second.received_dps == {1, 2}


async def test_min_count_policy() -> None:
    """A multi-gang node needs at least N of its M expected dps."""

    tracker = RecoveryTracker(policy=CompletionPolicy.MIN_COUNT, min_count=4)
    tracker.open([1, 2, 7, 8, 15, 16], timeout=1.0)

    for dp in (1, 2, 7):
        tracker.observe(dp)
    assert tracker.is_active

    tracker.observe(16)
    assert tracker.is_complete
    assert tracker.last_result is not None
    assert tracker.last_result.received_dps == {1, 2, 7, 16}


async def test_min_count_above_expected() -> None:
    tracker = RecoveryTracker(policy=CompletionPolicy.MIN_COUNT, min_count=4)
    tracker.open([1, 2], timeout=1.0)

    tracker.observe(1)
    tracker.observe(2)
    assert tracker.is_complete


async def test_min_count_is_required() -> None:
    with pytest.raises(ValueError):
        RecoveryTracker(policy=CompletionPolicy.MIN_COUNT)


async def test_close() -> None:
    tracker = RecoveryTracker()
    results: list[RecoveryResult] = []
    tracker.add_handler(results.append)

    tracker.open({1, 2}, timeout=0.05)
    waiter = asyncio.create_task(tracker.wait_for_completion())
    await asyncio.sleep(0)

    tracker.close()
    assert tracker.state == RecoveryState.IDLE

    await asyncio.sleep(0.1)  # after the deadline
    assert results == []
    with pytest.raises(asyncio.CancelledError):
        await waiter


async def test_handler_errors_are_absorbed() -> None:
    def bad_handler(result: RecoveryResult) -> None:
        raise RuntimeError("diagnostics are down")

    tracker = RecoveryTracker()
    tracker.add_handler(bad_handler)

    tracker.open({1}, timeout=1.0)
    tracker.observe(1)

    assert tracker.is_complete


async def test_wait_before_open() -> None:
    with pytest.raises(RuntimeError):
        await RecoveryTracker().wait_for_completion()
