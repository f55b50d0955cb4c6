#!/usr/bin/env python3
"""Tuya DP - Test the transaction sequencer."""

from tuya_tx import TransactionSequencer


def test_sequencer_wraps() -> None:
    seq = TransactionSequencer()

    assert [seq.next() for _ in range(256)] == list(range(256))
    assert seq.next() == 0  # the 257th call
    assert seq.current == 1


def test_sequencer_reset() -> None:
    seq = TransactionSequencer()

    for _ in range(10):
        seq.next()
    assert seq.current == 10

    seq.reset()
    assert seq.current == 0
    assert seq.next() == 0


def test_sequencers_are_independent() -> None:
    seq_a, seq_b = TransactionSequencer(), TransactionSequencer()

    seq_a.next()
    seq_a.next()

    assert seq_b.next() == 0
    assert seq_a.next() == 2
