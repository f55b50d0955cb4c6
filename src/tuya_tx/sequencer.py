#!/usr/bin/env python3
"""Tuya DP - the transaction sequencer (one per physical node, not shared)."""

from __future__ import annotations

from .const import SEQN_MODULUS


class TransactionSequencer:
    """Assign transaction ids (0..255, wrapping) to outbound frames."""

    def __init__(self) -> None:
        self._seqn = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(current={self._seqn})"

    @property
    def current(self) -> int:
        """Return the id that will be returned by the next call to next()."""
        return self._seqn

    def next(self) -> int:
        """Return the current id, then increment it (modulo 256)."""
        seqn = self._seqn
        self._seqn = (self._seqn + 1) % SEQN_MODULUS
        return seqn

    def reset(self) -> None:
        self._seqn = 0
