#!/usr/bin/env python3
"""Tuya DP - Typing for the transport and the reliable sender."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from datetime import datetime as dt
from typing import TYPE_CHECKING, Any, Protocol

from .const import DEFAULT_BASE_DELAY, DEFAULT_MAX_RETRIES, DataType

if TYPE_CHECKING:
    from .codec import DpValueT
    from .command import Command


class TuyaTransportT(Protocol):
    """A typing.Protocol (i.e. a structural type) of the external transport.

    The transport is shared by many nodes, and is assumed safe for concurrent use.
    """

    def is_available(self) -> bool:
        """Return True if the channel to the node is available (e.g. it is online)."""
        ...

    async def send_frame(self, cmd: Command) -> Any:
        """Transmit the frame to the node.

        Raise an exception (or return False) if the frame was not acknowledged.
        """
        ...


class RetryParams:
    """A container for the retry policy of the reliable sender."""

    def __init__(
        self,
        *,
        max_retries: int | None = DEFAULT_MAX_RETRIES,
        base_delay: float | None = DEFAULT_BASE_DELAY,
    ) -> None:
        """Create a RetryParams instance."""

        self._max_retries = DEFAULT_MAX_RETRIES if max_retries is None else max_retries
        self._base_delay = DEFAULT_BASE_DELAY if base_delay is None else base_delay

        if self._max_retries < 1:
            raise ValueError(f"max_retries must be at least 1: {self._max_retries}")
        if self._base_delay < 0:
            raise ValueError(f"base_delay must not be negative: {self._base_delay}")

    def __repr__(self) -> str:
        return (
            f"RetryParams(max_retries={self._max_retries}, "
            f"base_delay={self._base_delay})"
        )

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def base_delay(self) -> float:
        return self._base_delay

    def backoff(self, attempt: int) -> float:
        """Return the delay before the retry that follows this attempt (linear)."""
        return self._base_delay * attempt


@dataclasses.dataclass(kw_only=True)
class PendingCommand:
    """An in-flight outbound write (exists from the 1st attempt until done)."""

    dp: int
    datatype: DataType
    payload: DpValueT
    attempt: int
    max_attempts: int
    base_delay: float


@dataclasses.dataclass(frozen=True, kw_only=True)
class SendAttempt:
    """The outcome of a single attempt to send a command (for telemetry)."""

    dp: int
    seqn: int | None  # None if the transport was unavailable
    attempt: int
    max_attempts: int
    success: bool
    error: BaseException | None
    dtm: dt

    def __str__(self) -> str:
        result = "ok" if self.success else f"failed ({self.error})"
        return f"dp={self.dp} attempt {self.attempt}/{self.max_attempts}: {result}"


AttemptHandlerT = Callable[[SendAttempt], None]
