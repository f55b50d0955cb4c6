#!/usr/bin/env python3
"""Tuya DP - the recovery window tracker.

After a (re)connect, a node is expected to report a baseline set of datapoints. The
window is complete when enough of them are observed, or when its deadline expires.

    Idle -> Active -> Complete (Active again, if re-opened)
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable, Iterable

from .const import CompletionPolicy, RecoveryState

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(kw_only=True)
class RecoverySession:
    """An open recovery window."""

    expected_dps: frozenset[int]
    timeout: float
    start_time: float  # per loop.time()
    received_dps: set[int] = dataclasses.field(default_factory=set)


@dataclasses.dataclass(frozen=True, kw_only=True)
class RecoveryResult:
    """The completion event of a recovery window (for diagnostics only)."""

    duration: float  # seconds
    received_dps: frozenset[int]
    expected_dps: frozenset[int]
    timed_out: bool

    @property
    def duration_ms(self) -> int:
        return round(self.duration * 1000)

    def __str__(self) -> str:
        dps = ",".join(str(dp) for dp in sorted(self.received_dps))
        how = "timed out" if self.timed_out else "complete"
        return f"recovery {how}: {self.duration_ms}ms, dps: {dps or '-'}"


class RecoveryTracker:
    """Track which of the expected datapoints have been reported since a (re)connect.

    Only one window is active at a time: re-opening an active window resets it.
    """

    def __init__(
        self,
        *,
        policy: CompletionPolicy = CompletionPolicy.FULL_COVERAGE,
        min_count: int | None = None,
        name: str | None = None,
    ) -> None:
        self._policy = CompletionPolicy(policy)
        if self._policy == CompletionPolicy.MIN_COUNT and not min_count:
            raise ValueError("a min_count policy requires a min_count (of at least 1)")
        self._min_count = min_count
        self._name = name or hex(id(self))

        self._state = RecoveryState.IDLE
        self._session: RecoverySession | None = None
        self._deadline: asyncio.TimerHandle | None = None
        self._fut: asyncio.Future[RecoveryResult] | None = None

        self._handlers: list[Callable[[RecoveryResult], None]] = []
        self.last_result: RecoveryResult | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._name}, state={self._state})"

    @property
    def policy(self) -> CompletionPolicy:
        return self._policy

    @property
    def state(self) -> RecoveryState:
        return self._state

    @property
    def session(self) -> RecoverySession | None:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._state == RecoveryState.ACTIVE

    @property
    def is_complete(self) -> bool:
        return self._state == RecoveryState.COMPLETE

    def add_handler(
        self, handler: Callable[[RecoveryResult], None]
    ) -> Callable[[], None]:
        """Add a handler of completion events, return a callback to remove it."""

        def del_handler() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        if handler not in self._handlers:
            self._handlers.append(handler)

        return del_handler

    def open(self, expected_dps: Iterable[int], timeout: float) -> None:
        """Open a recovery window (reset it, if one is already active)."""

        loop = asyncio.get_running_loop()

        if self._deadline:  # don't leak the previous deadline
            self._deadline.cancel()
            self._deadline = None

        self._session = RecoverySession(
            expected_dps=frozenset(expected_dps),
            timeout=timeout,
            start_time=loop.time(),
        )
        if self._fut is None or self._fut.done():
            self._fut = loop.create_future()

        self._state = RecoveryState.ACTIVE
        self._deadline = loop.call_later(timeout, self._expired, self._session)

        _LOGGER.debug(
            "%s: opened, expecting dps %s within %ss",
            self,
            sorted(self._session.expected_dps),
            timeout,
        )

    def observe(self, dp: int) -> bool:
        """Observe an accepted datapoint, return True if it was counted."""

        if self._state != RecoveryState.ACTIVE or self._session is None:
            return False
        if dp not in self._session.expected_dps:
            return False

        self._session.received_dps.add(dp)
        if self._is_sufficient(self._session):
            self._complete(self._session, timed_out=False)
        return True

    def close(self) -> None:
        """Cancel any active window, without completing it (e.g. when removed)."""

        if self._deadline:
            self._deadline.cancel()
            self._deadline = None

        if self._fut and not self._fut.done():
            self._fut.cancel()

        if self._state == RecoveryState.ACTIVE:
            self._state = RecoveryState.IDLE
            _LOGGER.debug("%s: closed", self)

    async def wait_for_completion(self) -> RecoveryResult:
        """Wait for the active window to complete, and return its result."""

        if self._fut is None:
            raise RuntimeError(f"{self}: no recovery window has been opened")
        return await asyncio.shield(self._fut)

    def _is_sufficient(self, session: RecoverySession) -> bool:
        if self._policy == CompletionPolicy.MIN_COUNT:
            assert self._min_count  # mypy
            return len(session.received_dps) >= min(
                self._min_count, len(session.expected_dps)
            )
        return session.received_dps >= session.expected_dps

    def _expired(self, session: RecoverySession) -> None:
        if session is not self._session or self._state != RecoveryState.ACTIVE:
            return  # a stale deadline (shouldn't happen, as they're cancelled)
        self._deadline = None
        self._complete(session, timed_out=True)

    def _complete(self, session: RecoverySession, *, timed_out: bool) -> None:
        if self._deadline:
            self._deadline.cancel()
            self._deadline = None

        self._state = RecoveryState.COMPLETE
        self.last_result = result = RecoveryResult(
            duration=asyncio.get_running_loop().time() - session.start_time,
            received_dps=frozenset(session.received_dps),
            expected_dps=session.expected_dps,
            timed_out=timed_out,
        )

        if timed_out:
            _LOGGER.warning("%s: %s", self, result)
        else:
            _LOGGER.info("%s: %s", self, result)

        if self._fut and not self._fut.done():
            self._fut.set_result(result)

        for handler in self._handlers:
            try:
                handler(result)
            except Exception as err:
                _LOGGER.error("%s: handler %s failed: %r", self, handler, err)
