#!/usr/bin/env python3
"""Tuya DP - the reliable command sender.

Wrap a single outbound datapoint write with a bounded number of attempts, and a linear
backoff between them. Each attempt has its own transaction id.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime as dt
from typing import Any, Final

from . import exceptions as exc
from .command import Command
from .const import (
    BACKOFF_LINEAR,
    DEFAULT_BULK_GAP,
    DEFAULT_READY_POLL,
    DEFAULT_READY_TIMEOUT,
    SZ_BACKOFF,
    SZ_BASE_DELAY,
    SZ_DP,
    SZ_ERROR,
    SZ_IS_READY,
    SZ_MAX_RETRIES,
    SZ_RESULT,
    SZ_SUCCESS,
    SZ_TRANSACTION_ID,
    DataType,
)
from .packet import FRAME_LOGGER
from .sequencer import TransactionSequencer
from .typing import (
    AttemptHandlerT,
    PendingCommand,
    RetryParams,
    SendAttempt,
    TuyaTransportT,
)

_LOGGER = logging.getLogger(__name__)

# the failures that are retried, anything else (e.g. a CodecError) is not
_TRANSPORT_ERRORS: Final = (exc.TransportError, OSError, TimeoutError)


class ReliableSender:
    """Send datapoint writes to a node, with retries.

    Writes to the same dp are serialized, writes to different dps are not.
    """

    def __init__(
        self,
        transport: TuyaTransportT,
        sequencer: TransactionSequencer | None = None,
        *,
        retry_params: RetryParams | None = None,
        name: str | None = None,
    ) -> None:
        self._transport = transport
        self._sequencer = sequencer or TransactionSequencer()
        self._retry_params = retry_params or RetryParams()
        self._name = name or hex(id(self))

        self._attempt_handlers: list[AttemptHandlerT] = []
        self._dp_locks: dict[int, asyncio.Lock] = {}
        self._pending: dict[int, PendingCommand] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._name}, {self._retry_params})"

    @property
    def sequencer(self) -> TransactionSequencer:
        return self._sequencer

    @property
    def retry_params(self) -> RetryParams:
        return self._retry_params

    @property
    def is_ready(self) -> bool:
        """Return True if the transport is available."""
        return bool(self._transport.is_available())

    @property
    def pending(self) -> dict[int, PendingCommand]:
        """Return the in-flight writes, by dp."""
        return dict(self._pending)

    @property
    def stats(self) -> dict[str, Any]:
        return {
            SZ_TRANSACTION_ID: self._sequencer.current,
            SZ_IS_READY: self.is_ready,
            SZ_MAX_RETRIES: self._retry_params.max_retries,
            SZ_BASE_DELAY: self._retry_params.base_delay,
            SZ_BACKOFF: BACKOFF_LINEAR,
        }

    def reset_transaction_id(self) -> None:
        self._sequencer.reset()

    def add_attempt_handler(self, handler: AttemptHandlerT) -> Callable[[], None]:
        """Add a handler that is called after each attempt, successful or not.

        Return a callback that will remove the handler. Any exception raised by the
        handler is logged, and has no effect upon the send.
        """

        def del_handler() -> None:
            if handler in self._attempt_handlers:
                self._attempt_handlers.remove(handler)

        if handler not in self._attempt_handlers:
            self._attempt_handlers.append(handler)

        return del_handler

    def _attempt_done(self, attempt: SendAttempt) -> None:
        for handler in self._attempt_handlers:
            try:
                handler(attempt)
            except Exception as err:
                _LOGGER.warning("%s: attempt handler %s failed: %r", self, handler, err)

    async def send(
        self,
        dp: int,
        datatype: DataType | int,
        payload: Any,
        *,
        max_retries: int | None = None,
        base_delay: float | None = None,
        width: int | None = None,
    ) -> Any:
        """Send a datapoint write, and return the transport's result.

        Raise a CodecError (without any attempt) if the payload cannot be encoded, and
        SendExhausted if no attempt succeeded.
        """

        cmd = Command.from_value(dp, datatype, payload, width=width)
        return await self.send_cmd(cmd, max_retries=max_retries, base_delay=base_delay)

    async def send_cmd(
        self,
        cmd: Command,
        *,
        max_retries: int | None = None,
        base_delay: float | None = None,
    ) -> Any:
        """Send a command, and return the transport's result.

        Raise SendExhausted if no attempt succeeded.
        """

        params = RetryParams(
            max_retries=self._retry_params.max_retries
            if max_retries is None
            else max_retries,
            base_delay=self._retry_params.base_delay
            if base_delay is None
            else base_delay,
        )

        lock = self._dp_locks.setdefault(cmd.dp, asyncio.Lock())
        async with lock:
            self._pending[cmd.dp] = pending = PendingCommand(
                dp=cmd.dp,
                datatype=cmd.datatype,
                payload=cmd.value,
                attempt=0,
                max_attempts=params.max_retries,
                base_delay=params.base_delay,
            )
            try:
                return await self._send_cmd(cmd, pending, params)
            finally:
                del self._pending[cmd.dp]

    async def _send_cmd(
        self, cmd: Command, pending: PendingCommand, params: RetryParams
    ) -> Any:
        last_error: BaseException | None = None

        for attempt in range(1, params.max_retries + 1):
            pending.attempt = attempt
            seqn: int | None = None

            try:
                if not self._transport.is_available():
                    raise exc.TransportUnavailable(f"Transport unavailable: {cmd}")

                seqn = self._sequencer.next()
                frame = cmd.with_seqn(seqn)
                FRAME_LOGGER.info(
                    "",
                    extra={"dtm": dt.now(), "direction": ">>>", "frame": repr(frame)},
                )
                result = await self._transport.send_frame(frame)
                if result is False:
                    raise exc.TransportError(f"Frame not acknowledged: {frame}")

            except _TRANSPORT_ERRORS as err:
                last_error = err
                _LOGGER.warning(
                    "%s: dp=%s attempt %s/%s failed: %r",
                    self,
                    cmd.dp,
                    attempt,
                    params.max_retries,
                    err,
                )
                self._attempt_done(
                    SendAttempt(
                        dp=cmd.dp,
                        seqn=seqn,
                        attempt=attempt,
                        max_attempts=params.max_retries,
                        success=False,
                        error=err,
                        dtm=dt.now(),
                    )
                )
                if attempt < params.max_retries:
                    await asyncio.sleep(params.backoff(attempt))
                continue

            _LOGGER.debug(
                "%s: dp=%s attempt %s/%s ok (seqn=%s)",
                self,
                cmd.dp,
                attempt,
                params.max_retries,
                seqn,
            )
            self._attempt_done(
                SendAttempt(
                    dp=cmd.dp,
                    seqn=seqn,
                    attempt=attempt,
                    max_attempts=params.max_retries,
                    success=True,
                    error=None,
                    dtm=dt.now(),
                )
            )
            return result

        _LOGGER.error(
            "%s: dp=%s failed after %s attempts: %r",
            self,
            cmd.dp,
            params.max_retries,
            last_error,
        )
        raise exc.SendExhausted(cmd.dp, last_error) from last_error

    async def write_bool(self, dp: int, value: bool, **kwargs: Any) -> Any:
        return await self.send(dp, DataType.BOOL, value, **kwargs)

    async def write_value(self, dp: int, value: int, **kwargs: Any) -> Any:
        return await self.send(dp, DataType.VALUE, value, **kwargs)

    async def write_string(self, dp: int, value: str, **kwargs: Any) -> Any:
        return await self.send(dp, DataType.STRING, value, **kwargs)

    async def write_enum(self, dp: int, value: int, **kwargs: Any) -> Any:
        return await self.send(dp, DataType.ENUM, value, **kwargs)

    async def write_raw(self, dp: int, value: bytes, **kwargs: Any) -> Any:
        return await self.send(dp, DataType.RAW, value, **kwargs)

    async def write_bitmap(self, dp: int, value: int, **kwargs: Any) -> Any:
        return await self.send(dp, DataType.BITMAP, value, **kwargs)

    async def send_bulk(
        self,
        commands: Iterable[tuple[int, DataType | int, Any]],
        *,
        gap: float = DEFAULT_BULK_GAP,
    ) -> list[dict[str, Any]]:
        """Send a number of writes, one after the other, with a gap between them.

        A failed write does not abort the others. Return a result for each write.
        """

        results: list[dict[str, Any]] = []

        for idx, (dp, datatype, value) in enumerate(commands):
            if idx and gap:
                await asyncio.sleep(gap)
            try:
                result = await self.send(dp, datatype, value)
            except (exc.CodecError, exc.SendExhausted) as err:
                results.append({SZ_DP: dp, SZ_SUCCESS: False, SZ_ERROR: err})
            else:
                results.append({SZ_DP: dp, SZ_SUCCESS: True, SZ_RESULT: result})

        return results

    async def wait_for_transport(
        self, timeout: float = DEFAULT_READY_TIMEOUT, poll: float = DEFAULT_READY_POLL
    ) -> bool:
        """Wait for the transport to be available, return False if it never was."""

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while not self.is_ready:
            if loop.time() >= deadline:
                _LOGGER.warning("%s: transport not ready after %ss", self, timeout)
                return False
            await asyncio.sleep(poll)
        return True
