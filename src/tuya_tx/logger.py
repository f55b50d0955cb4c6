#!/usr/bin/env python3
"""Tuya DP - a Tuya datapoint protocol core.

This module wraps logger to provide a frame log, with bespoke timestamps.
"""

from __future__ import annotations

import logging
import shutil
import sys
from datetime import datetime as dt
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler

import colorlog

from .version import VERSION

_LOGGER = logging.getLogger(__name__)

CONSOLE_COLS = int(shutil.get_terminal_size(fallback=(int(2e3), 24)).columns - 1)

CONSOLE_FMT = f"%(asctime)s%(frame).{CONSOLE_COLS - 13}s"
FRAME_LOG_FMT = "%(asctime)s%(frame)s"

BANDW_SUFFIX = "%(message)s%(error_text)s%(comment)s"
COLOR_SUFFIX = "%(yellow)s%(message)s%(red)s%(error_text)s%(cyan)s%(comment)s"

LOG_COLOURS = {
    "DEBUG": "white",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "bold_red",
    "CRITICAL": "bold_red",
}  # default_log_colors

_RECORD_EXTRAS = ("frame", "error_text", "comment")


def _normalise_record(record: logging.LogRecord) -> None:
    """Add the frame log's extras to a record, and use its dtm as its timestamp.

    Will overwrite created and msecs (and thus asctime), but not relativeCreated.
    """

    if getattr(record, "_normalised", False):
        return
    record._normalised = True

    for attr in _RECORD_EXTRAS:
        if not hasattr(record, attr):
            setattr(record, attr, "")

    if record.frame:
        record.frame = f" {getattr(record, 'direction', '...')} {record.frame}"

    if isinstance(dtm := getattr(record, "dtm", None), dt):
        ct = dtm.timestamp()
        record.created = ct
        record.msecs = (ct - int(ct)) * 1000

    if record.msg:
        record.msg = f" < {record.msg}"

    if record.error_text:
        record.error_text = f" * {record.error_text}"

    if record.comment:
        record.comment = f" # {record.comment}"


class _Formatter:  # format asctime with configurable precision
    """Formatter instances convert a LogRecord to text."""

    default_time_format = "%Y-%m-%dT%H:%M:%S.%f"
    precision = 6

    def format(self, record: logging.LogRecord) -> str:
        _normalise_record(record)
        return super().format(record)  # type: ignore[misc,no-any-return]

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Return the creation time (asctime) of the LogRecord as formatted text.

        Allows for sub-millisecond precision, using datetime instead of time objects.
        """
        result = dt.fromtimestamp(record.created).strftime(
            datefmt or self.default_time_format
        )
        if "f" not in self.default_time_format:
            return result
        precision = self.precision or -1
        return result[: precision - 6] if -1 <= precision < 6 else result


class ColoredFormatter(_Formatter, colorlog.ColoredFormatter):  # type: ignore[misc]
    pass


class Formatter(_Formatter, logging.Formatter):  # type: ignore[misc]
    pass


class FrameLogFilter(logging.Filter):  # record.levelno in (.INFO, .WARNING)
    """For frame log files, process only wanted frames."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Return True if the record is to be processed."""
        return record.levelno in (logging.INFO, logging.WARNING)


class StdErrFilter(logging.Filter):  # record.levelno >= logging.WARNING
    """For sys.stderr, process only wanted frames."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Return True if the record is to be processed."""  # WARNING-30, ERROR-40
        return record.levelno >= logging.WARNING


class StdOutFilter(logging.Filter):  # record.levelno < logging.WARNING
    """For sys.stdout, process only wanted frames."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Return True if the record is to be processed."""  # INFO-20, DEBUG-10
        return record.levelno < logging.WARNING


def set_frame_logging(
    logger: logging.Logger,
    cc_console: bool = False,
    file_name: str | None = None,
    rotate_backups: int = 0,
    rotate_bytes: int | None = None,
) -> None:
    """Create/configure handlers, formatters, etc.

    Parameters:
    - rotate_backups: keep this many copies, and rotate at midnight unless:
    - rotate_bytes:   rotate log files when log > rotate_bytes
    """

    logger.propagate = False  # log file is distinct from any app/debug logging
    logger.setLevel(logging.DEBUG)  # must be at least .INFO

    # as set_frame_logging() may be called several times: to avoid duplicates in logs...
    for handler in list(logger.handlers):  # not logger.hasHandlers(), not propagating
        logger.removeHandler(handler)
        handler.close()

    handler: logging.Handler
    if file_name:
        if rotate_bytes:
            rotate_backups = rotate_backups or 2
            handler = RotatingFileHandler(
                file_name, maxBytes=rotate_bytes, backupCount=rotate_backups
            )
        elif rotate_backups:
            handler = TimedRotatingFileHandler(
                file_name, when="MIDNIGHT", backupCount=rotate_backups
            )
        else:
            handler = logging.FileHandler(file_name)

        handler.setFormatter(Formatter(fmt=FRAME_LOG_FMT + BANDW_SUFFIX))
        handler.setLevel(logging.INFO)  # .INFO (usually), or .DEBUG
        handler.addFilter(FrameLogFilter())  # record.levelno in (.INFO, .WARNING)
        logger.addHandler(handler)

    elif cc_console:
        logger.addHandler(logging.NullHandler())

    else:
        logger.setLevel(logging.CRITICAL)
        return

    if cc_console:  # CC: output to stdout/stderr
        console_fmt = ColoredFormatter(
            fmt=f"%(log_color)s{CONSOLE_FMT + COLOR_SUFFIX}",
            reset=True,
            log_colors=LOG_COLOURS,
        )

        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(console_fmt)
        handler.setLevel(logging.WARNING)  # must be .WARNING or less
        handler.addFilter(StdErrFilter())  # record.levelno >= .WARNING
        logger.addHandler(handler)

        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(console_fmt)
        handler.setLevel(logging.DEBUG)  # must be .INFO or less
        handler.addFilter(StdOutFilter())  # record.levelno < .WARNING
        logger.addHandler(handler)

    logger.warning("", extra={"comment": f"tuya_tx {VERSION}"})  # initial log line
