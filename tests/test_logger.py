#!/usr/bin/env python3
"""Tuya DP - Test the frame log."""

import logging
from datetime import datetime as dt
from pathlib import Path

from tuya_tx import VERSION, set_frame_logging
from tuya_tx.schemas import SCH_FRAME_LOG

DTM = dt(2024, 1, 2, 3, 4, 5, 500000)


def test_frame_log_file(tmp_path: Path) -> None:
    file_name = tmp_path / "frames.log"
    config = SCH_FRAME_LOG({"frame_log": str(file_name)})["frame_log"]

    logger = logging.getLogger("tests.frame_log")
    set_frame_logging(logger, **config)

    logger.info(
        "", extra={"dtm": DTM, "direction": "<<<", "frame": "00 05 01 01 00 01 01"}
    )
    logger.warning(
        "bad frame",
        extra={"dtm": DTM, "direction": "<<<", "frame": "00 05 01", "comment": "x"},
    )
    logger.debug("not logged", extra={"dtm": DTM})

    set_frame_logging(logger)  # closes the file
    lines = file_name.read_text().splitlines()

    assert len(lines) == 3
    assert lines[0].endswith(f" # tuya_tx {VERSION}")
    assert lines[1] == "2024-01-02T03:04:05.500000 <<< 00 05 01 01 00 01 01"
    assert lines[2] == "2024-01-02T03:04:05.500000 <<< 00 05 01 < bad frame # x"


def test_frame_log_disabled() -> None:
    logger = logging.getLogger("tests.frame_log_disabled")
    set_frame_logging(logger)

    assert logger.handlers == []
    assert logger.propagate is False
    assert not logger.isEnabledFor(logging.WARNING)
