from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

RUN_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"


def configure_logging(log_file: Path, level: str, console_enabled: bool) -> None:
    """
    Configure loguru sinks.

    - File sink: always enabled. One UTF-8 file per run, named by the run
      timestamp, so no rotation.
    - Console sink: enabled only when console_enabled=True (progress bars off
      and not --silent).
    """
    logger.remove()

    if console_enabled:
        logger.add(sys.stdout, level=level, enqueue=True, backtrace=False, diagnose=False)

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(log_file),
        level=level,
        format=RUN_LOG_FORMAT,
        mode="a",
        encoding="utf-8",
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )
