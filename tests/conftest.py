"""Shared fixtures: a scripted copy tool and robocopy log text."""

import sys
from pathlib import Path

import pytest
from loguru import logger

from robomirror.models import InvocationResult

LOG_HEADER = [
    "-------------------------------------------------------------------------------",
    "   ROBOCOPY     ::     Robust File Copy for Windows",
    "-------------------------------------------------------------------------------",
    "",
    "  Started : Saturday, 1 June 2024 02:00:01",
    "   Source : {src}\\",
    "     Dest : Z:\\backup\\",
    "",
    "    Files : *.*",
    "",
    "  Options : *.* /V /TS /FP /BYTES /S /E /DCOPY:DA /COPY:DAT /PURGE /MIR /NP /MT:16 /R:2 /W:5",
    "",
    "------------------------------------------------------------------------------",
    "",
    "\t                   2\t{src}\\",
]


def new_file_line(path, size=5242880):
    return f"\t    New File  \t\t{size:>11}\t2024/05/30 21:14:02\t{path}"


def same_file_line(path, size=1024):
    return f"\t      same\t\t{size:>11}\t2024/01/01 10:00:00\t{path}"


def robocopy_log(src, lines):
    return "\n".join([h.format(src=src) for h in LOG_HEADER] + list(lines)) + "\n"


class FakeInvoker:
    """Stands in for robocopy: writes a scripted log and returns a scripted exit code."""

    def __init__(self, script=None, default=(0, [])):
        self.script = dict(script or {})
        self.default = default
        self.calls = []

    def invoke(self, entry, dest_path, config, log_path):
        self.calls.append((entry.source_path, dest_path, Path(log_path), config))
        outcome = self.script.get(entry.source_path, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        exit_code, lines = outcome
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        Path(log_path).write_text(robocopy_log(entry.source_path, lines), encoding="utf-8")
        return InvocationResult(
            source_path=entry.source_path,
            dest_path=dest_path,
            exit_code=exit_code,
            invocation_log_path=Path(log_path),
        )


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(lambda m: messages.append(str(m)), level="TRACE", format="{message}")
    yield messages
    try:
        logger.remove(handler_id)
    except ValueError:
        pass
