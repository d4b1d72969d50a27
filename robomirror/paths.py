"""Destination path mapping and per-run file naming."""

from __future__ import annotations

import datetime as dt
import os
import re
from pathlib import Path
from typing import Optional

_VOLUME_PATH = re.compile(r"^[A-Za-z]:\\(?P<rest>.*)$", re.DOTALL)
_WINDOWS_ROOT = re.compile(r"^(?:[A-Za-z]:|\\\\)")

RUN_STAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def _separator_for(root: str) -> str:
    """Windows-style roots (drive letter or UNC) join with a backslash."""
    if _WINDOWS_ROOT.match(root) or ("\\" in root and "/" not in root):
        return "\\"
    return os.sep


def join_root(root: str, rest: str) -> str:
    if not rest:
        return root
    sep = _separator_for(root)
    if root.endswith(("\\", "/")):
        return root + rest
    return root + sep + rest


def map_destination(source_path: str, dest_root: str) -> str:
    r"""
    Mirror the source's position below its volume root under dest_root.

        D:\Music\Jazz   + \\nas\backup  -> \\nas\backup\Music\Jazz
        \Shared\Docs    + Z:\           -> Z:\Shared\Docs

    No '..' normalization is done; callers pass resolved paths.
    """
    m = _VOLUME_PATH.match(source_path)
    if m:
        rest = m.group("rest")
    elif source_path[:1] in ("\\", "/"):
        rest = source_path[1:]
    else:
        rest = source_path
    return join_root(dest_root, rest)


# ------------------------------ Run file names ------------------------------ #

def run_stamp(when: Optional[dt.datetime] = None) -> str:
    return (when or dt.datetime.now()).strftime(RUN_STAMP_FORMAT)


def run_log_path(log_dir: Path, stamp: str) -> Path:
    return Path(log_dir) / f"robomirror_{stamp}.log"


def invocation_log_path(log_dir: Path, stamp: str, index: int) -> Path:
    return Path(log_dir) / f"robocopy_{stamp}_{index:03d}.log"


def transferred_report_path(log_dir: Path, stamp: str) -> Path:
    return Path(log_dir) / f"transferred_{stamp}.txt"
