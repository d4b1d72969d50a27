r"""
Extract the items robocopy actually transferred from its per-folder log.

A verbose robocopy log (/V /TS /FP /BYTES) has one line per item, e.g.

    	    New File  		     4096	2024/05/01 10:12:33	D:\Music\Jazz\track01.flac
    	  New Dir          3	D:\Music\Jazz\Live\

The text format is the only contract, so it lives behind LogLineClassifier.
"""

from __future__ import annotations

import codecs
import re
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Protocol, Sequence

from loguru import logger

from .models import TransferredItem

NO_TRANSFERS_LINE = "No files were transferred during this run."


class LogLineClassifier(Protocol):
    def transferred_path(self, line: str) -> Optional[str]:
        """Return the item path if the line records a transfer, else None."""
        ...


class RobocopyLineClassifier:
    ACTION_MARKERS = ("New File", "New Dir", "Newer", "Renamed")

    _marker_re = re.compile("|".join(re.escape(m) for m in ACTION_MARKERS))
    _volume_re = re.compile(r"[A-Za-z]:\\")

    def transferred_path(self, line: str) -> Optional[str]:
        fields = line.split("\t")
        if len(fields) < 2:
            return None
        # markers only count in the status columns, never inside the path
        if not any(self._marker_re.search(f) for f in fields[:-1]):
            return None
        field = fields[-1].strip()
        if not field or field.isdigit():
            # byte-count column, not a path
            return None
        if not self._volume_re.search(field):
            return None
        return field


# ------------------------------ Exclusions --------------------------------- #

def glob_to_regex(pattern: str) -> Pattern[str]:
    """Anchored, case-insensitive regex for a filename glob ('*' and '?')."""
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def _filename(path: str) -> str:
    trimmed = path.rstrip("\\/")
    return re.split(r"[\\/]", trimmed)[-1]


class ExclusionFilter:
    def __init__(self, file_patterns: Sequence[str] = (), dir_names: Sequence[str] = ()):
        self.file_regexes = [glob_to_regex(p) for p in file_patterns if p]
        self.dir_markers = [f"\\{d}\\".lower() for d in dir_names if d]

    def excludes(self, path: str) -> bool:
        lowered = path.lower()
        if any(marker in lowered for marker in self.dir_markers):
            return True
        name = _filename(path)
        return any(rx.match(name) for rx in self.file_regexes)


# ------------------------------- Reading ----------------------------------- #

def read_tool_log(log_path: Path) -> List[str]:
    """
    Lines of a tool log. /UNILOG writes UTF-16 with a BOM; anything else is
    read as UTF-8, replacing undecodable bytes.
    """
    raw = Path(log_path).read_bytes()
    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        text = raw.decode("utf-16", errors="replace")
    else:
        text = raw.decode("utf-8-sig", errors="replace")
    return text.splitlines()


def parse_transfer_lines(
    lines: Iterable[str],
    exclusions: ExclusionFilter,
    classifier: Optional[LogLineClassifier] = None,
) -> List[TransferredItem]:
    classifier = classifier or RobocopyLineClassifier()
    items: List[TransferredItem] = []
    for line in lines:
        path = classifier.transferred_path(line)
        if path is None:
            continue
        if exclusions.excludes(path):
            logger.trace("Excluded transfer record: {p}", p=path)
            continue
        items.append(TransferredItem(path=path))
    return items


def extract_transferred(
    log_path: Path,
    exclude_file_patterns: Sequence[str] = (),
    exclude_dir_names: Sequence[str] = (),
    classifier: Optional[LogLineClassifier] = None,
) -> List[TransferredItem]:
    log_path = Path(log_path)
    if not log_path.exists():
        logger.warning("Invocation log missing, no transfers recorded: {p}", p=log_path)
        return []
    try:
        lines = read_tool_log(log_path)
    except OSError as e:
        logger.warning("Invocation log unreadable, no transfers recorded: {p} :: {e}", p=log_path, e=e)
        return []
    exclusions = ExclusionFilter(exclude_file_patterns, exclude_dir_names)
    return parse_transfer_lines(lines, exclusions, classifier)


def write_transferred_report(items: Sequence[TransferredItem], path: Path) -> Path:
    """One path per line; a single explanatory line when nothing moved."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if items:
        body = "\n".join(item.path for item in items) + "\n"
    else:
        body = NO_TRANSFERS_LINE + "\n"
    path.write_text(body, encoding="utf-8")
    return path
