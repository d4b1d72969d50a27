from __future__ import annotations

from pathlib import Path
from typing import List

from loguru import logger

from .errors import ConfigError
from .models import FolderEntry

COMMENT_PREFIX = "#"


def parse_folder_lines(text: str) -> List[FolderEntry]:
    """
    Turn raw folder-list text into entries, in input order.

    Lines that are empty after trimming, or whose trimmed form starts with '#',
    are skipped. Everything else is kept verbatim apart from the trim, so inner
    spaces and drive prefixes survive untouched.
    """
    entries: List[FolderEntry] = []
    for raw in text.split("\n"):
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue
        entries.append(FolderEntry(source_path=line))
    return entries


def read_folder_list(path: Path) -> List[FolderEntry]:
    """Read the folder list; raise ConfigError when absent or empty."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Folder list not found: {path}", {"path": str(path)})
    try:
        # utf-8-sig: Notepad likes to prepend a BOM
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Folder list unreadable: {path} :: {e}", {"path": str(path)}) from e

    entries = parse_folder_lines(text)
    if not entries:
        raise ConfigError(f"Folder list has no usable entries: {path}", {"path": str(path)})

    logger.info("Loaded {n} folder(s) from '{p}'", n=len(entries), p=path)
    return entries
