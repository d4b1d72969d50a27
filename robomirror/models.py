"""Records passed between the stages of a sync run."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple


# ------------------------------- Data Types --------------------------------- #

@dataclass(frozen=True)
class FolderEntry:
    """One usable line of the folder list."""
    source_path: str


@dataclass(frozen=True)
class RunOptions:
    """Options supplied at invocation time."""
    simulate_only: bool = False
    notify_enabled: bool = False
    use_alternate_credentials: bool = False


@dataclass(frozen=True)
class RunConfig:
    """Immutable per-run settings handed to every invocation."""
    simulate_only: bool
    notify_enabled: bool
    destination_root: str
    exclude_file_patterns: Tuple[str, ...] = ()
    exclude_dir_names: Tuple[str, ...] = ()
    concurrency_level: int = 16
    retry_count: int = 2
    retry_wait_seconds: int = 5


@dataclass(frozen=True)
class InvocationResult:
    source_path: str
    dest_path: str
    exit_code: int
    invocation_log_path: Path


class OutcomeKind(enum.Enum):
    COPIED = "copied"
    SYNCED_NO_CHANGE = "synced"
    FAILED = "failed"
    SKIPPED_MISSING = "skipped"


@dataclass(frozen=True)
class FolderOutcome:
    kind: OutcomeKind
    source_path: str
    dest_path: Optional[str] = None
    exit_code: Optional[int] = None
    detail: str = ""


@dataclass(frozen=True)
class TransferredItem:
    path: str


@dataclass(frozen=True)
class RunSummary:
    copied_count: int = 0
    synced_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    failed_folders: Tuple[str, ...] = ()
    transferred_items: Tuple[TransferredItem, ...] = ()

    @property
    def total(self) -> int:
        return self.copied_count + self.synced_count + self.skipped_count + self.failed_count

    @property
    def has_failures(self) -> bool:
        return self.failed_count > 0


@dataclass(frozen=True)
class Credentials:
    username: str
    secret: str = field(repr=False)
