"""
Map robocopy exit codes to folder outcomes.

Robocopy's exit status is a bitmask:
    1  one or more files were copied
    2  extra files/directories were detected in the destination
    4  mismatched files/directories were detected
    8  some files/directories could not be copied
   16  fatal error, nothing was copied
"""

from __future__ import annotations

from typing import Optional

from .models import FolderEntry, FolderOutcome, InvocationResult, OutcomeKind

FAILURE_THRESHOLD = 8
_COPY_BITS = 0b011
_MISMATCH_BIT = 0b100


def classify_exit_code(exit_code: int) -> OutcomeKind:
    if exit_code < 0 or exit_code >= FAILURE_THRESHOLD:
        return OutcomeKind.FAILED
    if exit_code & _COPY_BITS:
        return OutcomeKind.COPIED
    # 0 (trees already match) and 4 (mismatch only) both count as no change
    return OutcomeKind.SYNCED_NO_CHANGE


def classify(result: InvocationResult) -> FolderOutcome:
    kind = classify_exit_code(result.exit_code)
    detail = ""
    if result.exit_code & _MISMATCH_BIT and kind is not OutcomeKind.FAILED:
        detail = "mismatched items reported"
    return FolderOutcome(
        kind=kind,
        source_path=result.source_path,
        dest_path=result.dest_path,
        exit_code=result.exit_code,
        detail=detail,
    )


def skipped_missing(entry: FolderEntry) -> FolderOutcome:
    return FolderOutcome(
        kind=OutcomeKind.SKIPPED_MISSING,
        source_path=entry.source_path,
        detail="source does not exist",
    )


def failed(entry: FolderEntry, dest_path: Optional[str], reason: str, exit_code: Optional[int] = None) -> FolderOutcome:
    return FolderOutcome(
        kind=OutcomeKind.FAILED,
        source_path=entry.source_path,
        dest_path=dest_path,
        exit_code=exit_code,
        detail=reason,
    )
