from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .models import FolderOutcome, OutcomeKind, RunSummary, TransferredItem


@dataclass
class RunAccumulator:
    """Outcomes and transfers collected while the folder loop runs."""
    outcomes: List[FolderOutcome] = field(default_factory=list)
    transferred: List[TransferredItem] = field(default_factory=list)

    def record(self, outcome: FolderOutcome) -> None:
        self.outcomes.append(outcome)

    def add_transferred(self, items: Iterable[TransferredItem]) -> None:
        self.transferred.extend(items)

    def summary(self) -> RunSummary:
        return build_summary(self.outcomes, self.transferred)


def build_summary(
    outcomes: Sequence[FolderOutcome],
    transferred: Sequence[TransferredItem] = (),
) -> RunSummary:
    counts = {kind: 0 for kind in OutcomeKind}
    failed_folders: List[str] = []
    for outcome in outcomes:
        counts[outcome.kind] += 1
        if outcome.kind is OutcomeKind.FAILED:
            failed_folders.append(outcome.source_path)
    return RunSummary(
        copied_count=counts[OutcomeKind.COPIED],
        synced_count=counts[OutcomeKind.SYNCED_NO_CHANGE],
        skipped_count=counts[OutcomeKind.SKIPPED_MISSING],
        failed_count=counts[OutcomeKind.FAILED],
        failed_folders=tuple(failed_folders),
        transferred_items=tuple(transferred),
    )


def count_lines(summary: RunSummary) -> List[str]:
    return [
        f"Copied (changes transferred): {summary.copied_count}",
        f"Synced (no changes):          {summary.synced_count}",
        f"Skipped (source missing):     {summary.skipped_count}",
        f"Failed:                       {summary.failed_count}",
    ]


def render_report(
    summary: RunSummary,
    *,
    simulate_only: bool = False,
    destination_root: Optional[str] = None,
    elapsed_seconds: Optional[float] = None,
) -> str:
    """Human-readable run report, used for the console and the run log."""
    lines = ["=" * 60, "SYNC RUN SUMMARY" + (" (SIMULATION - nothing copied)" if simulate_only else "")]
    lines.append("=" * 60)
    if destination_root:
        lines.append(f"Destination: {destination_root}")
    lines.append(f"Folders processed: {summary.total}")
    lines.extend(count_lines(summary))
    lines.append(f"Items transferred: {len(summary.transferred_items)}")
    if elapsed_seconds is not None:
        minutes, seconds = divmod(int(round(elapsed_seconds)), 60)
        lines.append(f"Elapsed: {minutes}m {seconds:02d}s")
    if summary.failed_folders:
        lines.append("")
        lines.append("Failed folders:")
        lines.extend(f"  - {folder}" for folder in summary.failed_folders)
    lines.append("=" * 60)
    return "\n".join(lines)
