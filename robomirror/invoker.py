"""One robocopy invocation per folder."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, List

from loguru import logger

from .errors import CopyToolFailure, DirectoryCreateError
from .models import FolderEntry, InvocationResult, RunConfig

DEFAULT_EXECUTABLE = "robocopy"


def build_copy_args(
    executable: str,
    source: str,
    destination: str,
    config: RunConfig,
    log_path: Path,
) -> List[str]:
    """
    Argument list for a mirror copy of source onto destination.

    /MIR        recursive mirror (purges destination extras)
    /V /TS /FP  verbose per-file lines with timestamps and full paths
    /BYTES      sizes in bytes
    /NP         no percentage progress in the log
    /UNILOG+    append to a UTF-16 log, keeps non-ASCII names intact
    /L          list only, nothing is copied (simulate)
    """
    args = [
        executable,
        source,
        destination,
        f"/MT:{max(1, config.concurrency_level)}",
        "/MIR",
        "/V",
        "/TS",
        "/FP",
        "/BYTES",
        "/NP",
        f"/R:{config.retry_count}",
        f"/W:{config.retry_wait_seconds}",
        f"/UNILOG+:{log_path}",
    ]
    for pattern in config.exclude_file_patterns:
        args += ["/XF", pattern]
    for name in config.exclude_dir_names:
        args += ["/XD", name]
    if config.simulate_only:
        args.append("/L")
    return args


class CopyInvoker:
    """
    Runs the copy tool for a single folder and reports its raw exit status.

    Interpreting the status is left to the classifier.
    """

    def __init__(
        self,
        executable: str = DEFAULT_EXECUTABLE,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.executable = executable
        self.runner = runner

    def ensure_destination(self, dest_path: str) -> None:
        dest = Path(dest_path)
        if dest.is_dir():
            return
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateError(dest_path, str(e)) from e
        logger.info("Created destination '{p}'", p=dest_path)

    def invoke(
        self,
        entry: FolderEntry,
        dest_path: str,
        config: RunConfig,
        log_path: Path,
    ) -> InvocationResult:
        self.ensure_destination(dest_path)

        source = entry.source_path
        # brackets + length make stray whitespace in list entries visible
        logger.debug("Source path [{src}] length={n}", src=source, n=len(source))

        args = build_copy_args(self.executable, source, dest_path, config, log_path)
        logger.debug("Invoking: {args}", args=args)

        try:
            Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CopyToolFailure(source, None, f"could not create log directory: {e}") from e
        try:
            proc = self.runner(
                args,
                shell=False,
                check=False,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise CopyToolFailure(source, None, f"could not launch '{self.executable}': {e}") from e

        if proc.stderr:
            logger.debug("Copy tool stderr for '{src}': {err}", src=source, err=proc.stderr.strip())

        return InvocationResult(
            source_path=source,
            dest_path=dest_path,
            exit_code=proc.returncode,
            invocation_log_path=Path(log_path),
        )
