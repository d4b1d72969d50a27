"""
The sync run: folder list in, run summary out.

Folders are processed strictly in list order, one blocking copy-tool
invocation at a time. Per-folder failures are recorded and the loop moves on;
only setup errors (folder list, share mount) abort the run.
"""

from __future__ import annotations

import contextlib
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from loguru import logger
from tqdm.auto import tqdm

from . import classifier
from .config import Settings
from .credentials import CredentialProvider
from .errors import ConfigError, CopyToolFailure, CredentialMissing, DirectoryCreateError, NotifyError
from .folder_list import read_folder_list
from .invoker import CopyInvoker
from .logparse import LogLineClassifier, extract_transferred, write_transferred_report
from .models import FolderEntry, FolderOutcome, OutcomeKind, RunConfig, RunOptions, RunSummary
from .mount import NetUseShareMounter, ShareMounter, mounted_share
from .notify import MailTransport, NotificationDispatcher, SmtpTransport
from .paths import invocation_log_path, map_destination, run_log_path, transferred_report_path
from .summary import RunAccumulator, render_report


class SyncOrchestrator:
    def __init__(
        self,
        config: RunConfig,
        log_dir: Path,
        stamp: str,
        *,
        invoker: Optional[CopyInvoker] = None,
        line_classifier: Optional[LogLineClassifier] = None,
        source_exists: Callable[[str], bool] = os.path.exists,
        show_progress: bool = False,
    ):
        self.config = config
        self.log_dir = Path(log_dir)
        self.stamp = stamp
        self.invoker = invoker or CopyInvoker()
        self.line_classifier = line_classifier
        self.source_exists = source_exists
        self.show_progress = show_progress

    def process_entry(self, index: int, entry: FolderEntry, acc: RunAccumulator) -> FolderOutcome:
        src = entry.source_path
        if not self.source_exists(src):
            logger.warning("Skipping missing source folder: '{src}'", src=src)
            outcome = classifier.skipped_missing(entry)
            acc.record(outcome)
            return outcome

        dest = map_destination(src, self.config.destination_root)
        log_path = invocation_log_path(self.log_dir, self.stamp, index)
        logger.info("[{i}] '{src}' -> '{dst}'", i=index, src=src, dst=dest)

        try:
            result = self.invoker.invoke(entry, dest, self.config, log_path)
        except (DirectoryCreateError, CopyToolFailure) as e:
            logger.error("{msg}", msg=e.message)
            outcome = classifier.failed(entry, dest, e.message)
            acc.record(outcome)
            return outcome

        outcome = classifier.classify(result)
        if outcome.kind is OutcomeKind.FAILED:
            logger.error("{msg}", msg=CopyToolFailure(src, result.exit_code).message)

        # Exit codes >= 8 can still come with partial transfers.
        items = extract_transferred(
            result.invocation_log_path,
            self.config.exclude_file_patterns,
            self.config.exclude_dir_names,
            self.line_classifier,
        )
        acc.add_transferred(items)
        logger.info("[{i}] {kind} (exit code {code}), {n} item(s) transferred",
                    i=index, kind=outcome.kind.value, code=result.exit_code, n=len(items))
        acc.record(outcome)
        return outcome

    def run(self, entries: Sequence[FolderEntry]) -> RunSummary:
        acc = RunAccumulator()
        with tqdm(
            entries,
            desc="Syncing folders",
            unit=" folder",
            dynamic_ncols=True,
            disable=not self.show_progress,
            file=sys.stderr,
        ) as bar:
            for index, entry in enumerate(bar, start=1):
                self.process_entry(index, entry, acc)
        return acc.summary()


# ------------------------------- Full run ---------------------------------- #

@dataclass(frozen=True)
class RunResult:
    summary: RunSummary
    report: str
    run_log_path: Path
    transferred_path: Path


def send_notification(
    settings: Settings,
    summary: RunSummary,
    run_log: Path,
    transferred_path: Path,
    *,
    simulate_only: bool,
    transport: Optional[MailTransport] = None,
    mail_credentials: Optional[CredentialProvider] = None,
) -> bool:
    """Last step of a run. Never raises; returns whether a mail went out."""
    if settings.email is None:
        logger.error("Notification skipped: no [Email] section configured.")
        return False
    try:
        if transport is None:
            creds = None
            if settings.email.auth and mail_credentials is not None:
                creds = mail_credentials.get()
            transport = SmtpTransport(
                settings.email.smtp_server,
                settings.email.smtp_port,
                use_tls=settings.email.use_tls,
                credentials=creds,
            )
        dispatcher = NotificationDispatcher(transport, settings.email.sender, settings.email.recipients)
        logger.complete()
        dispatcher.send(summary, run_log, transferred_path, simulate_only)
        return True
    except CredentialMissing as e:
        logger.error("Notification skipped: {msg}", msg=e.message)
    except NotifyError as e:
        logger.error("Notification failed: {msg}", msg=e.message)
    return False


def execute_run(
    settings: Settings,
    options: RunOptions,
    stamp: str,
    *,
    invoker: Optional[CopyInvoker] = None,
    mounter: Optional[ShareMounter] = None,
    share_credentials: Optional[CredentialProvider] = None,
    mail_credentials: Optional[CredentialProvider] = None,
    transport: Optional[MailTransport] = None,
    source_exists: Callable[[str], bool] = os.path.exists,
    show_progress: bool = False,
) -> RunResult:
    """
    One complete run. Raises ConfigError, MountError or CredentialMissing
    (share) before any folder is touched; everything after that is recorded
    in the summary instead of raised.
    """
    started = time.monotonic()
    logger.info("Starting sync run {stamp}: simulate={sim}, notify={notify}, alt_credentials={alt}",
                stamp=stamp, sim=options.simulate_only, notify=options.notify_enabled,
                alt=options.use_alternate_credentials)

    entries = read_folder_list(settings.folder_list)

    with contextlib.ExitStack() as stack:
        destination_root = settings.destination_root
        if options.use_alternate_credentials:
            if not settings.share_remote:
                raise ConfigError("--alt-credentials needs [Share] 'remote' in the config.")
            if share_credentials is None:
                raise ConfigError("No share credential provider configured.")
            creds = share_credentials.get()
            destination_root = stack.enter_context(
                mounted_share(mounter or NetUseShareMounter(), creds, settings.share_remote)
            )

        config = settings.run_config(options, destination_root)
        orchestrator = SyncOrchestrator(
            config,
            settings.log_dir,
            stamp,
            invoker=invoker or CopyInvoker(settings.robocopy),
            source_exists=source_exists,
            show_progress=show_progress,
        )
        summary = orchestrator.run(entries)

    transferred_path = write_transferred_report(
        summary.transferred_items, transferred_report_path(settings.log_dir, stamp)
    )
    report = render_report(
        summary,
        simulate_only=options.simulate_only,
        destination_root=config.destination_root,
        elapsed_seconds=time.monotonic() - started,
    )
    for line in report.splitlines():
        logger.info("{line}", line=line)

    run_log = run_log_path(settings.log_dir, stamp)
    if options.notify_enabled:
        send_notification(
            settings,
            summary,
            run_log,
            transferred_path,
            simulate_only=options.simulate_only,
            transport=transport,
            mail_credentials=mail_credentials,
        )

    return RunResult(summary=summary, report=report, run_log_path=run_log, transferred_path=transferred_path)
