from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from keyring.errors import KeyringError
from loguru import logger

from .config import Settings, load_settings
from .credentials import KeyringCredentialProvider, ensure_credentials_exist
from .errors import CredentialMissing, RoboMirrorError
from .logging_setup import configure_logging
from .models import RunOptions
from .orchestrator import execute_run
from .paths import run_log_path, run_stamp

EXIT_OK = 0
EXIT_FOLDER_FAILURES = 1
EXIT_FATAL = 2


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="robomirror",
        description="Mirror a list of folders onto a backup destination with robocopy.",
    )
    p.add_argument("-c", "--config", default="robomirror.ini",
                   help="Path to the INI config (default: ./robomirror.ini)")
    p.add_argument("-d", "--dry-run", action="store_true",
                   help="Simulate: robocopy lists what it would do, nothing is copied")
    p.add_argument("--notify", action="store_true", help="Mail a summary with the logs attached")
    p.add_argument("--alt-credentials", action="store_true",
                   help="Map [Share] remote with the stored share credential and sync onto it")
    p.add_argument("--setup-credentials", action="store_true",
                   help="Prompt for and store the share/SMTP credentials, then exit")

    # Logging
    p.add_argument("--log-level", default="INFO",
                   choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                   help="Log level (default: INFO)")
    p.add_argument("--silent", action="store_true", help="No console output or progress bars (still logs).")
    p.add_argument("--no-progress-bar", action="store_true",
                   help="Disable the tqdm progress bar. Console logging is enabled when this is set.")
    return p


def setup_credentials(settings: Settings) -> int:
    providers = []
    if settings.share_remote:
        providers.append(KeyringCredentialProvider("share"))
    if settings.email is not None and settings.email.auth:
        providers.append(KeyringCredentialProvider("smtp"))
    if not providers:
        logger.warning("Nothing to set up: config has neither [Share] nor [Email].")
        return EXIT_OK
    for provider in providers:
        try:
            ensure_credentials_exist(provider)
        except (CredentialMissing, KeyringError) as e:
            logger.error("Credential setup for '{p}' failed: {e}", p=provider.purpose, e=e)
            return EXIT_FATAL
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    console_log_enabled = (not args.silent) and bool(args.no_progress_bar)
    show_progress = (not args.silent) and (not args.no_progress_bar)

    # Logging goes to loguru's default stderr sink until the log dir is known.
    try:
        settings = load_settings(Path(args.config))
    except RoboMirrorError as e:
        logger.error("{msg}", msg=e.message)
        return EXIT_FATAL

    stamp = run_stamp()
    configure_logging(run_log_path(settings.log_dir, stamp), args.log_level, console_enabled=console_log_enabled)
    logger.info("Config='{cfg}', dry_run={dr}, silent={si}, no_progress_bar={npb}",
                cfg=args.config, dr=args.dry_run, si=args.silent, npb=args.no_progress_bar)

    if args.setup_credentials:
        return setup_credentials(settings)

    options = RunOptions(
        simulate_only=args.dry_run,
        notify_enabled=args.notify,
        use_alternate_credentials=args.alt_credentials,
    )
    share_credentials = KeyringCredentialProvider("share")
    mail_credentials = KeyringCredentialProvider("smtp")

    if sys.stdin.isatty() and not args.silent:
        try:
            if options.use_alternate_credentials:
                ensure_credentials_exist(share_credentials)
            if options.notify_enabled and settings.email is not None and settings.email.auth:
                ensure_credentials_exist(mail_credentials)
        except (CredentialMissing, KeyringError) as e:
            # The run decides what a missing credential costs.
            logger.warning("Credential setup incomplete: {e}", e=e)

    try:
        result = execute_run(
            settings,
            options,
            stamp,
            share_credentials=share_credentials,
            mail_credentials=mail_credentials,
            show_progress=show_progress,
        )
    except RoboMirrorError as e:
        logger.error("Run aborted: {msg}", msg=e.message)
        return EXIT_FATAL
    finally:
        logger.complete()

    if not args.silent:
        print(result.report)

    return EXIT_FOLDER_FAILURES if result.summary.has_failures else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
