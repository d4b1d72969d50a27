r"""
Deployment configuration (INI).

    [Settings]
    folder_list = folders.txt
    destination_root = \\nas\backup
    log_dir = logs
    threads = 16
    retries = 2
    wait_seconds = 5
    robocopy = robocopy
    exclude_files = *.tmp, ~$*, thumbs.db, desktop.ini
    exclude_dirs = $RECYCLE.BIN, System Volume Information

    [Share]                       ; only used with --alt-credentials
    remote = \\nas\backup

    [Email]                       ; only used with --notify
    smtp_server = smtp.example.com
    smtp_port = 587
    use_tls = true
    auth = true
    from = backup@example.com
    to = ops@example.com, me@example.com

Relative paths resolve against the INI file's directory. Set [Email] auth = false
for a relay that accepts mail without logging in.
"""

from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import ConfigError
from .models import RunConfig, RunOptions

DEFAULT_EXCLUDE_FILES: Tuple[str, ...] = ("*.tmp", "~$*", "thumbs.db", "desktop.ini")
DEFAULT_EXCLUDE_DIRS: Tuple[str, ...] = ("$RECYCLE.BIN", "System Volume Information")
DEFAULT_THREADS = 16
DEFAULT_RETRIES = 2
DEFAULT_WAIT_SECONDS = 5


@dataclass(frozen=True)
class EmailSettings:
    smtp_server: str
    smtp_port: int
    use_tls: bool
    sender: str
    recipients: Tuple[str, ...]
    auth: bool = True


@dataclass(frozen=True)
class Settings:
    folder_list: Path
    destination_root: str
    log_dir: Path
    threads: int = DEFAULT_THREADS
    retries: int = DEFAULT_RETRIES
    wait_seconds: int = DEFAULT_WAIT_SECONDS
    robocopy: str = "robocopy"
    exclude_files: Tuple[str, ...] = DEFAULT_EXCLUDE_FILES
    exclude_dirs: Tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    share_remote: Optional[str] = None
    email: Optional[EmailSettings] = None

    def run_config(self, options: RunOptions, destination_root: Optional[str] = None) -> RunConfig:
        return RunConfig(
            simulate_only=options.simulate_only,
            notify_enabled=options.notify_enabled,
            destination_root=destination_root or self.destination_root,
            exclude_file_patterns=self.exclude_files,
            exclude_dir_names=self.exclude_dirs,
            concurrency_level=self.threads,
            retry_count=self.retries,
            retry_wait_seconds=self.wait_seconds,
        )


def parse_csv(s: str) -> List[str]:
    if not s:
        return []
    return [part.strip() for part in s.split(",") if part.strip()]


def safe_resolve(p: Path) -> Path:
    try:
        return p.expanduser().resolve(strict=False)
    except OSError:
        return p.expanduser().absolute()


def _resolve_against(base: Path, value: str) -> Path:
    p = Path(value).expanduser()
    if not p.is_absolute():
        p = base / p
    return safe_resolve(p)


def _get_int(cfg: configparser.ConfigParser, section: str, key: str, fallback: int, minimum: int) -> int:
    try:
        value = cfg.getint(section, key, fallback=fallback)
    except ValueError as e:
        raise ConfigError(f"[{section}] '{key}' must be an integer.") from e
    return max(minimum, value)


def _load_email(cfg: configparser.ConfigParser) -> Optional[EmailSettings]:
    if "Email" not in cfg:
        return None
    sec = cfg["Email"]
    server = sec.get("smtp_server", "").strip()
    if not server:
        raise ConfigError("[Email] 'smtp_server' not specified.")
    recipients = tuple(parse_csv(sec.get("to", "")))
    try:
        port = sec.getint("smtp_port", fallback=587)
        use_tls = sec.getboolean("use_tls", fallback=True)
        auth = sec.getboolean("auth", fallback=True)
    except ValueError as e:
        raise ConfigError(f"[Email] invalid value: {e}") from e
    return EmailSettings(
        smtp_server=server,
        smtp_port=port,
        use_tls=use_tls,
        sender=sec.get("from", "").strip() or f"robomirror@{server}",
        recipients=recipients,
        auth=auth,
    )


def load_settings(ini_path: Path) -> Settings:
    ini_path = safe_resolve(Path(ini_path))
    cfg = configparser.ConfigParser(interpolation=None)
    try:
        read_ok = cfg.read(ini_path, encoding="utf-8-sig")
    except configparser.Error as e:
        raise ConfigError(f"Malformed config file {ini_path}: {e}") from e
    if not read_ok:
        raise ConfigError(f"Failed to read config file: {ini_path}")

    if "Settings" not in cfg:
        raise ConfigError("Missing [Settings] section in config.")
    sec = cfg["Settings"]
    base = ini_path.parent

    destination_root = sec.get("destination_root", "").strip()
    if not destination_root:
        raise ConfigError("'destination_root' not specified in [Settings].")

    exclude_files = tuple(parse_csv(sec["exclude_files"])) if "exclude_files" in sec else DEFAULT_EXCLUDE_FILES
    exclude_dirs = tuple(parse_csv(sec["exclude_dirs"])) if "exclude_dirs" in sec else DEFAULT_EXCLUDE_DIRS

    share_remote = None
    if "Share" in cfg:
        share_remote = cfg["Share"].get("remote", "").strip() or None

    return Settings(
        folder_list=_resolve_against(base, sec.get("folder_list", "folders.txt").strip()),
        destination_root=destination_root,
        log_dir=_resolve_against(base, sec.get("log_dir", "logs").strip()),
        threads=_get_int(cfg, "Settings", "threads", DEFAULT_THREADS, 1),
        retries=_get_int(cfg, "Settings", "retries", DEFAULT_RETRIES, 0),
        wait_seconds=_get_int(cfg, "Settings", "wait_seconds", DEFAULT_WAIT_SECONDS, 0),
        robocopy=sec.get("robocopy", "robocopy").strip() or "robocopy",
        exclude_files=exclude_files,
        exclude_dirs=exclude_dirs,
        share_remote=share_remote,
        email=_load_email(cfg),
    )
