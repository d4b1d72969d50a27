"""Map an authenticated network share to a free drive letter for one run."""

from __future__ import annotations

import os
import string
import subprocess
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Protocol

from loguru import logger

from .errors import MountError
from .models import Credentials

# Searched from Z: downwards; A-C are never handed out.
CANDIDATE_LETTERS = tuple(reversed(string.ascii_uppercase[3:]))


class ShareMounter(Protocol):
    def acquire(self, credentials: Credentials, remote_share: str) -> str:
        ...

    def release(self, mounted_root: str) -> None:
        ...


def _drive_in_use(letter: str) -> bool:
    return os.path.exists(f"{letter}:\\")


class NetUseShareMounter:
    def __init__(
        self,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        drive_in_use: Callable[[str], bool] = _drive_in_use,
    ):
        self.runner = runner
        self.drive_in_use = drive_in_use

    def free_letter(self) -> Optional[str]:
        for letter in CANDIDATE_LETTERS:
            if not self.drive_in_use(letter):
                return letter
        return None

    def _net_use(self, args):
        return self.runner(
            ["net", "use", *args],
            shell=False,
            check=False,
            capture_output=True,
            text=True,
            errors="replace",
        )

    def acquire(self, credentials: Credentials, remote_share: str) -> str:
        letter = self.free_letter()
        if letter is None:
            raise MountError("No free drive letter available to map the share.", {"share": remote_share})

        drive = f"{letter}:"
        logger.info("Mapping '{share}' to {drive} as '{user}'", share=remote_share, drive=drive,
                    user=credentials.username)
        try:
            proc = self._net_use([
                drive,
                remote_share,
                credentials.secret,
                f"/user:{credentials.username}",
                "/persistent:no",
            ])
        except OSError as e:
            raise MountError(f"Could not run 'net use': {e}", {"share": remote_share}) from e

        if proc.returncode != 0:
            reason = (proc.stderr or proc.stdout or "").strip()
            raise MountError(
                f"Mapping '{remote_share}' to {drive} failed (exit code {proc.returncode}): {reason}",
                {"share": remote_share, "drive": drive, "exit_code": proc.returncode},
            )
        return drive + "\\"

    def release(self, mounted_root: str) -> None:
        drive = mounted_root.rstrip("\\/")
        try:
            proc = self._net_use([drive, "/delete", "/y"])
        except OSError as e:
            logger.error("Could not release {drive}: {e}", drive=drive, e=e)
            return
        if proc.returncode != 0:
            logger.error("Releasing {drive} failed (exit code {code}): {err}", drive=drive,
                         code=proc.returncode, err=(proc.stderr or "").strip())
        else:
            logger.info("Released {drive}", drive=drive)


@contextmanager
def mounted_share(mounter: ShareMounter, credentials: Credentials, remote_share: str) -> Iterator[str]:
    """Acquire the share; release it on every exit path."""
    root = mounter.acquire(credentials, remote_share)
    try:
        yield root
    finally:
        mounter.release(root)
