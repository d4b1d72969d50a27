"""Error taxonomy for a sync run.

Setup errors (ConfigError, MountError) are fatal and abort the run before the
folder loop. Per-folder errors (DirectoryCreateError, CopyToolFailure) mark one
folder as failed and the loop continues. CredentialMissing and NotifyError only
ever cost the run its notification, except when the share credential is missing.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class RoboMirrorError(Exception):
    """Base error for the project."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(RoboMirrorError):
    """Folder list missing/empty or the INI file is unusable."""


class MountError(RoboMirrorError):
    """No free drive letter, or the share refused the connection."""


class DirectoryCreateError(RoboMirrorError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"Could not create destination '{path}': {reason}", {"path": path})
        self.path = path


class CopyToolFailure(RoboMirrorError):
    """The copy tool reported failure (exit code >= 8) or could not be launched."""

    def __init__(self, source_path: str, exit_code: Optional[int], reason: str = ""):
        text = f"Copy tool failed for '{source_path}'"
        if exit_code is not None:
            text += f" (exit code {exit_code})"
        if reason:
            text += f": {reason}"
        super().__init__(text, {"source_path": source_path, "exit_code": exit_code})
        self.source_path = source_path
        self.exit_code = exit_code


class CredentialMissing(RoboMirrorError):
    def __init__(self, purpose: str, identity: str):
        super().__init__(
            f"No stored '{purpose}' credential for {identity}. "
            "Run interactively or with --setup-credentials to store one.",
            {"purpose": purpose, "identity": identity},
        )
        self.purpose = purpose
        self.identity = identity


class NotifyError(RoboMirrorError):
    """The notification transport failed."""
