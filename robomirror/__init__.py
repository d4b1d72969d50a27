"""
robomirror - scheduled folder mirroring with robocopy.

Reads a folder list, mirrors every folder onto a destination tree (optionally
a network share mapped for the run), classifies each robocopy exit code,
collects the items robocopy reported as transferred, and mails a summary
with the logs attached.
"""

from .errors import (
    ConfigError,
    CopyToolFailure,
    CredentialMissing,
    DirectoryCreateError,
    MountError,
    NotifyError,
    RoboMirrorError,
)
from .models import (
    FolderEntry,
    FolderOutcome,
    InvocationResult,
    OutcomeKind,
    RunConfig,
    RunOptions,
    RunSummary,
    TransferredItem,
)

__version__ = "0.1.0"
