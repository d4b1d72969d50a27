"""
Stored credentials, keyed by the executing identity and machine.

The orchestrator only ever calls CredentialProvider.get(). Prompting for a
missing secret happens in ensure_credentials_exist(), which only the
interactive entry point calls.
"""

from __future__ import annotations

import getpass
import socket
from typing import Any, Callable, Optional, Protocol

import keyring
from keyring.errors import KeyringError
from loguru import logger

from .errors import CredentialMissing
from .models import Credentials

SERVICE_NAME = "robomirror"


class CredentialProvider(Protocol):
    purpose: str

    def get(self) -> Credentials:
        """Return the stored credential or raise CredentialMissing."""
        ...

    def store(self, credentials: Credentials) -> None:
        ...


def current_identity() -> str:
    return f"{getpass.getuser()}@{socket.gethostname()}"


class KeyringCredentialProvider:
    """
    Username and secret live as two keyring entries under SERVICE_NAME:
    '<identity>:<purpose>:username' and '<identity>:<purpose>:secret'.
    """

    def __init__(self, purpose: str, identity: Optional[str] = None, backend: Any = keyring):
        self.purpose = purpose
        self.identity = identity or current_identity()
        self.backend = backend

    def _key(self, field: str) -> str:
        return f"{self.identity}:{self.purpose}:{field}"

    def get(self) -> Credentials:
        try:
            username = self.backend.get_password(SERVICE_NAME, self._key("username"))
            secret = self.backend.get_password(SERVICE_NAME, self._key("secret"))
        except KeyringError as e:
            logger.error("Keyring lookup failed for '{p}': {e}", p=self.purpose, e=e)
            raise CredentialMissing(self.purpose, self.identity) from e
        if not username or secret is None:
            raise CredentialMissing(self.purpose, self.identity)
        return Credentials(username=username, secret=secret)

    def store(self, credentials: Credentials) -> None:
        self.backend.set_password(SERVICE_NAME, self._key("username"), credentials.username)
        self.backend.set_password(SERVICE_NAME, self._key("secret"), credentials.secret)
        logger.info("Stored '{p}' credential for {who}", p=self.purpose, who=self.identity)


def ensure_credentials_exist(
    provider: CredentialProvider,
    prompt_user: Callable[[str], str] = input,
    prompt_secret: Callable[[str], str] = getpass.getpass,
) -> Credentials:
    """One-time interactive setup: prompt and store only when nothing is stored."""
    try:
        return provider.get()
    except CredentialMissing:
        pass

    print(f"No stored '{provider.purpose}' credential found; it will be saved for future runs.")
    username = prompt_user(f"{provider.purpose} username: ").strip()
    secret = prompt_secret(f"{provider.purpose} password: ")
    if not username:
        raise CredentialMissing(provider.purpose, getattr(provider, "identity", current_identity()))
    creds = Credentials(username=username, secret=secret)
    provider.store(creds)
    return creds
