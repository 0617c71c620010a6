"""
Caller authentication.

An :class:`Authenticator` turns a credential into a :class:`User`.  It is
constructed with its own repository and handed to callers explicitly (FastAPI
dependency, CLI context), so tests swap it out without touching globals.

:class:`EmailAuthenticator` is the bundled development authenticator: the
credential is the user's email, sent in ``settings.AUTH_HEADER`` by API
clients and stored in ``~/.backoffice/auth.json`` by ``backoffice auth login``.
Production deployments put a real identity provider in front and inject a
different implementation.
"""

import json
import logging
import os
from typing import Optional, Protocol

from backoffice.core.config import settings
from backoffice.core.exceptions import AuthenticationError
from backoffice.models.user import User
from backoffice.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

AUTH_FILE_NAME = "auth.json"


class Authenticator(Protocol):
    async def authenticate(self, credential: Optional[str]) -> User:
        """Return the user for ``credential`` or raise :class:`AuthenticationError`."""
        ...


class EmailAuthenticator:
    """Resolve callers by email address against the ``users`` table."""

    def __init__(self, user_repo: UserRepository):
        self._repo = user_repo

    async def authenticate(self, credential: Optional[str]) -> User:
        if not credential or not credential.strip():
            raise AuthenticationError()
        user = await self._repo.get_by_email(credential)
        if user is None:
            logger.info("Authentication failed for unknown email %r", credential)
            raise AuthenticationError(f"Unknown user '{credential.strip()}'")
        return user


# ── CLI credential store ──


def _auth_file(config_dir: Optional[str] = None) -> str:
    return os.path.join(config_dir or settings.CLI_CONFIG_DIR, AUTH_FILE_NAME)


def save_cli_identity(email: str, config_dir: Optional[str] = None) -> str:
    """Persist the CLI login; returns the file written."""
    path = _auth_file(config_dir)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump({"email": email.strip().lower()}, fh, indent=2)
    return path


def load_cli_identity(config_dir: Optional[str] = None) -> Optional[str]:
    path = _auth_file(config_dir)
    if not os.path.exists(path):
        return None
    try:
        with open(path, encoding="utf-8") as fh:
            return json.load(fh).get("email")
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable CLI auth file %s: %s", path, exc)
        return None


def clear_cli_identity(config_dir: Optional[str] = None) -> bool:
    path = _auth_file(config_dir)
    if os.path.exists(path):
        os.remove(path)
        return True
    return False
