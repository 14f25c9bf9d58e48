"""Operator access gate.

The dashboard asks one question: is this session token active? The default
implementation checks a single shared credential and hands out opaque
tokens. Replacing it with a real identity provider only means providing
another ``AccessGate``.
"""

import hmac
import secrets
import threading
from abc import ABC, abstractmethod

import structlog

from orderdesk.utils.settings import setting

logger = structlog.get_logger(__name__)


class AccessGate(ABC):
    @abstractmethod
    def is_active(self, token: str | None) -> bool:
        """Whether ``token`` belongs to a signed-in operator."""
        ...


class SharedCredentialGate(AccessGate):
    def __init__(self, username: str, password: str):
        self._username = username
        self._password = password
        self._tokens: set[str] = set()
        self._lock = threading.Lock()

    def login(self, username: str, password: str) -> str | None:
        """Return a fresh session token, or None when the credential is wrong."""
        matches = hmac.compare_digest(username.encode(), self._username.encode()) & hmac.compare_digest(
            password.encode(), self._password.encode()
        )
        if not matches:
            logger.warning("Operator login rejected", username=username)
            return None

        token = secrets.token_urlsafe(32)
        with self._lock:
            self._tokens.add(token)
        logger.info("Operator signed in", username=username)
        return token

    def logout(self, token: str | None) -> None:
        with self._lock:
            self._tokens.discard(token)

    def is_active(self, token: str | None) -> bool:
        if not token:
            return False
        with self._lock:
            return token in self._tokens


_gate: AccessGate | None = None


def get_gate() -> AccessGate:
    """Return the configured gate (singleton), built from the custom settings."""
    global _gate
    if _gate is None:
        _gate = SharedCredentialGate(
            str(setting("operator_username")),
            str(setting("operator_password")),
        )
    return _gate


def reset_gate() -> None:
    """Forget the gate and every session (useful for testing)."""
    global _gate
    _gate = None
