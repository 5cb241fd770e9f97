"""
Access credential and the thread-safe store that holds it.

A :class:`Credential` is immutable.  The :class:`CredentialStore` only
ever swaps whole credentials, so a reader can never observe a new
access token paired with an old refresh token.
"""

from __future__ import annotations

import hashlib
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from .exceptions import CredentialExpiredError


def hash_password(password: str) -> str:
    """Return the lowercase hex MD5 digest TTLock expects for passwords."""
    return hashlib.md5(password.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Credential:
    """An access/refresh token pair and its declared lifetime."""

    access_token: str
    refresh_token: str
    expires_in: int
    uid: int = 0
    issued_at: float = field(default_factory=time.time)

    @property
    def expires_at(self) -> float:
        """Epoch seconds at which the access token expires."""
        return self.issued_at + self.expires_in

    def __repr__(self) -> str:
        # Tokens are secrets; keep them out of logs and tracebacks.
        return (
            f"Credential(uid={self.uid!r}, expires_in={self.expires_in!r}, "
            f"issued_at={self.issued_at!r})"
        )


class CredentialStore:
    """Holds the single current :class:`Credential` for a client.

    ``read`` and ``replace`` take the same lock, but only for the
    duration of a reference copy or swap; no I/O ever happens under it.
    Concurrent readers therefore do serialise on the lock, but each one
    holds it for two attribute loads, so a reader never waits on a
    network call or on another reader doing work.  ``Credential`` is
    immutable, so the copied reference can be used after the lock is
    released without any reader seeing a mix of old and new fields.

    Once :meth:`mark_dead` has been called, ``read`` raises
    :class:`CredentialExpiredError`.
    """

    def __init__(self, credential: Credential) -> None:
        self._lock = threading.Lock()
        self._credential = credential
        self._error: Optional[BaseException] = None

    def read(self) -> Credential:
        with self._lock:
            credential = self._credential
            error = self._error
        if error is not None:
            raise CredentialExpiredError(
                "access token could not be renewed"
            ) from error
        return credential

    @property
    def access_token(self) -> str:
        return self.read().access_token

    def replace(self, credential: Credential) -> None:
        with self._lock:
            self._credential = credential

    def mark_dead(self, error: BaseException) -> None:
        """Put the store into its terminal state."""
        with self._lock:
            self._error = error

    @property
    def dead(self) -> bool:
        with self._lock:
            return self._error is not None

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error
