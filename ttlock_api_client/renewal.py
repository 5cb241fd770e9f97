"""
Background renewal of the TTLock access token.

The :class:`RenewalScheduler` runs in a single daemon thread owned by a
:class:`~ttlock_api_client.client.TTLockClient`.  Each cycle it reads
the current credential, sleeps for half of its declared lifetime
(capped at one day), then exchanges the refresh token for a new
credential.  A failed exchange is retried up to :data:`MAX_ATTEMPTS`
times with a fixed :data:`RETRY_DELAY` pause between attempts.  When
every attempt fails the store is marked dead, so that callers get a
:class:`~ttlock_api_client.exceptions.CredentialExpiredError` instead of
a stale token, and the process is optionally terminated.

The sleep is injectable: ``sleep(seconds)`` must return ``True`` when
the scheduler should stop.  The default waits on the scheduler's stop
event, so :meth:`RenewalScheduler.stop` interrupts a pending sleep.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Optional

from .credentials import Credential, CredentialStore
from .exceptions import RenewalExhaustedError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRY_DELAY = 2.0
MAX_REFRESH_INTERVAL = 24 * 60 * 60


def compute_refresh_interval(
    expires_in: float, max_interval: float = MAX_REFRESH_INTERVAL
) -> float:
    """Return how long to wait before renewing a token valid for ``expires_in`` seconds."""
    if expires_in <= 0:
        return 0.0
    return min(expires_in / 2, max_interval)


class RenewalScheduler:
    """Keeps a :class:`CredentialStore` populated with a live credential.

    Parameters
    ----------
    store : CredentialStore
        The store to read from and replace into.
    renew : callable
        ``renew(refresh_token) -> Credential``.  Any exception it raises
        counts as one failed attempt.
    terminate_on_failure : bool, optional
        When ``True``, exhausting the retry budget terminates the
        process with exit status 1 after marking the store dead.
    sleep : callable, optional
        ``sleep(seconds) -> bool`` returning ``True`` to request a stop.
    """

    def __init__(
        self,
        store: CredentialStore,
        renew: Callable[[str], Credential],
        *,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY,
        max_interval: float = MAX_REFRESH_INTERVAL,
        terminate_on_failure: bool = False,
        sleep: Optional[Callable[[float], bool]] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self._renew = renew
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.max_interval = max_interval
        self.terminate_on_failure = terminate_on_failure
        self._stop_event = threading.Event()
        self._sleep = sleep or self._stop_event.wait
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Start the renewal thread.  Calling it twice is an error."""
        if self._thread is not None:
            raise RuntimeError("renewal scheduler already started")
        self._thread = threading.Thread(
            target=self.run, name="ttlock-token-renewal", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Ask the renewal thread to exit and wait for it."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def run(self) -> None:
        """Sleep and renew until stopped or until renewal is exhausted."""
        while not self._stop_event.is_set():
            credential = self.store.read()
            interval = compute_refresh_interval(credential.expires_in, self.max_interval)
            logger.debug("Next access token renewal in %.0f seconds", interval)
            if self._sleep(interval):
                break
            if not self.renew(credential.refresh_token):
                break
        logger.debug("Token renewal loop exited")

    def renew(self, refresh_token: str) -> bool:
        """Exchange ``refresh_token`` for a new credential, with retries.

        Returns ``True`` when the store was updated and ``False`` when
        the scheduler should exit, either because a stop was requested
        or because every attempt failed.  A stop requested while an
        attempt is in flight never escalates.
        """
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                credential = self._renew(refresh_token)
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "Failed to refresh access token (attempt %d/%d): %s",
                    attempt,
                    self.max_attempts,
                    exc,
                )
                if attempt < self.max_attempts and self._sleep(self.retry_delay):
                    return False
                continue
            self.store.replace(credential)
            logger.info(
                "Access token refreshed on attempt %d, valid for %d seconds",
                attempt,
                credential.expires_in,
            )
            return True

        if self._stop_event.is_set():
            logger.info("Token renewal stopped during the final attempt; not escalating")
            return False
        self._escalate(RenewalExhaustedError(self.max_attempts, last_error))
        return False

    def _escalate(self, error: RenewalExhaustedError) -> None:
        self.store.mark_dead(error)
        logger.critical("%s", error)
        if self.terminate_on_failure:
            logger.critical("Terminating process: access token can no longer be renewed")
            os._exit(1)
