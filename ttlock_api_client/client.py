"""
Client implementation for the TTLock cloud REST API.

This module defines the :class:`TTLockClient` class, which
authenticates against the TTLock OAuth endpoint with a username and
password and performs requests against the lock, passcode and eKey
endpoints.  The access token obtained at construction is kept valid by
a background :class:`~ttlock_api_client.renewal.RenewalScheduler` that
exchanges the refresh token well before the access token expires.

Usage
-----

.. code-block:: python

    from ttlock_api_client import TTLockClient

    with TTLockClient(
        client_id="abc123",
        client_secret="shhsecret",
        username="user@example.com",
        password="plain-text-password",
        region="eu",
    ) as client:
        for lock in client.iter_locks():
            print(lock.lock_id, lock.lock_alias)

TTLock reports errors through an ``errcode`` field in the response
body rather than through the HTTP status.  Every non-zero code is
raised as :class:`~ttlock_api_client.exceptions.TTLockAPIError`.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Union

import requests
from pydantic import ValidationError

from .credentials import Credential, CredentialStore, hash_password
from .exceptions import (
    TTLockAPIError,
    TTLockAuthError,
    TTLockError,
    TTLockTransportError,
    raise_for_errcode,
)
from .models import (
    Lock,
    LockDetail,
    LockList,
    Passcode,
    PasscodeList,
    PasscodeType,
    RandomPasscode,
    SentKey,
    TokenResponse,
)
from .renewal import RenewalScheduler

logger = logging.getLogger(__name__)

CN_BASE_URL = "https://cnapi.ttlock.com"
EU_BASE_URL = "https://euapi.ttlock.com"

DEFAULT_TIMEOUT = 10.0
DEFAULT_ITER_PAGE_SIZE = 200

DateLike = Union[int, datetime]


def to_millis(value: DateLike) -> int:
    """Convert a datetime or epoch-milliseconds value to epoch milliseconds.

    Naive datetimes are interpreted as local time.
    """
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    return int(value)


def _now_millis() -> int:
    return int(time.time() * 1000)


class TTLockClient:
    """A client for the TTLock cloud API.

    Parameters
    ----------
    client_id : str
        The ``client_id`` of your TTLock open platform application.
    client_secret : str
        The matching ``client_secret``.
    username : str
        The TTLock account used to obtain the access token.
    password : str
        The plain text account password.  Only its MD5 digest is kept
        and sent, as the TTLock OAuth endpoint requires.
    region : str, optional
        ``"cn"`` for the mainland China servers (the default) or
        ``"eu"`` for the European servers.
    base_url : str, optional
        Override the API base URL derived from ``region``.
    timeout : float, optional
        Timeout in seconds applied to every HTTP request.
    session : requests.Session, optional
        Session used for all requests.  A new one is created when not
        supplied and is closed by :meth:`close`.
    auto_refresh : bool, optional
        Start the background renewal thread after the token has been
        obtained.  Defaults to ``True``.
    terminate_on_failure : bool, optional
        Terminate the process when the token cannot be renewed, instead
        of failing subsequent calls with
        :class:`~ttlock_api_client.exceptions.CredentialExpiredError`.

    Raises
    ------
    ValueError
        If a required argument is missing or ``region`` is unknown.
    TTLockAuthError
        If the initial access token cannot be obtained.
    """

    _DEFAULT_BASE_URLS = {
        "cn": CN_BASE_URL,
        "eu": EU_BASE_URL,
    }
    _TOKEN_PATH = "/oauth2/token"

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        region: str = "cn",
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        auto_refresh: bool = True,
        terminate_on_failure: bool = False,
    ) -> None:
        if not client_id:
            raise ValueError("client_id must be provided")
        if not client_secret:
            raise ValueError("client_secret must be provided")
        if not username:
            raise ValueError("username must be provided")
        if not password:
            raise ValueError("password must be provided")

        region = region.lower()
        if region not in self._DEFAULT_BASE_URLS:
            raise ValueError("region must be either 'cn' or 'eu', got %r" % region)

        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self._password_hash = hash_password(password)
        self.region = region
        self.base_url = base_url or self._DEFAULT_BASE_URLS[region]
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()

        try:
            credential = self._acquire_access_token()
        except TTLockAuthError:
            if self._owns_session:
                self.session.close()
            raise

        self._store = CredentialStore(credential)
        self._scheduler = RenewalScheduler(
            self._store,
            self.refresh_access_token,
            terminate_on_failure=terminate_on_failure,
        )
        if auto_refresh:
            self._scheduler.start()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Stop the renewal thread and release the HTTP session."""
        self._scheduler.stop(timeout=self.timeout)
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "TTLockClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def _request_token(self, data: Dict[str, Any]) -> Credential:
        payload = self._request("POST", self._TOKEN_PATH, data=data)
        try:
            token = TokenResponse.model_validate(payload)
        except ValidationError as exc:
            raise TTLockTransportError(
                f"Token response is missing required fields: {exc}"
            ) from exc
        return token.to_credential()

    def _acquire_access_token(self) -> Credential:
        """Obtain the first credential using the account password.

        Every failure is raised as :class:`TTLockAuthError`.  When the
        server answered with an ``errcode``, it is preserved on the
        exception's ``code`` attribute.
        """
        data = {
            "clientId": self.client_id,
            "clientSecret": self.client_secret,
            "username": self.username,
            "password": self._password_hash,
        }
        try:
            credential = self._request_token(data)
        except TTLockAPIError as exc:
            raise TTLockAuthError(
                f"Failed to obtain access token: {exc}", code=exc.code
            ) from exc
        except TTLockError as exc:
            raise TTLockAuthError(f"Failed to obtain access token: {exc}") from exc
        logger.info(
            "Obtained TTLock access token for uid %s, valid for %d seconds",
            credential.uid,
            credential.expires_in,
        )
        return credential

    def refresh_access_token(self, refresh_token: str) -> Credential:
        """Exchange ``refresh_token`` for a new credential.

        This does not update the client; the renewal scheduler installs
        the returned credential itself.
        """
        data = {
            "clientId": self.client_id,
            "clientSecret": self.client_secret,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        return self._request_token(data)

    def current_access_token(self) -> str:
        """Return the access token currently in use.

        Raises
        ------
        CredentialExpiredError
            If the token could not be renewed.
        """
        return self._store.access_token

    @property
    def credential(self) -> Credential:
        return self._store.read()

    @property
    def credential_store(self) -> CredentialStore:
        return self._store

    @property
    def scheduler(self) -> RenewalScheduler:
        return self._scheduler

    # ------------------------------------------------------------------
    # HTTP request helpers
    # ------------------------------------------------------------------
    def _prepare_url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Perform an HTTP request and return the decoded JSON body.

        Form data is sent ``application/x-www-form-urlencoded``.

        Raises
        ------
        TTLockTransportError
            If the request fails, the server returns an HTTP error
            status, or the body is not a JSON object.
        TTLockAPIError
            If the body carries a non-zero ``errcode``.
        """
        url = self._prepare_url(path)
        logger.debug("%s %s", method.upper(), url)
        try:
            response = self.session.request(
                method=method.upper(),
                url=url,
                params=params,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TTLockTransportError(f"Failed to connect to {url}: {exc}") from exc

        if response.status_code >= 400:
            raise TTLockTransportError(
                f"{response.status_code} Error for {url}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise TTLockTransportError(
                f"Invalid JSON in response from {url}: {exc}"
            ) from exc
        if not isinstance(payload, dict):
            raise TTLockTransportError(
                f"Unexpected response from {url}: {payload!r}"
            )

        raise_for_errcode(payload)
        return payload

    def _api_request(self, method: str, path: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Stamp the common authentication fields and perform the request.

        ``fields`` whose value is ``None`` are left out.  GET requests
        send the fields as query parameters, other verbs as a form body.
        """
        payload: Dict[str, Any] = {
            "clientId": self.client_id,
            "accessToken": self.current_access_token(),
        }
        for key, value in fields.items():
            if value is not None:
                payload[key] = value
        payload["date"] = _now_millis()
        if method.upper() == "GET":
            return self._request(method, path, params=payload)
        return self._request(method, path, data=payload)

    @staticmethod
    def _decode(model: Any, payload: Dict[str, Any]) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise TTLockTransportError(
                f"Unexpected {model.__name__} response: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Locks
    # ------------------------------------------------------------------
    def get_lock_list(
        self,
        page_no: int = 1,
        page_size: int = 20,
        *,
        lock_alias: Optional[str] = None,
        group_id: Optional[int] = None,
    ) -> LockList:
        """Return one page of the account's locks.

        ``lock_alias`` and ``group_id`` filter the list when given.
        """
        payload = self._api_request(
            "GET",
            "/v3/lock/list",
            {
                "pageNo": page_no,
                "pageSize": page_size,
                "lockAlias": lock_alias or None,
                "groupId": group_id or None,
            },
        )
        return self._decode(LockList, payload)

    def get_lock_detail(self, lock_id: int) -> LockDetail:
        payload = self._api_request("GET", "/v3/lock/detail", {"lockId": lock_id})
        return self._decode(LockDetail, payload)

    def iter_locks(
        self,
        *,
        lock_alias: Optional[str] = None,
        group_id: Optional[int] = None,
        page_size: int = DEFAULT_ITER_PAGE_SIZE,
    ) -> Iterator[Lock]:
        """Yield every lock of the account, fetching pages as needed."""
        page_no = 0
        while True:
            page_no += 1
            page = self.get_lock_list(
                page_no, page_size, lock_alias=lock_alias, group_id=group_id
            )
            if not page.items:
                return
            yield from page.items
            if page_no >= page.pages:
                return

    # ------------------------------------------------------------------
    # Passcodes
    # ------------------------------------------------------------------
    def get_random_passcode(
        self,
        lock_id: int,
        passcode_type: Union[PasscodeType, int],
        start_date: DateLike,
        end_date: Optional[DateLike] = None,
        *,
        name: Optional[str] = None,
    ) -> RandomPasscode:
        """Generate a random passcode on the cloud.

        The validity period is precise to the hour, so ``start_date``
        and ``end_date`` should fall on the hour.  ``end_date`` is not
        needed for permanent or one-time passcodes.
        """
        payload = self._api_request(
            "POST",
            "/v3/keyboardPwd/get",
            {
                "lockId": lock_id,
                "keyboardPwdType": int(passcode_type),
                "keyboardPwdName": name or None,
                "startDate": to_millis(start_date),
                "endDate": to_millis(end_date) if end_date else None,
            },
        )
        return self._decode(RandomPasscode, payload)

    def get_passcode_list(
        self,
        lock_id: int,
        page_no: int = 1,
        page_size: int = 20,
        *,
        order_by: int = 1,
        search: Optional[str] = None,
    ) -> PasscodeList:
        """Return one page of the passcodes of a lock.

        ``order_by`` is 0 for ascending by name, 1 for descending by
        creation time and 2 for descending by name.
        """
        payload = self._api_request(
            "GET",
            "/v3/lock/listKeyboardPwd",
            {
                "lockId": lock_id,
                "pageNo": page_no,
                "pageSize": page_size,
                "orderBy": order_by,
                "searchStr": search or None,
            },
        )
        return self._decode(PasscodeList, payload)

    def iter_passcodes(
        self,
        lock_id: int,
        *,
        order_by: int = 1,
        search: Optional[str] = None,
        page_size: int = DEFAULT_ITER_PAGE_SIZE,
    ) -> Iterator[Passcode]:
        """Yield every passcode of a lock, fetching pages as needed."""
        page_no = 0
        while True:
            page_no += 1
            page = self.get_passcode_list(
                lock_id, page_no, page_size, order_by=order_by, search=search
            )
            if not page.items:
                return
            yield from page.items
            if page_no >= page.pages:
                return

    # ------------------------------------------------------------------
    # eKeys
    # ------------------------------------------------------------------
    def send_key(
        self,
        lock_id: int,
        receiver_username: str,
        key_name: str,
        start_date: DateLike,
        end_date: DateLike,
        *,
        remarks: Optional[str] = None,
        remote_enable: Optional[int] = None,
        key_right: Optional[int] = None,
        create_user: Optional[int] = None,
    ) -> SentKey:
        """Send an eKey for ``lock_id`` to another TTLock account.

        Parameters
        ----------
        remote_enable : int, optional
            1 to allow remote unlocking, 2 to forbid it.
        key_right : int, optional
            1 to grant admin rights with the key.
        create_user : int, optional
            1 to create the receiver's account when ``receiver_username``
            is an email address or phone number.
        """
        payload = self._api_request(
            "POST",
            "/v3/key/send",
            {
                "lockId": lock_id,
                "receiverUsername": receiver_username,
                "keyName": key_name,
                "startDate": to_millis(start_date),
                "endDate": to_millis(end_date),
                "remarks": remarks or None,
                "remoteEnable": remote_enable or None,
                "keyRight": key_right or None,
                "createUser": create_user or None,
            },
        )
        return self._decode(SentKey, payload)
