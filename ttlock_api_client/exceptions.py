"""
Custom exception types and error codes for the TTLock API client.

Every TTLock response carries an ``errcode``/``errmsg`` pair instead of
an HTTP error status.  Non-zero codes are mapped onto :class:`ErrorCode`
so that callers can test for a named condition without matching on
message text::

    try:
        client.get_lock_detail(lock_id)
    except TTLockAPIError as exc:
        if exc.is_code(ErrorCode.LOCK_NOT_EXIST):
            ...
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, Optional, Union


class ErrorCode(IntEnum):
    """Application error codes returned in the ``errcode`` field."""

    # Common
    OPERATION_FAILED = 1
    CLIENT_ID_NOT_EXIST = 10000
    INVALID_CLIENT = 10001
    TOKEN_NOT_EXIST = 10003
    TOKEN_UNAUTHORIZED = 10004
    INVALID_USERNAME_OR_PASSWORD = 10007
    INVALID_REFRESH_TOKEN = 10011
    NOT_LOCK_ADMIN = 20002
    INVALID_USERNAME_FORMAT = 30002
    USER_ALREADY_EXISTS = 30003
    INVALID_DELETE_USER_ID = 30004
    PASSWORD_MUST_BE_MD5 = 30005
    RATE_LIMIT_EXCEEDED = 30006
    INVALID_REQUEST_TIME = 80000
    INVALID_JSON_FORMAT = 80002
    SYSTEM_INTERNAL_ERROR = 90000
    INVALID_PARAMETER = -3
    PERMISSION_DENIED = -2018
    DELETE_OR_TRANSFER_LOCKS = -4063

    # Locks
    LOCK_NOT_EXIST = -1003
    LOCK_FROZEN = -2025
    CANNOT_TRANSFER_LOCK_TO_SELF = -3011
    LOCK_OPERATION_NOT_SUPPORTED = -4043
    STORAGE_FULL = -4056
    NB_DEVICE_NOT_REGISTERED = -4067
    AUTO_LOCK_TIME_LIMIT_EXCEEDED = -4082

    # eKeys
    KEY_NOT_EXIST = -1008
    GROUP_NAME_EXISTS = -1016
    GROUP_NOT_EXIST = -1018
    ACCOUNT_BOUND_CANNOT_RECEIVE_KEY = -1027
    CANNOT_SEND_KEY_TO_SELF = -2019
    CANNOT_SEND_KEY_TO_ADMIN = -2020
    CANNOT_MODIFY_KEY_VALIDITY = -2023
    RECEIVER_NOT_REGISTERED = -4064

    # Passcodes
    LOCK_NO_PASSCODE_DATA = -1007
    PASSCODE_NOT_EXIST = -2009
    INVALID_PASSCODE_LENGTH = -3006
    PASSCODE_ALREADY_EXISTS = -3007
    CANNOT_MODIFY_UNUSED_PASSCODE = -3008
    CUSTOM_PASSCODE_SPACE_FULL = -3009

    # Gateways and WiFi locks
    NO_AVAILABLE_GATEWAY = -2012
    GATEWAY_OFFLINE = -3002
    GATEWAY_BUSY = -3003
    CANNOT_TRANSFER_GATEWAY_TO_SELF = -3016
    WIFI_LOCK_NOT_CONFIGURED = -3034
    WIFI_IN_POWER_SAVING_MODE = -3035
    LOCK_OFFLINE = -3036
    LOCK_BUSY = -3037
    GATEWAY_NOT_EXIST = -4037

    # IC cards and fingerprints
    IC_CARD_NOT_EXIST = -1021
    FINGERPRINT_NOT_EXIST = -1023

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES.get(self, "unknown error")


_ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.OPERATION_FAILED: "operation failed",
    ErrorCode.CLIENT_ID_NOT_EXIST: "client_id does not exist",
    ErrorCode.INVALID_CLIENT: "invalid client, client_id or client_secret is wrong",
    ErrorCode.TOKEN_NOT_EXIST: "token does not exist",
    ErrorCode.TOKEN_UNAUTHORIZED: "token unauthorized, expired or revoked",
    ErrorCode.INVALID_USERNAME_OR_PASSWORD: "invalid username or password",
    ErrorCode.INVALID_REFRESH_TOKEN: "invalid refresh_token",
    ErrorCode.NOT_LOCK_ADMIN: "not the lock admin",
    ErrorCode.INVALID_USERNAME_FORMAT: "username may only contain digits and letters",
    ErrorCode.USER_ALREADY_EXISTS: "user already exists",
    ErrorCode.INVALID_DELETE_USER_ID: (
        "invalid userid to delete, only accounts registered by this app can be deleted"
    ),
    ErrorCode.PASSWORD_MUST_BE_MD5: "password must be MD5 hashed",
    ErrorCode.RATE_LIMIT_EXCEEDED: "API call rate limit exceeded",
    ErrorCode.INVALID_REQUEST_TIME: "request date must be within five minutes of the current time",
    ErrorCode.INVALID_JSON_FORMAT: "malformed JSON",
    ErrorCode.SYSTEM_INTERNAL_ERROR: "internal system error",
    ErrorCode.INVALID_PARAMETER: "invalid parameter",
    ErrorCode.PERMISSION_DENIED: (
        "permission denied, the access token must belong to a lock admin "
        "or a valid eKey user"
    ),
    ErrorCode.DELETE_OR_TRANSFER_LOCKS: "delete or transfer all locks of the account first",
    ErrorCode.LOCK_NOT_EXIST: "lock does not exist",
    ErrorCode.LOCK_FROZEN: "lock is frozen and cannot be operated",
    ErrorCode.CANNOT_TRANSFER_LOCK_TO_SELF: "cannot transfer a lock to yourself",
    ErrorCode.LOCK_OPERATION_NOT_SUPPORTED: "this lock does not support the operation",
    ErrorCode.STORAGE_FULL: "storage is full, operation failed",
    ErrorCode.NB_DEVICE_NOT_REGISTERED: "NB device not registered, cannot start NB operation",
    ErrorCode.AUTO_LOCK_TIME_LIMIT_EXCEEDED: "auto lock time out of range",
    ErrorCode.KEY_NOT_EXIST: "eKey does not exist",
    ErrorCode.GROUP_NAME_EXISTS: "group name already exists",
    ErrorCode.GROUP_NOT_EXIST: "group does not exist",
    ErrorCode.ACCOUNT_BOUND_CANNOT_RECEIVE_KEY: (
        "account is bound to another account and cannot receive eKeys"
    ),
    ErrorCode.CANNOT_SEND_KEY_TO_SELF: "cannot send an eKey to your own account",
    ErrorCode.CANNOT_SEND_KEY_TO_ADMIN: "cannot send an eKey to the admin",
    ErrorCode.CANNOT_MODIFY_KEY_VALIDITY: "eKey validity period cannot be changed now",
    ErrorCode.RECEIVER_NOT_REGISTERED: "receiver account is not registered",
    ErrorCode.LOCK_NO_PASSCODE_DATA: "lock has no passcode data",
    ErrorCode.PASSCODE_NOT_EXIST: "passcode does not exist",
    ErrorCode.INVALID_PASSCODE_LENGTH: "invalid passcode length, must be 4-9 digits",
    ErrorCode.PASSCODE_ALREADY_EXISTS: "the same passcode already exists",
    ErrorCode.CANNOT_MODIFY_UNUSED_PASSCODE: "cannot modify a passcode never used on the lock",
    ErrorCode.CUSTOM_PASSCODE_SPACE_FULL: "custom passcode storage is full",
    ErrorCode.NO_AVAILABLE_GATEWAY: "no gateway available near the lock",
    ErrorCode.GATEWAY_OFFLINE: "gateway is offline",
    ErrorCode.GATEWAY_BUSY: "gateway is busy, try again later",
    ErrorCode.CANNOT_TRANSFER_GATEWAY_TO_SELF: "cannot transfer a gateway to yourself",
    ErrorCode.WIFI_LOCK_NOT_CONFIGURED: "WiFi lock network is not configured",
    ErrorCode.WIFI_IN_POWER_SAVING_MODE: "WiFi is in power saving mode",
    ErrorCode.LOCK_OFFLINE: "lock is offline",
    ErrorCode.LOCK_BUSY: "lock is busy, try again later",
    ErrorCode.GATEWAY_NOT_EXIST: "gateway does not exist",
    ErrorCode.IC_CARD_NOT_EXIST: "IC card no longer exists",
    ErrorCode.FINGERPRINT_NOT_EXIST: "fingerprint no longer exists",
}


def resolve_error_code(code: int) -> Union[ErrorCode, int]:
    """Return the :class:`ErrorCode` member for ``code``, or ``code`` itself."""
    try:
        return ErrorCode(code)
    except ValueError:
        return code


class TTLockError(Exception):
    """Base exception for all TTLock client errors."""


class TTLockAuthError(TTLockError):
    """Raised when the initial token acquisition fails."""

    def __init__(self, message: str, code: Optional[Union[ErrorCode, int]] = None) -> None:
        super().__init__(message)
        self.code = code


class TTLockTransportError(TTLockError):
    """Raised when a request cannot be sent or its response cannot be read."""


class TTLockAPIError(TTLockError):
    """Raised when a response carries a non-zero ``errcode``."""

    def __init__(self, code: int, message: Optional[str] = None) -> None:
        self.code = resolve_error_code(code)
        if isinstance(self.code, ErrorCode):
            self.message = self.code.message
        else:
            self.message = message or "unknown error"
        super().__init__(f"ttlock error {int(code)}: {self.message}")

    def is_code(self, code: int) -> bool:
        return int(self.code) == int(code)


class RenewalExhaustedError(TTLockError):
    """Raised internally when every renewal attempt has failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException]) -> None:
        super().__init__(
            f"failed to refresh access token after {attempts} attempts: {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error


class CredentialExpiredError(TTLockError):
    """Raised when the access token can no longer be renewed."""


def is_error_code(err: BaseException, code: int) -> bool:
    """Return ``True`` if ``err`` carries the application error ``code``.

    Works for :class:`TTLockAPIError` and for :class:`TTLockAuthError`
    raised from an application error during token acquisition.
    """
    err_code = getattr(err, "code", None)
    if not isinstance(err, TTLockError) or err_code is None:
        return False
    return int(err_code) == int(code)


def raise_for_errcode(payload: Any) -> None:
    """Raise :class:`TTLockAPIError` if ``payload`` carries a non-zero errcode."""
    if not isinstance(payload, dict):
        return
    errcode = payload.get("errcode")
    if errcode in (None, 0):
        return
    try:
        code = int(errcode)
    except (TypeError, ValueError) as exc:
        raise TTLockTransportError(f"Unexpected errcode value: {errcode!r}") from exc
    if code != 0:
        raise TTLockAPIError(code, payload.get("errmsg"))
