"""
Python client for interacting with the TTLock cloud API.

This package provides a `TTLockClient` class that obtains an OAuth
access token with a TTLock account's username and password, keeps it
valid with a background renewal thread, and exposes typed lock,
passcode and eKey operations.

Examples
--------

```python
from ttlock_api_client import ErrorCode, TTLockAPIError, TTLockClient

client = TTLockClient(
    client_id="YOUR_CLIENT_ID",
    client_secret="YOUR_CLIENT_SECRET",
    username="YOUR_TTLOCK_USERNAME",
    password="YOUR_TTLOCK_PASSWORD",
    region="eu",  # or "cn"
)

try:
    detail = client.get_lock_detail(123456)
except TTLockAPIError as exc:
    if exc.is_code(ErrorCode.LOCK_NOT_EXIST):
        ...
finally:
    client.close()
```

The access token is renewed every `min(expires_in / 2, 1 day)`.  If
three consecutive renewal attempts fail, `current_access_token()` and
every operation raise `CredentialExpiredError`; pass
`terminate_on_failure=True` to exit the process instead.
"""

from .client import CN_BASE_URL, EU_BASE_URL, TTLockClient
from .credentials import Credential, CredentialStore
from .exceptions import (
    CredentialExpiredError,
    ErrorCode,
    RenewalExhaustedError,
    TTLockAPIError,
    TTLockAuthError,
    TTLockError,
    TTLockTransportError,
    is_error_code,
)
from .features import LockFeature, has_feature
from .models import (
    Lock,
    LockDetail,
    LockList,
    Passcode,
    PasscodeList,
    PasscodeType,
    RandomPasscode,
    SentKey,
)
from .renewal import RenewalScheduler

__all__ = [
    "CN_BASE_URL",
    "EU_BASE_URL",
    "TTLockClient",
    "Credential",
    "CredentialStore",
    "RenewalScheduler",
    "CredentialExpiredError",
    "ErrorCode",
    "RenewalExhaustedError",
    "TTLockAPIError",
    "TTLockAuthError",
    "TTLockError",
    "TTLockTransportError",
    "is_error_code",
    "LockFeature",
    "has_feature",
    "Lock",
    "LockDetail",
    "LockList",
    "Passcode",
    "PasscodeList",
    "PasscodeType",
    "RandomPasscode",
    "SentKey",
]

__version__ = "0.1.0"
