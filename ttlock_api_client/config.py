"""
Configuration for the TTLock command line client.

Settings are read from a TOML file and from ``TTLOCK_*`` environment
variables, with the environment taking precedence.  A config file looks
like::

    client_id = "abc123"
    client_secret = "shhsecret"
    username = "user@example.com"
    password = "plain-text-password"
    region = "eu"
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, Union

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/tmp/ttlock.toml"

CONFIG_TEMPLATE = """\
client_id = ""
client_secret = ""
username = ""
password = ""
region = "cn"
"""


class TTLockSettings(BaseSettings):
    """Credentials and connection options for :class:`TTLockClient`."""

    model_config = SettingsConfigDict(env_prefix="TTLOCK_", extra="ignore")

    client_id: str = ""
    client_secret: str = ""
    username: str = ""
    password: str = ""
    region: str = "cn"
    base_url: Optional[str] = None
    timeout: float = Field(10.0, gt=0)
    log_level: str = "INFO"

    @field_validator("region")
    @classmethod
    def normalise_region(cls, v: str) -> str:
        v = v.lower()
        if v not in {"cn", "eu"}:
            raise ValueError("region must be either 'cn' or 'eu'")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Earlier sources win: keyword arguments, then TTLOCK_* variables,
        # then the TOML file named by ``toml_file``.
        return (init_settings, env_settings, TomlConfigSettingsSource(settings_cls))

    def missing_fields(self) -> list:
        """Return the names of required credentials that are empty."""
        required = ("client_id", "client_secret", "username", "password")
        return [name for name in required if not getattr(self, name)]

    def client_kwargs(self) -> Dict[str, Any]:
        return {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "username": self.username,
            "password": self.password,
            "region": self.region,
            "base_url": self.base_url,
            "timeout": self.timeout,
        }


def load_settings(path: Optional[Union[str, Path]] = None) -> TTLockSettings:
    """Build settings from the TOML file at ``path`` and the environment.

    A missing file is not an error; environment variables alone may
    provide every value.  Environment variables override file values.
    """
    if path is None:
        return TTLockSettings()

    class FileSettings(TTLockSettings):
        model_config = SettingsConfigDict(toml_file=path)

    if Path(path).is_file():
        logger.debug("Loading config file %s", path)
    return FileSettings()


def write_config_template(path: Union[str, Path]) -> bool:
    """Create an empty config file readable only by its owner.

    Returns ``False`` without touching anything when the file exists.
    """
    path = Path(path)
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "w") as fh:
        fh.write(CONFIG_TEMPLATE)
    logger.info("Wrote config template to %s", path)
    return True
