"""Shared fixtures for the TTLock client test suite."""

from __future__ import annotations

import json
import logging
import os
from unittest.mock import MagicMock

import pytest
import requests

from ttlock_api_client import TTLockClient

TOKEN_PAYLOAD = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "uid": 42,
    "expires_in": 7200,
}


def _response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = json.dumps(payload)
    return response


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove TTLOCK_* variables that would leak into settings."""
    for key in list(os.environ):
        if key.upper().startswith("TTLOCK_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers and levels that ``configure_logging`` installed."""
    logger = logging.getLogger("ttlock_api_client")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)


@pytest.fixture
def make_response():
    return _response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def make_client(session):
    """Build a client whose session answers the token request, then ``responses``.

    Dicts are wrapped as JSON responses; anything else (mock responses,
    exceptions) is handed to the session unchanged.
    """

    def _make(*responses, **kwargs):
        queued = [_response(TOKEN_PAYLOAD)]
        for item in responses:
            queued.append(_response(item) if isinstance(item, dict) else item)
        session.request.side_effect = queued
        kwargs.setdefault("auto_refresh", False)
        return TTLockClient(
            client_id="client-id",
            client_secret="client-secret",
            username="user@example.com",
            password="123456",
            session=session,
            **kwargs,
        )

    return _make
