"""Tests for ttlock_api_client.client."""

import time
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import requests

from ttlock_api_client import (
    CredentialExpiredError,
    ErrorCode,
    LockFeature,
    PasscodeType,
    TTLockAPIError,
    TTLockAuthError,
    TTLockClient,
    TTLockTransportError,
    is_error_code,
)
from ttlock_api_client.client import CN_BASE_URL, EU_BASE_URL, to_millis
from ttlock_api_client.credentials import Credential
from ttlock_api_client.exceptions import RenewalExhaustedError


def _call(session, index):
    return session.request.call_args_list[index].kwargs


def _lock(lock_id):
    return {"lockId": lock_id, "lockAlias": f"Door {lock_id}", "featureValue": "1"}


def _passcode(pwd_id):
    return {"keyboardPwdId": pwd_id, "lockId": 7, "keyboardPwd": "123456"}


class TestBootstrap:
    def test_posts_hashed_password(self, make_client, session):
        client = make_client()

        call = _call(session, 0)
        assert call["method"] == "POST"
        assert call["url"] == f"{CN_BASE_URL}/oauth2/token"
        assert call["data"] == {
            "clientId": "client-id",
            "clientSecret": "client-secret",
            "username": "user@example.com",
            "password": "e10adc3949ba59abbe56e057f20f883e",
        }
        assert call["timeout"] == 10.0
        assert client.credential.uid == 42
        assert client.credential.expires_in == 7200

    def test_current_access_token_is_stable(self, make_client):
        client = make_client()
        assert [client.current_access_token() for _ in range(5)] == ["access-1"] * 5

    def test_region_selects_base_url(self, make_client, session):
        client = make_client(region="EU")
        assert client.base_url == EU_BASE_URL
        assert _call(session, 0)["url"] == f"{EU_BASE_URL}/oauth2/token"

    def test_base_url_override(self, make_client, session):
        make_client(base_url="http://localhost:8080/")
        assert _call(session, 0)["url"] == "http://localhost:8080/oauth2/token"

    @pytest.mark.parametrize("missing", ["client_id", "client_secret", "username", "password"])
    def test_required_arguments(self, missing, session):
        kwargs = {
            "client_id": "id",
            "client_secret": "secret",
            "username": "user",
            "password": "pw",
        }
        kwargs[missing] = ""
        with pytest.raises(ValueError, match=missing):
            TTLockClient(session=session, **kwargs)
        session.request.assert_not_called()

    def test_unknown_region(self, session):
        with pytest.raises(ValueError, match="region"):
            TTLockClient(
                client_id="id",
                client_secret="secret",
                username="user",
                password="pw",
                region="us",
                session=session,
            )

    def test_wrong_password_fails_construction(self, session, make_response):
        session.request.return_value = make_response(
            {"errcode": 10007, "errmsg": "invalid account or invalid password"}
        )
        with pytest.raises(TTLockAuthError) as excinfo:
            TTLockClient(
                client_id="id",
                client_secret="secret",
                username="user",
                password="wrong",
                session=session,
            )
        err = excinfo.value
        assert err.code is ErrorCode.INVALID_USERNAME_OR_PASSWORD
        assert is_error_code(err, ErrorCode.INVALID_USERNAME_OR_PASSWORD)
        assert isinstance(err.__cause__, TTLockAPIError)

    def test_invalid_client_fails_construction(self, session, make_response):
        session.request.return_value = make_response({"errcode": 10001, "errmsg": "invalid client"})
        with pytest.raises(TTLockAuthError) as excinfo:
            TTLockClient(
                client_id="bad",
                client_secret="bad",
                username="user",
                password="pw",
                session=session,
            )
        assert is_error_code(excinfo.value, ErrorCode.INVALID_CLIENT)

    def test_transport_failure_fails_construction(self, session):
        session.request.side_effect = requests.ConnectionError("no route to host")
        with pytest.raises(TTLockAuthError) as excinfo:
            TTLockClient(
                client_id="id",
                client_secret="secret",
                username="user",
                password="pw",
                session=session,
            )
        assert excinfo.value.code is None
        assert isinstance(excinfo.value.__cause__, TTLockTransportError)

    def test_malformed_token_body_fails_construction(self, session, make_response):
        session.request.return_value = make_response({"errcode": 0, "uid": 1})
        with pytest.raises(TTLockAuthError):
            TTLockClient(
                client_id="id",
                client_secret="secret",
                username="user",
                password="pw",
                session=session,
            )

    def test_owned_session_closed_on_failure(self, make_response):
        with patch("ttlock_api_client.client.requests.Session") as session_cls:
            session = session_cls.return_value
            session.request.return_value = make_response({"errcode": 10007})
            with pytest.raises(TTLockAuthError):
                TTLockClient(
                    client_id="id", client_secret="secret", username="user", password="pw"
                )
        session.close.assert_called_once_with()

    def test_auto_refresh_starts_scheduler_and_close_stops_it(self, make_client, session):
        client = make_client(auto_refresh=True)
        assert client.scheduler.is_running

        client.close()

        assert not client.scheduler.is_running
        # injected sessions belong to the caller
        session.close.assert_not_called()

    def test_context_manager_closes(self, make_client):
        with make_client(auto_refresh=True) as client:
            scheduler = client.scheduler
        assert not scheduler.is_running

    def test_auto_refresh_installs_renewed_token(self, make_response, session):
        session.request.side_effect = [
            make_response(
                {"access_token": "access-1", "refresh_token": "refresh-1", "uid": 42, "expires_in": 0}
            ),
            make_response(
                {"access_token": "access-2", "refresh_token": "refresh-2", "uid": 42, "expires_in": 7200}
            ),
        ]
        client = TTLockClient(
            client_id="client-id",
            client_secret="client-secret",
            username="user@example.com",
            password="123456",
            session=session,
            auto_refresh=True,
        )
        try:
            deadline = time.monotonic() + 5
            while client.current_access_token() == "access-1" and time.monotonic() < deadline:
                time.sleep(0.01)
            assert client.current_access_token() == "access-2"
            assert client.credential.refresh_token == "refresh-2"
        finally:
            client.close()

        call = _call(session, 1)
        assert call["data"]["grant_type"] == "refresh_token"
        assert call["data"]["refresh_token"] == "refresh-1"
        assert not client.scheduler.is_running


class TestRefreshAccessToken:
    def test_sends_refresh_grant(self, make_client, session):
        client = make_client(
            {"access_token": "access-2", "refresh_token": "refresh-2", "uid": 42, "expires_in": 3600}
        )

        credential = client.refresh_access_token("refresh-1")

        call = _call(session, 1)
        assert call["url"] == f"{CN_BASE_URL}/oauth2/token"
        assert call["data"] == {
            "clientId": "client-id",
            "clientSecret": "client-secret",
            "grant_type": "refresh_token",
            "refresh_token": "refresh-1",
        }
        assert credential.access_token == "access-2"
        assert credential.expires_in == 3600
        # the scheduler installs credentials, not this call
        assert client.current_access_token() == "access-1"

    def test_token_unauthorized_resolves_like_operations(self, make_client):
        client = make_client({"errcode": 10004, "errmsg": "invalid token"}, {"errcode": 10004})

        with pytest.raises(TTLockAPIError) as refresh_exc:
            client.refresh_access_token("refresh-1")
        with pytest.raises(TTLockAPIError) as op_exc:
            client.get_lock_detail(1)

        assert refresh_exc.value.code is ErrorCode.TOKEN_UNAUTHORIZED
        assert op_exc.value.code is ErrorCode.TOKEN_UNAUTHORIZED

    def test_token_unauthorized_on_bootstrap(self, session, make_response):
        session.request.return_value = make_response({"errcode": 10004})
        with pytest.raises(TTLockAuthError) as excinfo:
            TTLockClient(
                client_id="id", client_secret="secret", username="u", password="p", session=session
            )
        assert excinfo.value.code is ErrorCode.TOKEN_UNAUTHORIZED


class TestRequests:
    def test_http_error_status(self, make_client, make_response):
        client = make_client(make_response({"message": "oops"}, status_code=502))
        with pytest.raises(TTLockTransportError, match="502"):
            client.get_lock_detail(1)

    def test_invalid_json(self, make_client, make_response):
        response = make_response(None)
        response.json.side_effect = ValueError("Expecting value")
        client = make_client(response)
        with pytest.raises(TTLockTransportError, match="Invalid JSON"):
            client.get_lock_detail(1)

    def test_timeout(self, make_client):
        client = make_client(requests.Timeout("read timed out"))
        with pytest.raises(TTLockTransportError, match="read timed out"):
            client.get_lock_detail(1)

    def test_uses_latest_token(self, make_client, session):
        client = make_client({"lockId": 1}, {"lockId": 1})

        client.get_lock_detail(1)
        client.credential_store.replace(Credential("access-2", "refresh-2", 7200))
        client.get_lock_detail(1)

        assert _call(session, 1)["params"]["accessToken"] == "access-1"
        assert _call(session, 2)["params"]["accessToken"] == "access-2"

    def test_dead_credential_blocks_operations(self, make_client, session):
        client = make_client()
        client.credential_store.mark_dead(RenewalExhaustedError(3, None))

        with pytest.raises(CredentialExpiredError):
            client.get_lock_list()
        with pytest.raises(CredentialExpiredError):
            client.current_access_token()
        assert session.request.call_count == 1


class TestLocks:
    def test_get_lock_list(self, make_client, session):
        client = make_client(
            {"list": [_lock(1), _lock(2)], "pageNo": 1, "pageSize": 20, "pages": 1, "total": 2}
        )

        with patch("ttlock_api_client.client.time.time", return_value=1700000000.5):
            page = client.get_lock_list()

        call = _call(session, 1)
        assert call["method"] == "GET"
        assert call["url"] == f"{CN_BASE_URL}/v3/lock/list"
        assert call["params"] == {
            "clientId": "client-id",
            "accessToken": "access-1",
            "pageNo": 1,
            "pageSize": 20,
            "date": 1700000000500,
        }
        assert [lock.lock_id for lock in page.items] == [1, 2]
        assert page.total == 2
        assert page.items[0].lock_alias == "Door 1"

    def test_get_lock_list_filters(self, make_client, session):
        client = make_client({"list": [], "pages": 0})
        client.get_lock_list(2, 50, lock_alias="Front", group_id=9)

        params = _call(session, 1)["params"]
        assert params["pageNo"] == 2
        assert params["pageSize"] == 50
        assert params["lockAlias"] == "Front"
        assert params["groupId"] == 9

    def test_get_lock_detail(self, make_client, session):
        client = make_client(
            {
                "lockId": 7,
                "lockAlias": "Front door",
                "noKeyPwd": "1234567",
                "electricQuantity": 88,
                "featureValue": "F4",
                "autoLockTime": -1,
                "modelNum": "SN118-S",
                "errcode": 0,
            }
        )

        detail = client.get_lock_detail(7)

        assert _call(session, 1)["params"]["lockId"] == 7
        assert detail.lock_id == 7
        assert detail.auto_lock_time == -1
        assert detail.model_num == "SN118-S"
        assert detail.supports(LockFeature.PASSCODE_MANAGEMENT)
        assert not detail.supports(LockFeature.PASSCODE)

    def test_lock_not_exist(self, make_client):
        client = make_client({"errcode": -1003, "errmsg": "lock does not exist"})
        with pytest.raises(TTLockAPIError) as excinfo:
            client.get_lock_detail(99)
        assert excinfo.value.is_code(ErrorCode.LOCK_NOT_EXIST)

    def test_iter_locks_walks_pages(self, make_client, session):
        client = make_client(
            {"list": [_lock(1), _lock(2)], "pageNo": 1, "pages": 2},
            {"list": [_lock(3)], "pageNo": 2, "pages": 2},
        )

        locks = list(client.iter_locks(lock_alias="Door"))

        assert [lock.lock_id for lock in locks] == [1, 2, 3]
        assert session.request.call_count == 3
        assert _call(session, 1)["params"]["pageNo"] == 1
        assert _call(session, 1)["params"]["pageSize"] == 200
        assert _call(session, 2)["params"]["pageNo"] == 2
        assert _call(session, 2)["params"]["lockAlias"] == "Door"

    def test_iter_locks_stops_on_empty_page(self, make_client, session):
        client = make_client({"list": [], "pages": 5})
        assert list(client.iter_locks()) == []
        assert session.request.call_count == 2

    def test_iter_locks_is_lazy(self, make_client, session):
        client = make_client({"list": [_lock(1)], "pages": 3})
        iterator = client.iter_locks()
        assert session.request.call_count == 1
        assert next(iterator).lock_id == 1
        assert session.request.call_count == 2

    def test_iter_locks_propagates_errors(self, make_client):
        client = make_client(
            {"list": [_lock(1)], "pages": 2},
            {"errcode": 30006, "errmsg": "rate limited"},
        )
        iterator = client.iter_locks()
        assert next(iterator).lock_id == 1
        with pytest.raises(TTLockAPIError) as excinfo:
            next(iterator)
        assert excinfo.value.code is ErrorCode.RATE_LIMIT_EXCEEDED


class TestPasscodes:
    def test_get_random_passcode(self, make_client, session):
        client = make_client({"keyboardPwd": "4433221", "keyboardPwdId": 55})
        start = datetime(2024, 2, 14, 14, tzinfo=timezone.utc)

        result = client.get_random_passcode(7, PasscodeType.PERIOD, start, 1707926400000, name="Guest")

        call = _call(session, 1)
        assert call["method"] == "POST"
        assert call["url"] == f"{CN_BASE_URL}/v3/keyboardPwd/get"
        data = call["data"]
        assert data["lockId"] == 7
        assert data["keyboardPwdType"] == 3
        assert data["keyboardPwdName"] == "Guest"
        assert data["startDate"] == 1707919200000
        assert data["endDate"] == 1707926400000
        assert data["accessToken"] == "access-1"
        assert result.keyboard_pwd == "4433221"
        assert result.keyboard_pwd_id == 55

    def test_get_random_passcode_optional_fields(self, make_client, session):
        client = make_client({"keyboardPwd": "1234", "keyboardPwdId": 1})
        client.get_random_passcode(7, PasscodeType.PERMANENT, 1707919200000)

        data = _call(session, 1)["data"]
        assert "endDate" not in data
        assert "keyboardPwdName" not in data

    def test_get_passcode_list(self, make_client, session):
        client = make_client({"list": [_passcode(1)], "pageNo": 1, "pages": 1, "total": 1})

        page = client.get_passcode_list(7, order_by=0, search="12")

        call = _call(session, 1)
        assert call["url"] == f"{CN_BASE_URL}/v3/lock/listKeyboardPwd"
        assert call["params"]["orderBy"] == 0
        assert call["params"]["searchStr"] == "12"
        assert page.items[0].keyboard_pwd == "123456"

    def test_iter_passcodes(self, make_client, session):
        client = make_client(
            {"list": [_passcode(1)], "pages": 2},
            {"list": [_passcode(2)], "pages": 2},
        )
        ids = [p.keyboard_pwd_id for p in client.iter_passcodes(7)]
        assert ids == [1, 2]
        assert _call(session, 2)["params"]["lockId"] == 7

    def test_invalid_passcode_length(self, make_client):
        client = make_client({"errcode": -3006})
        with pytest.raises(TTLockAPIError) as excinfo:
            client.get_random_passcode(7, PasscodeType.ONE_TIME, 0)
        assert is_error_code(excinfo.value, ErrorCode.INVALID_PASSCODE_LENGTH)


class TestKeys:
    def test_send_key(self, make_client, session):
        client = make_client({"keyId": 901, "errcode": 0})

        result = client.send_key(7, "friend@example.com", "Friend", 1000, 2000, remote_enable=1)

        call = _call(session, 1)
        assert call["url"] == f"{CN_BASE_URL}/v3/key/send"
        data = call["data"]
        assert data["receiverUsername"] == "friend@example.com"
        assert data["keyName"] == "Friend"
        assert data["startDate"] == 1000
        assert data["endDate"] == 2000
        assert data["remoteEnable"] == 1
        for absent in ("remarks", "keyRight", "createUser"):
            assert absent not in data
        assert result.key_id == 901

    def test_send_key_to_self(self, make_client):
        client = make_client({"errcode": -2019})
        with pytest.raises(TTLockAPIError) as excinfo:
            client.send_key(7, "me", "Me", 0, 1)
        assert excinfo.value.code is ErrorCode.CANNOT_SEND_KEY_TO_SELF


def test_to_millis():
    assert to_millis(1234) == 1234
    assert to_millis(datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)) == 1000
