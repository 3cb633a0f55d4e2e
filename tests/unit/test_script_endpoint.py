# =============================================================================
# tests/unit/test_script_endpoint.py
# Unit Tests for the script endpoint client (Remote Store A)
# =============================================================================

import json

import pytest
import requests
from unittest.mock import MagicMock

from fintrack_core.errors import NotConfiguredError, RejectedError, RemoteUnreachableError
from fintrack_core.models import Role
from fintrack_core.records import make_record
from fintrack_core.stores.script_endpoint import ScriptEndpointClient

URL = "https://script.google.com/macros/s/test/exec"


def response_with(body):
    response = MagicMock()
    response.json.return_value = body
    return response


@pytest.fixture
def session():
    mock_session = MagicMock()
    mock_session.headers = {}
    return mock_session


@pytest.fixture
def client(session):
    return ScriptEndpointClient(URL, timeout=5, session=session)


class TestTransport:
    def test_plain_text_content_type(self, client, session):
        assert session.headers["Content-Type"] == "text/plain;charset=utf-8"

    def test_request_exception_is_unreachable(self, client, session):
        session.get.side_effect = requests.exceptions.ConnectionError("no route")
        with pytest.raises(RemoteUnreachableError):
            client.fetch("npf_2025")

    def test_http_error_is_unreachable(self, client, session):
        response = response_with({})
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
        session.post.return_value = response

        with pytest.raises(RemoteUnreachableError):
            client.store(make_record("npf", 2025, {"a": 1}))

    def test_non_json_body_is_unreachable(self, client, session):
        response = MagicMock()
        response.json.side_effect = ValueError("not json")
        session.get.return_value = response

        with pytest.raises(RemoteUnreachableError):
            client.ping()

    def test_nested_get_values_are_json(self, client, session):
        session.get.return_value = response_with({"status": "success"})
        client.call({"action": "X", "data": {"a": [1]}, "skip": None}, method="GET")

        params = session.get.call_args.kwargs["params"]
        assert params == {"action": "X", "data": '{"a": [1]}'}


class TestRecordStore:
    def test_fetch_uses_get_with_id(self, client, session):
        session.get.return_value = response_with({"status": "success", "data": {"rows": [1]}})

        assert client.fetch("daily_2025-06-01") == {"rows": [1]}
        assert session.get.call_args.kwargs["params"] == {"id": "daily_2025-06-01"}
        assert session.get.call_args.kwargs["timeout"] == 5

    def test_fetch_miss(self, client, session):
        session.get.return_value = response_with({"status": "error", "message": "not found"})
        assert client.fetch("npf_2025") is None

    def test_fetch_empty_data_is_miss(self, client, session):
        session.get.return_value = response_with({"status": "success", "data": None})
        assert client.fetch("npf_2025") is None

    def test_store_sends_save_action(self, client, session):
        session.post.return_value = response_with({"status": "success"})
        client.store(make_record("daily", 2025, {"x": 1}, date="2025-06-01"))

        body = json.loads(session.post.call_args.kwargs["data"])
        assert body == {
            "action": "SAVE",
            "id": "daily_2025-06-01",
            "type": "daily",
            "year": 2025,
            "data": {"x": 1},
        }

    def test_store_error_status_raises(self, client, session):
        session.post.return_value = response_with({"status": "error", "message": "quota"})
        with pytest.raises(RemoteUnreachableError):
            client.store(make_record("npf", 2025, {}))

    def test_no_delete(self, client):
        assert client.supports_delete is False
        with pytest.raises(NotConfiguredError) as exc_info:
            client.remove("npf_2025")
        assert exc_info.value.code == "STORE_000"
        assert exc_info.value.details == {"id": "npf_2025", "store": "script"}

    def test_ping(self, client, session):
        session.get.return_value = response_with({"status": "success"})
        client.ping()
        assert session.get.call_args.kwargs["params"] == {"check": "ping"}

    def test_ping_error_status_raises(self, client, session):
        session.get.return_value = response_with({"status": "error"})
        with pytest.raises(RemoteUnreachableError):
            client.ping()


class TestAuthActions:
    def test_login_success(self, client, session):
        session.post.return_value = response_with(
            {"status": "success", "user": {"id": "9", "email": "ana@example.com", "name": "Ana", "role": "admin"}}
        )

        profile = client.login("ana@example.com", "abc123")

        body = json.loads(session.post.call_args.kwargs["data"])
        assert body == {"action": "LOGIN", "email": "ana@example.com", "password_hash": "abc123"}
        assert profile.role == Role.ADMIN

    def test_login_rejected(self, client, session):
        session.post.return_value = response_with({"status": "error", "message": "Wrong password"})

        with pytest.raises(RejectedError, match="Wrong password"):
            client.login("ana@example.com", "abc123")

    def test_success_without_user_is_unreachable(self, client, session):
        session.post.return_value = response_with({"status": "success"})
        with pytest.raises(RemoteUnreachableError):
            client.login("ana@example.com", "abc123")

    def test_reset_request_sends_link(self, client, session):
        session.post.return_value = response_with({"status": "success", "message": "Sent"})

        assert client.request_reset("ana@example.com", "https://x/#/reset-password") == "Sent"
        body = json.loads(session.post.call_args.kwargs["data"])
        assert body["action"] == "RESET_REQUEST"
        assert body["resetLink"] == "https://x/#/reset-password"

    def test_get_users(self, client, session):
        session.get.return_value = response_with(
            {"status": "success", "users": [{"id": "1", "email": "a@example.com", "name": "A"}]}
        )

        users = client.get_users()
        assert [u.email for u in users] == ["a@example.com"]
        assert session.get.call_args.kwargs["params"] == {"action": "GET_USERS"}
