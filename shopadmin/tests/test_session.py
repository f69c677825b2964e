"""Tests for the single-slot session gate."""

from unittest.mock import MagicMock

import pytest

from shopadmin.api import ApiClient, LoginResult
from shopadmin.errors import ApiError, NetworkError, SessionExpiredError
from shopadmin.session import SessionGate
from shopadmin.storage import MemoryTokenStore


@pytest.fixture
def gate_client():
    return MagicMock(spec=ApiClient)


class TestLogin:
    def test_success_saves_token_and_user(self, gate_client, admin_user):
        store = MemoryTokenStore()
        gate_client.login.return_value = LoginResult("tok-9", admin_user)
        gate = SessionGate(gate_client, store)

        assert gate.login("admin", "secret") is True

        assert gate.is_authenticated
        assert gate.user.username == "admin"
        assert gate.last_error is None
        assert store.get_token() == "tok-9"
        assert store.get_user()["username"] == "admin"

    def test_failure_never_raises(self, gate_client):
        store = MemoryTokenStore()
        gate_client.login.side_effect = SessionExpiredError("Invalid credentials")
        gate = SessionGate(gate_client, store)

        assert gate.login("admin", "wrong") is False

        assert not gate.is_authenticated
        assert gate.last_error == "Invalid credentials"
        assert store.get_token() is None

    def test_network_failure_reported(self, gate_client):
        gate_client.login.side_effect = NetworkError("Could not connect")
        gate = SessionGate(gate_client, MemoryTokenStore())
        assert gate.login("admin", "pw") is False
        assert gate.last_error == "Could not connect"


class TestRestore:
    """Test resuming a stored session."""

    def test_no_stored_token(self, gate_client):
        gate = SessionGate(gate_client, MemoryTokenStore())
        assert gate.restore() is False
        gate_client.verify.assert_not_called()

    def test_verified_token(self, gate_client, store, admin_user):
        gate_client.verify.return_value = admin_user
        gate = SessionGate(gate_client, store)
        assert gate.restore() is True
        assert gate.user == admin_user
        gate_client.verify.assert_called_once()

    def test_verify_without_user_uses_cached(self, gate_client, store):
        gate_client.verify.return_value = None
        gate = SessionGate(gate_client, store)
        assert gate.restore() is True
        assert gate.user.username == "admin"

    @pytest.mark.parametrize(
        "error", [SessionExpiredError(), ApiError("boom", 500), NetworkError("down")]
    )
    def test_rejected_token_clears_store(self, gate_client, store, error):
        gate_client.verify.side_effect = error
        gate = SessionGate(gate_client, store)
        assert gate.restore() is False
        assert not gate.is_authenticated
        assert store.get_token() is None

    def test_skip_verification(self, gate_client, store):
        gate = SessionGate(gate_client, store)
        assert gate.restore(verify=False) is True
        assert gate.is_authenticated
        gate_client.verify.assert_not_called()

    def test_skip_verification_without_cached_user(self, gate_client):
        store = MemoryTokenStore("tok", None)
        gate = SessionGate(gate_client, store)
        assert gate.restore(verify=False) is False
        assert store.get_token() is None


class TestLogoutAndExpire:
    def test_logout_clears_slot_and_store(self, gate_client, store):
        gate = SessionGate(gate_client, store)
        gate.restore(verify=False)
        gate.logout()
        assert gate.user is None
        assert store.get_token() is None
        assert gate_client.method_calls == []

    def test_expire(self, gate_client, store):
        gate = SessionGate(gate_client, store)
        gate.restore(verify=False)
        gate.expire()
        assert not gate.is_authenticated
        assert store.get_user() is None
