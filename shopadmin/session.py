"""Single-slot session gate in front of the protected operations."""

from typing import Optional

from shopadmin.api import ApiClient
from shopadmin.errors import AdminError
from shopadmin.logging_config import get_logger, log_admin_event
from shopadmin.models import AdminUser
from shopadmin.storage import TokenStore

__all__ = ["SessionGate"]

logger = get_logger("session")


class SessionGate:
    """Holds at most one authenticated admin.

    ``login`` and ``restore`` never raise; failures end in the logged-out
    state, with the reason for a failed login kept in ``last_error``.
    """

    def __init__(self, client: ApiClient, store: TokenStore):
        self.client = client
        self.store = store
        self._user: Optional[AdminUser] = None
        self.last_error: Optional[str] = None

    @property
    def user(self) -> Optional[AdminUser]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None and self._user.is_authenticated

    def login(self, username: str, password: str) -> bool:
        self.last_error = None
        try:
            result = self.client.login(username, password)
        except AdminError as e:
            self.last_error = e.message
            logger.info(f"Login failed for {username!r}: {e.message}")
            return False

        user = result.user
        user.is_authenticated = True
        self.store.save(result.token, user.to_dict())
        self._user = user
        log_admin_event("login", {"username": user.username, "role": user.role})
        return True

    def logout(self) -> None:
        if self._user is not None:
            log_admin_event("logout", {"username": self._user.username})
        self._user = None
        self.store.clear()

    def expire(self) -> None:
        """Drop the slot after the backend rejected the token."""
        self._user = None
        self.store.clear()

    def restore(self, verify: bool = True) -> bool:
        """Trust a stored session only after one verification round-trip.

        ``verify=False`` adopts the cached user directly; front ends use it
        once they have already verified the same token.
        """
        if not self.store.get_token():
            return False
        if not verify:
            cached = self.store.get_user()
            if not cached:
                self.expire()
                return False
            self._user = AdminUser.from_dict(cached)
            self._user.is_authenticated = True
            return True
        try:
            verified = self.client.verify()
        except AdminError as e:
            logger.info(f"Stored session rejected: {e.message}")
            self.expire()
            return False

        cached = self.store.get_user()
        if verified is not None:
            user = verified
        elif cached:
            user = AdminUser.from_dict(cached)
        else:
            self.expire()
            return False

        user.is_authenticated = True
        self._user = user
        return True
