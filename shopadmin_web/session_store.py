"""Token store backed by the signed Flask session cookie."""

from typing import Any, Dict, Optional

from flask import session

from shopadmin.storage import TokenStore

__all__ = ["FlaskSessionTokenStore", "TOKEN_KEY", "USER_KEY", "VERIFIED_KEY"]

TOKEN_KEY = "admin_token"
USER_KEY = "admin_user"
# Set once the stored token has survived a /auth/verify round-trip
VERIFIED_KEY = "admin_verified"


class FlaskSessionTokenStore(TokenStore):
    def get_token(self) -> Optional[str]:
        return session.get(TOKEN_KEY)

    def get_user(self) -> Optional[Dict[str, Any]]:
        return session.get(USER_KEY)

    def save(self, token: str, user: Dict[str, Any]) -> None:
        session[TOKEN_KEY] = token
        session[USER_KEY] = user
        session[VERIFIED_KEY] = True

    def clear(self) -> None:
        for key in (TOKEN_KEY, USER_KEY, VERIFIED_KEY):
            session.pop(key, None)
