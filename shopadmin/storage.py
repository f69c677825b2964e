"""Durable client storage for the session token and cached user."""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from shopadmin.config import TOKEN_PATH
from shopadmin.logging_config import get_logger

__all__ = ["TokenStore", "FileTokenStore", "MemoryTokenStore"]

logger = get_logger("storage")


class TokenStore:
    """Where the bearer token and the logged-in user are kept between runs."""

    def get_token(self) -> Optional[str]:
        raise NotImplementedError

    def get_user(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, token: str, user: Dict[str, Any]) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryTokenStore(TokenStore):
    """Process-local store, used by tests and short-lived scripts."""

    def __init__(self, token: Optional[str] = None, user: Optional[Dict[str, Any]] = None):
        self._token = token
        self._user = user

    def get_token(self) -> Optional[str]:
        return self._token

    def get_user(self) -> Optional[Dict[str, Any]]:
        return self._user

    def save(self, token: str, user: Dict[str, Any]) -> None:
        self._token = token
        self._user = dict(user)

    def clear(self) -> None:
        self._token = None
        self._user = None


class FileTokenStore(TokenStore):
    """JSON file store, readable only by the current user."""

    def __init__(self, path: Union[str, Path] = TOKEN_PATH):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get_token(self) -> Optional[str]:
        return self._read().get("token") or None

    def get_user(self) -> Optional[Dict[str, Any]]:
        user = self._read().get("user")
        return user if isinstance(user, dict) else None

    def save(self, token: str, user: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump({"token": token, "user": user}, f, ensure_ascii=False, indent=2)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
