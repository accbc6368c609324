from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..models.records import AppData, User, UserRole
from .catalog import authenticate, is_leader

"""Application state and the persisted login session.

AppState is owned by the CLI controller; nothing below it reads or writes
the session file directly.

Lifecycle:
- ``init()``    load the remembered user from the session file (if any)
- ``login()``   check credentials against the accounts sheet and persist
- ``logout()``  clear memory and delete the session file

The password is never written to disk.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "SessionError",
    "SessionStore",
    "AppState",
]


class SessionError(Exception):
    """Raised on failed login or when an operation needs a logged-in user."""


class SessionStore:
    """JSON file holding the current user between runs."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> User | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return User(
                username=data["username"],
                password="",
                full_name=data["full_name"],
                role=UserRole(data["role"]),
                department=data.get("department", "N/A"),
            )
        except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
            logger.warning(f"session: ignoring unreadable session file {self.path}: {e}")
            return None

    def save(self, user: User) -> None:
        record: dict[str, Any] = {
            "username": user.username,
            "full_name": user.full_name,
            "role": user.role.value,
            "department": user.department,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(record, ensure_ascii=False), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


@dataclass
class AppState:
    store: SessionStore
    user: User | None = None
    data: AppData = field(default_factory=AppData.empty)

    def init(self) -> AppState:
        self.user = self.store.load()
        return self

    @property
    def is_leader(self) -> bool:
        return self.user is not None and is_leader(self.user.role)

    def require_user(self) -> User:
        if self.user is None:
            raise SessionError("not logged in")
        return self.user

    def login(self, username: str, password: str) -> User:
        user = authenticate(self.data.users, username, password)
        if user is None:
            raise SessionError("Sai tài khoản hoặc mật khẩu!")
        self.user = user
        self.store.save(user)
        logger.info(f"logged in as {user.username} ({user.role.value})")
        return user

    def logout(self) -> None:
        self.user = None
        self.store.clear()
