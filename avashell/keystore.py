from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class KeystoreUser:
    username: str
    password: str


@dataclass
class KeystoreCache:
    """Credentials of keystore users authenticated during this session."""

    users: Dict[str, KeystoreUser] = field(default_factory=dict)
    active_username: str = ""

    def add_user(self, user: KeystoreUser, set_active: bool = False) -> None:
        self.users[user.username] = user
        if set_active:
            self.active_username = user.username

    def remove_user(self, username: str) -> None:
        self.users.pop(username, None)
        if self.active_username == username:
            self.active_username = ""

    def has_user(self, username: str) -> bool:
        return username in self.users

    def get_active_user(self) -> Optional[KeystoreUser]:
        if not self.active_username:
            return None
        return self.users.get(self.active_username)

    def set_active_user(self, username: str) -> None:
        if username not in self.users:
            raise KeyError(username)
        self.active_username = username

    def usernames(self) -> List[str]:
        return sorted(self.users)
