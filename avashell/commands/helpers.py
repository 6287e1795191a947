from __future__ import annotations

import shlex
from typing import List, Optional

from avashell.commands.context import Session
from avashell.keystore import KeystoreUser
from avashell.ui_core import print_info


def split_tokens(line: str) -> List[str]:
    """Split on whitespace, keeping quoted substrings as one token."""
    text = line or ""
    try:
        return shlex.split(text)
    except ValueError:
        # unbalanced quote, typically a line still being typed
        return text.split()


def parse_int(value: str, name: str) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def split_list(value: str) -> List[str]:
    return [x for x in str(value or "").replace(",", " ").split() if x]


def active_user(session: Session, hint: str) -> Optional[KeystoreUser]:
    user = session.keystore.get_active_user()
    if user is None:
        print_info(hint)
    return user
