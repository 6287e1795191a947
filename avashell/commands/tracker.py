from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional


class PendingTxState(str, enum.Enum):
    PROCESSING = "Processing"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    UNKNOWN = "Unknown"

    @classmethod
    def from_node_status(cls, status: str) -> "PendingTxState":
        s = (status or "").strip().lower()
        if s in {"accepted", "committed"}:
            return cls.ACCEPTED
        if s in {"rejected", "aborted", "dropped"}:
            return cls.REJECTED
        if s in {"processing"}:
            return cls.PROCESSING
        return cls.UNKNOWN


@dataclass
class PendingTx:
    id: str
    submitted_at: float
    chain: str = "X"
    state: Optional[PendingTxState] = PendingTxState.PROCESSING

    @property
    def display_state(self) -> str:
        return (self.state or PendingTxState.PROCESSING).value


def humanize_elapsed(seconds: float) -> str:
    s = int(max(0.0, seconds))
    if s < 5:
        return "just now"
    if s < 60:
        return f"{s} seconds ago"
    m = s // 60
    if m < 60:
        return "a minute ago" if m == 1 else f"{m} minutes ago"
    h = m // 60
    if h < 24:
        return "an hour ago" if h == 1 else f"{h} hours ago"
    d = h // 24
    return "a day ago" if d == 1 else f"{d} days ago"


@dataclass
class PendingTxTracker:
    """Transactions submitted in this session, in submission order.

    Ids are not deduplicated: adding the same id twice yields two entries.
    """

    clock: Callable[[], float] = time.time
    _entries: List[PendingTx] = field(default_factory=list, init=False, repr=False)

    def add(self, tx_id: str, chain: str = "X") -> PendingTx:
        entry = PendingTx(id=str(tx_id), submitted_at=self.clock(), chain=chain)
        self._entries.append(entry)
        return entry

    def list(self) -> List[PendingTx]:
        return list(self._entries)

    def pending(self) -> List[PendingTx]:
        return [e for e in self._entries if e.state in (None, PendingTxState.PROCESSING)]

    def update_state(self, tx_id: str, state: PendingTxState) -> int:
        n = 0
        for e in self._entries:
            if e.id == tx_id:
                e.state = state
                n += 1
        return n

    def render_rows(self, now: Optional[float] = None) -> List[str]:
        ts = self.clock() if now is None else now
        return [f"{e.id}\t\t{humanize_elapsed(ts - e.submitted_at)}\t\t{e.display_state}" for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
