from __future__ import annotations

import asyncio
from typing import Optional

import requests

from avashell.commands.context import Session
from avashell.commands.tracker import PendingTx, PendingTxState
from avashell.config import DEFAULT_POLL_INTERVAL
from avashell.debug import debug_exception, debug_log
from avashell.node import JsonRpcError

POLL_ERRORS = (
    requests.RequestException, JsonRpcError, RuntimeError, ValueError, TypeError, KeyError, AttributeError, OSError,
)


class PendingTxPoller:
    """Refreshes the state of submitted transactions in the background.

    Runs on the shell's event loop, so it only interleaves with a command at
    that command's awaited node calls. It reads the session, never writes
    anything but tracker entry states.
    """

    def __init__(self, session: Session, interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self.session = session
        self.interval = max(0.1, float(interval))
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as exc:
            debug_exception("poller_failed", exc)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.poll_once()
            except Exception as exc:
                debug_exception("poll_pass_failed", exc, {"pending": len(self.session.tracker.pending())})

    async def _status(self, entry: PendingTx) -> str:
        node = self.session.require_node()
        if entry.chain == "P":
            return await node.p_get_tx_status(entry.id)
        return await node.x_get_tx_status(entry.id)

    def _online(self) -> bool:
        return self.session.connected and self.session.node is not None

    async def poll_once(self) -> int:
        updated = 0
        for entry in self.session.tracker.pending():
            # a connect can close the node while a lookup is awaited
            if not self._online():
                debug_log("poll_interrupted", {"tx_id": entry.id})
                break
            try:
                status = await self._status(entry)
            except POLL_ERRORS as exc:
                debug_exception("poll_failed", exc, {"tx_id": entry.id, "chain": entry.chain})
                continue
            state = PendingTxState.from_node_status(status)
            if state != PendingTxState.PROCESSING:
                entry.state = state
                updated += 1
                debug_log("tx_state", {"tx_id": entry.id, "state": state.value})
        return updated
