import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from fakes import FakeNode, connected_session  # noqa: E402


class PollerTests(unittest.IsolatedAsyncioTestCase):
    async def test_poll_once_updates_terminal_states(self) -> None:
        from avashell.commands.tracker import PendingTxState
        from avashell.poller import PendingTxPoller

        node = FakeNode()
        node.statuses = {"tx-a": "Accepted", "tx-r": "Rejected"}
        session = connected_session(node)
        for tx in ["tx-a", "tx-r", "tx-p"]:
            session.tracker.add(tx)
        session.tracker.add("tx-plat", chain="P")
        node.statuses["tx-plat"] = "Committed"

        updated = await PendingTxPoller(session).poll_once()
        self.assertEqual(updated, 3)
        states = {e.id: e.state for e in session.tracker.list()}
        self.assertEqual(states["tx-a"], PendingTxState.ACCEPTED)
        self.assertEqual(states["tx-r"], PendingTxState.REJECTED)
        self.assertEqual(states["tx-p"], PendingTxState.PROCESSING)
        self.assertEqual(states["tx-plat"], PendingTxState.ACCEPTED)
        self.assertEqual(node.called("p_get_tx_status"), [("tx-plat",)])

        # settled entries are not polled again
        node.calls.clear()
        await PendingTxPoller(session).poll_once()
        self.assertEqual(node.called("x_get_tx_status"), [("tx-p",)])

    async def test_poll_skips_when_disconnected(self) -> None:
        from avashell.poller import PendingTxPoller

        session = connected_session()
        session.tracker.add("tx-1")
        session.connected = False
        self.assertEqual(await PendingTxPoller(session).poll_once(), 0)
        self.assertEqual(session.node.calls, [])

    async def test_lookup_errors_are_contained(self) -> None:
        from avashell.commands.tracker import PendingTxState
        from avashell.poller import PendingTxPoller

        node = FakeNode()
        node.statuses = {"tx-bad": "raise", "tx-ok": "Accepted"}
        session = connected_session(node)
        session.tracker.add("tx-bad")
        session.tracker.add("tx-ok")
        self.assertEqual(await PendingTxPoller(session).poll_once(), 1)
        self.assertEqual(session.tracker.list()[0].state, PendingTxState.PROCESSING)

    async def test_start_and_stop(self) -> None:
        from avashell.poller import PendingTxPoller

        poller = PendingTxPoller(connected_session(), interval=0.1)
        poller.start()
        self.assertTrue(poller.running)
        await poller.stop()
        self.assertFalse(poller.running)

    async def test_reconnect_during_pass_keeps_poller_alive(self) -> None:
        import asyncio

        from avashell.commands.tracker import PendingTxState
        from avashell.poller import PendingTxPoller

        session = connected_session()

        class _ClosingNode(FakeNode):
            async def x_get_tx_status(self, tx_id: str) -> str:
                session.close()
                return await super().x_get_tx_status(tx_id)

        old = _ClosingNode()
        session.node = old
        session.tracker.add("tx-1")
        session.tracker.add("tx-2")

        poller = PendingTxPoller(session, interval=0.1)
        poller.start()
        await asyncio.sleep(0.3)
        self.assertTrue(poller.running)
        self.assertEqual(old.called("x_get_tx_status"), [("tx-1",)])

        fresh = FakeNode()
        fresh.statuses = {"tx-1": "Accepted", "tx-2": "Accepted"}
        session.node = fresh
        session.connected = True
        await asyncio.sleep(0.3)
        self.assertTrue(all(e.state == PendingTxState.ACCEPTED for e in session.tracker.list()))

        await poller.stop()
        self.assertFalse(poller.running)

    async def test_pass_failure_does_not_end_the_loop(self) -> None:
        import asyncio

        from avashell.poller import PendingTxPoller

        class _Flaky(PendingTxPoller):
            passes = 0

            async def poll_once(self) -> int:
                self.passes += 1
                if self.passes == 1:
                    raise LookupError("tracker unavailable")
                return 0

        poller = _Flaky(connected_session(), interval=0.1)
        poller.start()
        await asyncio.sleep(0.35)
        self.assertTrue(poller.running)
        self.assertGreater(poller.passes, 1)
        await poller.stop()

    async def test_stop_after_task_failed_returns_cleanly(self) -> None:
        import asyncio

        from avashell.poller import PendingTxPoller

        class _Broken(PendingTxPoller):
            async def _run(self) -> None:
                raise RuntimeError("node is not connected")

        poller = _Broken(connected_session(), interval=0.1)
        poller.start()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        self.assertFalse(poller.running)
        await poller.stop()
        self.assertFalse(poller.running)


if __name__ == "__main__":
    unittest.main()
