import contextlib
import io
import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from fakes import FakeNode, connected_session  # noqa: E402


class _Spy:
    def __init__(self, result=None, exc=None) -> None:
        self.calls = []
        self.result = result
        self.exc = exc

    async def __call__(self, session, *args):
        self.calls.append(args)
        if self.exc is not None:
            raise self.exc
        return self.result


class DispatcherTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        from avashell.commands import handlers_avm, handlers_health, handlers_info, handlers_keystore, handlers_platform
        from avashell.commands.dispatcher import Dispatcher
        from avashell.commands.registry import Command, CommandRegistry
        from avashell.commands.spec import CommandSpec, FieldSpec

        self.node_id_spy = _Spy(result="NodeID-test")
        self.login_spy = _Spy()
        self.boom_spy = _Spy(exc=RuntimeError("node exploded"))

        keystore = handlers_keystore.commands()
        keystore["login"] = Command(self.login_spy, keystore["login"].spec)
        info = handlers_info.commands()
        info["nodeId"] = Command(self.node_id_spy, info["nodeId"].spec)
        info["boom"] = Command(self.boom_spy, CommandSpec.of("Always fails"))
        info["echo"] = Command(_Spy(), CommandSpec.of("Echo", FieldSpec("first"), FieldSpec("rest...", "none")))

        self.reg = CommandRegistry()
        self.reg.register("keystore", keystore)
        self.reg.register("info", info)
        self.reg.register("avm", handlers_avm.commands())
        self.reg.register("platform", handlers_platform.commands())
        self.reg.register("health", handlers_health.commands())

        self.session = connected_session()
        self.terminated = []
        self.dispatcher = Dispatcher(self.session, self.reg, terminate=lambda: self.terminated.append(True))

    async def _handle(self, line: str):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            status = await self.dispatcher.handle(line)
        return status, out.getvalue(), err.getvalue()

    async def test_empty_line_prints_hint(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, _out, err = await self._handle("   ")
        self.assertEqual(status, DispatchStatus.EMPTY)
        self.assertIn("Type help", err)

    async def test_full_help_lists_every_context(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, out, _err = await self._handle("help")
        self.assertEqual(status, DispatchStatus.HELP)
        for ctx in ["avm", "health", "info", "keystore", "platform"]:
            self.assertIn(f"\n{ctx}\n", out)
        self.assertIsNone(self.session.active_context)

    async def test_context_help_prints_only_that_context(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, out, _err = await self._handle("keystore help")
        self.assertEqual(status, DispatchStatus.HELP)
        self.assertIn("createUser <username> <password>", out)
        self.assertNotIn("platform", out)
        self.assertNotIn("getLiveness", out)
        self.assertIsNone(self.session.active_context)

    async def test_help_inside_context_is_scoped(self) -> None:
        await self._handle("health")
        _status, out, _err = await self._handle("help")
        self.assertIn("getLiveness", out)
        self.assertNotIn("createUser", out)

    async def test_unknown_method_is_reported_not_raised(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, out, _err = await self._handle("keystore bogus")
        self.assertEqual(status, DispatchStatus.UNKNOWN_COMMAND)
        self.assertIn("Unknown method bogus in context keystore", out)

    async def test_unknown_context(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, out, _err = await self._handle("wallet balance")
        self.assertEqual(status, DispatchStatus.UNKNOWN_CONTEXT)
        self.assertIn("Unknown context or command", out)

    async def test_single_unknown_token_at_top_level(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, _out, err = await self._handle("wallet")
        self.assertEqual(status, DispatchStatus.EMPTY)
        self.assertIn("Invalid command", err)

    async def test_enter_exit_and_terminate(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, _out, _err = await self._handle("platform")
        self.assertEqual(status, DispatchStatus.ENTERED)
        self.assertEqual(self.session.active_context, "platform")
        self.assertEqual(self.dispatcher.prompt(), "ava platform> ")

        status, _out, _err = await self._handle("exit")
        self.assertEqual(status, DispatchStatus.EXITED)
        self.assertIsNone(self.session.active_context)
        self.assertEqual(self.terminated, [])

        status, _out, _err = await self._handle("exit")
        self.assertEqual(status, DispatchStatus.TERMINATED)
        self.assertEqual(self.terminated, [True])
        self.assertEqual(self.dispatcher.prompt(), "ava> ")

    async def test_default_terminate_sets_should_exit(self) -> None:
        from avashell.commands.dispatcher import Dispatcher

        dispatcher = Dispatcher(self.session, self.reg)
        with contextlib.redirect_stdout(io.StringIO()):
            await dispatcher.handle("exit")
        self.assertTrue(self.session.should_exit)

    async def test_context_name_switches_between_contexts(self) -> None:
        await self._handle("avm")
        await self._handle("info")
        self.assertEqual(self.session.active_context, "info")

    async def test_commands_inside_context_skip_prefix(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        await self._handle("info")
        status, _out, _err = await self._handle("nodeId")
        self.assertEqual(status, DispatchStatus.OK)
        self.assertEqual(len(self.node_id_spy.calls), 1)

    async def test_disconnected_session_never_invokes_handler(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        self.session.connected = False
        status, out, err = await self._handle("info nodeId")
        self.assertEqual(status, DispatchStatus.DISCONNECTED)
        self.assertIn("Node is disconnected", err)
        self.assertIn("connect [ip=127.0.0.1] [port=9650] [protocol=http]", out)
        self.assertEqual(self.node_id_spy.calls, [])

    async def test_missing_arguments_print_usage(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, out, _err = await self._handle("keystore login alice")
        self.assertEqual(status, DispatchStatus.USAGE_ERROR)
        self.assertIn("Invalid Arguments", out)
        self.assertIn("Usage: login <username> <password>", out)
        self.assertEqual(self.login_spy.calls, [])

    async def test_extra_arguments_pass_validation(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, _out, _err = await self._handle("keystore login alice pw surplus")
        self.assertEqual(status, DispatchStatus.OK)
        self.assertEqual(self.login_spy.calls, [("alice", "pw")])

    async def test_quoted_arguments_reach_handler_whole(self) -> None:
        await self._handle('keystore login "alice smith" "p w"')
        self.assertEqual(self.login_spy.calls, [("alice smith", "p w")])

    async def test_handler_failure_is_swallowed(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, _out, err = await self._handle("info boom")
        self.assertEqual(status, DispatchStatus.FAILED)
        self.assertIn("Error: node exploded", err)
        status, _out, _err = await self._handle("info nodeId")
        self.assertEqual(status, DispatchStatus.OK)

    async def test_connect_uses_defaults(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        seen = []
        node = FakeNode(node_id="NodeID-new")

        def factory(host, port, protocol, timeout):
            seen.append((host, port, protocol))
            return node

        self.session.node_factory = factory
        status, out, _err = await self._handle("connect")
        self.assertEqual(status, DispatchStatus.CONNECTED)
        self.assertEqual(seen, [("127.0.0.1", 9650, "http")])
        self.assertIn("Node ID: NodeID-new", out)
        self.assertTrue(self.session.connected)

    async def test_connect_passes_positional_arguments(self) -> None:
        seen = []

        def factory(host, port, protocol, timeout):
            seen.append((host, port, protocol))
            return FakeNode()

        self.session.node_factory = factory
        await self._handle("connect 10.0.0.5 9651 https")
        self.assertEqual(seen, [("10.0.0.5", 9651, "https")])

    async def test_connect_failure_clears_connectivity(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        self.session.node_factory = lambda h, p, pr, t: FakeNode(fail_init=True)
        status, _out, err = await self._handle("connect 10.0.0.9")
        self.assertEqual(status, DispatchStatus.CONNECT_FAILED)
        self.assertIn("Failed to connect", err)
        self.assertFalse(self.session.connected)
        status, _out, _err = await self._handle("info nodeId")
        self.assertEqual(status, DispatchStatus.DISCONNECTED)

    async def test_connect_rejects_non_numeric_port(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, _out, err = await self._handle("connect localhost abc")
        self.assertEqual(status, DispatchStatus.CONNECT_FAILED)
        self.assertIn("Invalid port: abc", err)
        self.assertFalse(self.session.connected)

    async def test_variadic_optional_command_binds_all_tokens(self) -> None:
        from avashell.commands.dispatcher import DispatchStatus

        status, _out, _err = await self._handle("info echo a b c")
        self.assertEqual(status, DispatchStatus.OK)
        self.assertEqual(self.reg.resolve("info", "echo").run.calls, [("a", "b", "c")])


class InvokeTests(unittest.IsolatedAsyncioTestCase):
    async def test_invoke_wraps_exceptions(self) -> None:
        from avashell.commands.dispatcher import invoke
        from avashell.commands.registry import Command

        spy = _Spy(exc=ValueError("bad amount"))
        result = await invoke(Command(spy), connected_session(), ["x"])
        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, ValueError)
        self.assertEqual(spy.calls, [("x",)])

    async def test_invoke_returns_value(self) -> None:
        from avashell.commands.dispatcher import invoke
        from avashell.commands.registry import Command

        result = await invoke(Command(_Spy(result=42)), connected_session(), [])
        self.assertTrue(result.ok)
        self.assertEqual(result.value, 42)


if __name__ == "__main__":
    unittest.main()
