from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from avashell.commands.context import Session
from avashell.commands.help import CONNECT_USAGE, print_help, print_help_basic
from avashell.commands.helpers import split_tokens
from avashell.commands.registry import Command, CommandRegistry
from avashell.config import DEFAULT_NODE_HOST, DEFAULT_NODE_PORT, DEFAULT_NODE_PROTOCOL
from avashell.debug import debug_exception, debug_log
from avashell.ui_core import print_error, print_info


class DispatchStatus(enum.Enum):
    EMPTY = "empty"
    HELP = "help"
    CONNECTED = "connected"
    CONNECT_FAILED = "connect_failed"
    ENTERED = "entered"
    EXITED = "exited"
    TERMINATED = "terminated"
    UNKNOWN_CONTEXT = "unknown_context"
    UNKNOWN_COMMAND = "unknown_command"
    DISCONNECTED = "disconnected"
    USAGE_ERROR = "usage_error"
    OK = "ok"
    FAILED = "failed"


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    value: Any = None
    error: Optional[BaseException] = None


async def invoke(command: Command, session: Session, args: Sequence[str]) -> CommandResult:
    values: List[Any] = command.spec.bind(args) if command.spec is not None else list(args)
    try:
        value = await command.run(session, *values)
    except Exception as exc:
        return CommandResult(ok=False, error=exc)
    return CommandResult(ok=True, value=value)


class Dispatcher:
    """Routes one input line at a time to the command it names.

    States: top level (``session.active_context is None``) or inside one
    context. Lines are handled strictly one after another; the caller awaits
    ``handle`` before reading the next line.
    """

    def __init__(
            self,
            session: Session,
            registry: CommandRegistry,
            terminate: Optional[Callable[[], None]] = None,
    ) -> None:
        self.session = session
        self.registry = registry
        self._terminate = terminate or self._request_exit

    @property
    def active_context(self) -> Optional[str]:
        return self.session.active_context

    def prompt(self) -> str:
        if self.session.active_context:
            return f"ava {self.session.active_context}> "
        return "ava> "

    def _request_exit(self) -> None:
        self.session.should_exit = True

    def enter(self, context: str) -> DispatchStatus:
        self.session.active_context = context
        debug_log("context_enter", {"context": context})
        return DispatchStatus.ENTERED

    def exit(self) -> DispatchStatus:
        if self.session.active_context:
            debug_log("context_exit", {"context": self.session.active_context})
            self.session.active_context = None
            return DispatchStatus.EXITED
        self._terminate()
        return DispatchStatus.TERMINATED

    async def connect(self, args: Sequence[str]) -> DispatchStatus:
        host = args[0] if len(args) > 0 else DEFAULT_NODE_HOST
        raw_port = args[1] if len(args) > 1 else str(DEFAULT_NODE_PORT)
        protocol = args[2] if len(args) > 2 else DEFAULT_NODE_PROTOCOL
        try:
            port = int(raw_port)
        except ValueError:
            self.session.close()
            print_error(f"Invalid port: {raw_port}")
            print_info(CONNECT_USAGE)
            return DispatchStatus.CONNECT_FAILED
        if await self.session.connect(host, port, protocol):
            return DispatchStatus.CONNECTED
        return DispatchStatus.CONNECT_FAILED

    async def handle(self, line: str) -> DispatchStatus:
        raw = (line or "").strip()
        params = split_tokens(raw)
        if not params:
            print_help_basic()
            return DispatchStatus.EMPTY
        debug_log("dispatch", {"line": raw, "context": self.session.active_context})

        if len(params) == 1 and params[0] == "exit":
            return self.exit()

        if len(params) == 1 and params[0] == "help":
            print_help(self.registry, self.session.active_context)
            return DispatchStatus.HELP
        if len(params) == 2 and self.registry.is_context(params[0]) and params[1] == "help":
            print_help(self.registry, params[0])
            return DispatchStatus.HELP

        if params[0] == "connect":
            return await self.connect(params[1:])

        if len(params) == 1 and self.registry.is_context(params[0]) \
                and self.session.active_context != params[0]:
            return self.enter(params[0])

        context = self.session.active_context
        if not context:
            if len(params) < 2:
                print_help_basic()
                return DispatchStatus.EMPTY
            context = params.pop(0)

        if not self.registry.is_context(context):
            print_info("Unknown context or command")
            return DispatchStatus.UNKNOWN_CONTEXT

        method = params.pop(0)
        command = self.registry.resolve(context, method)
        if command is None:
            print_info(f"Unknown method {method} in context {context}")
            return DispatchStatus.UNKNOWN_COMMAND

        if not self.session.connected:
            print_error("Node is disconnected")
            print_info(CONNECT_USAGE)
            return DispatchStatus.DISCONNECTED

        spec = self.registry.lookup(context, method)
        if spec is not None and not spec.validate_input(params):
            print_info("Invalid Arguments")
            for ln in spec.usage_lines("Usage: "):
                print_info(ln)
            return DispatchStatus.USAGE_ERROR

        result = await invoke(command, self.session, params)
        return self.present(context, method, result)

    def present(self, context: str, method: str, result: CommandResult) -> DispatchStatus:
        if result.ok:
            return DispatchStatus.OK
        exc = result.error
        debug_exception("command_failed", exc, {"context": context, "method": method})
        msg = str(exc or "").strip()
        print_error(f"Error: {msg}" if msg else "Unexpected error")
        return DispatchStatus.FAILED
