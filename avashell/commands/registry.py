from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from avashell.commands.spec import CommandSpec

CommandFn = Callable[..., Awaitable[Any]]

META_COMMANDS = ["help", "exit", "connect"]


class DuplicateCommandError(ValueError):
    pass


@dataclass(frozen=True)
class Command:
    run: CommandFn
    spec: Optional[CommandSpec] = None


class CommandRegistry:
    """Static (context, name) -> command table, filled once at startup."""

    def __init__(self) -> None:
        self._contexts: Dict[str, Dict[str, Command]] = {}
        self._specs: Dict[str, CommandSpec] = {}

    def register(self, context: str, table: Mapping[str, Command]) -> None:
        if not context or context in META_COMMANDS:
            raise DuplicateCommandError(f"invalid context name: {context!r}")
        if context in self._contexts:
            raise DuplicateCommandError(f"context already registered: {context}")
        bound: Dict[str, Command] = {}
        for name, cmd in table.items():
            if cmd.spec is not None:
                spec = cmd.spec.bound(name=name, context=context)
                if spec.id in self._specs:
                    raise DuplicateCommandError(f"duplicate command id: {spec.id}")
                self._specs[spec.id] = spec
                cmd = replace(cmd, spec=spec)
            bound[name] = cmd
        self._contexts[context] = bound

    def contexts(self) -> List[str]:
        return list(self._contexts)

    def is_context(self, name: str) -> bool:
        return name in self._contexts

    def list_top_level(self) -> List[str]:
        return list(META_COMMANDS) + self.contexts()

    def list_context(self, context: str) -> List[str]:
        return list(self._contexts.get(context, {})) + list(META_COMMANDS)

    def commands(self, context: str) -> List[str]:
        return list(self._contexts.get(context, {}))

    def lookup(self, context: str, name: str) -> Optional[CommandSpec]:
        return self._specs.get(f"{context}_{name}")

    def resolve(self, context: str, name: str) -> Optional[Command]:
        return self._contexts.get(context, {}).get(name)

    def specs(self) -> List[CommandSpec]:
        return list(self._specs.values())


def build_registry() -> CommandRegistry:
    from avashell.commands import handlers_avm, handlers_health, handlers_info, handlers_keystore, handlers_platform

    reg = CommandRegistry()
    reg.register("keystore", handlers_keystore.commands())
    reg.register("info", handlers_info.commands())
    reg.register("avm", handlers_avm.commands())
    reg.register("platform", handlers_platform.commands())
    reg.register("health", handlers_health.commands())
    return reg
