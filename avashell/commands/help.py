from __future__ import annotations

from typing import List, Optional

from avashell.commands.registry import CommandRegistry
from avashell.ui_core import print_error, print_info

CONNECT_USAGE = "connect [ip=127.0.0.1] [port=9650] [protocol=http]"


def render_help(registry: CommandRegistry, target_context: Optional[str] = None) -> List[str]:
    lines = [
        "-------------------",
        "SUPPORTED COMMANDS:",
        "-------------------",
    ]
    for context in sorted(registry.contexts()):
        if target_context and context != target_context:
            continue
        lines.append(context)
        for method in sorted(registry.commands(context)):
            spec = registry.lookup(context, method)
            if spec is not None:
                lines.extend(spec.usage_lines("    "))
            else:
                lines.append(f"    {method}")
            lines.append("")
        lines.append("")
    return lines


def print_help(registry: CommandRegistry, target_context: Optional[str] = None) -> None:
    for line in render_help(registry, target_context):
        print_info(line)


def print_help_basic() -> None:
    print_error("Invalid command. Type help to see all supported commands")
