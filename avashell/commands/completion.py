from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from avashell.commands.helpers import split_tokens
from avashell.commands.registry import CommandRegistry


def prefix_matches(needle: str, haystack: Iterable[str]) -> List[str]:
    return [c for c in haystack if c.startswith(needle)]


def complete_tokens(params: Sequence[str], registry: CommandRegistry, active_context: Optional[str] = None) -> List[str]:
    if not params:
        return []
    if not active_context:
        if len(params) == 1:
            return prefix_matches(params[0], registry.list_top_level())
        if len(params) == 2:
            return prefix_matches(params[1], registry.list_context(params[0]))
        return []
    if len(params) == 1:
        return prefix_matches(params[0], registry.list_context(active_context))
    return []


def complete(line: str, registry: CommandRegistry, active_context: Optional[str] = None) -> List[str]:
    return complete_tokens(split_tokens(line), registry, active_context)
