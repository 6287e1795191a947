from __future__ import annotations

from typing import Any, Dict

from avashell.commands.context import Session
from avashell.commands.registry import Command
from avashell.commands.spec import CommandSpec
from avashell.ui_core import pprint


async def get_liveness(session: Session) -> Dict[str, Any]:
    resp = await session.require_node().get_liveness()
    pprint(resp)
    return resp


def commands() -> Dict[str, Command]:
    return {
        "getLiveness": Command(get_liveness, CommandSpec.of("Check health of node")),
    }
