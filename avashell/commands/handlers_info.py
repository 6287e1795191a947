from __future__ import annotations

from typing import Any, Dict, List

from avashell.commands.context import Session
from avashell.commands.registry import Command
from avashell.commands.spec import CommandSpec
from avashell.ui_core import pformat, print_info


async def node_id(session: Session) -> str:
    nid = session.require_node().node_id
    print_info(nid)
    return nid


async def tx_fee(session: Session) -> Dict[str, Any]:
    res = await session.require_node().get_tx_fee()
    print_info(pformat(res))
    return res


async def network_id(session: Session) -> str:
    res = await session.require_node().get_network_id()
    print_info(res)
    return res


async def network_name(session: Session) -> str:
    res = await session.require_node().get_network_name()
    print_info(res)
    return res


async def node_version(session: Session) -> str:
    ver = await session.require_node().get_node_version()
    print_info(ver)
    return ver


async def peers(session: Session) -> List[Dict[str, Any]]:
    res = await session.require_node().peers()
    print_info(pformat(res))
    return res


def commands() -> Dict[str, Command]:
    return {
        "nodeId": Command(node_id, CommandSpec.of("Show current node ID")),
        "txFee": Command(tx_fee, CommandSpec.of("Get transaction fee of the network")),
        "networkId": Command(network_id, CommandSpec.of("Get the ID of the network this node is participating in.")),
        "networkName": Command(network_name,
                               CommandSpec.of("Get the name of the network this node is participating in.")),
        "nodeVersion": Command(node_version, CommandSpec.of("Show current node version")),
        "peers": Command(peers, CommandSpec.of("Show the peers connected to the node")),
    }
