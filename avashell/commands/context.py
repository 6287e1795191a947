from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from avashell.commands.tracker import PendingTxTracker
from avashell.config import (
    DEFAULT_NODE_HOST,
    DEFAULT_NODE_PORT,
    DEFAULT_NODE_PROTOCOL,
    DEFAULT_TIMEOUT,
    ENV_KEYSTORE_PASSWORD,
    ENV_KEYSTORE_USERNAME,
)
from avashell.debug import debug_exception, debug_log
from avashell.keystore import KeystoreCache, KeystoreUser
from avashell.node import JsonRpcError, NodeClient
from avashell.ui_core import print_error, print_info

NodeFactory = Callable[[str, int, str, int], NodeClient]

CONNECT_ERRORS = (requests.RequestException, JsonRpcError, ValueError, TypeError, KeyError, AttributeError, OSError)


def _default_node_factory(host: str, port: int, protocol: str, timeout: int) -> NodeClient:
    return NodeClient(host=host, port=port, protocol=protocol, timeout=timeout)


@dataclass
class Session:
    """All mutable state of one shell session."""

    config: Dict[str, Any] = field(default_factory=dict)
    node: Optional[NodeClient] = None
    connected: bool = False
    active_context: Optional[str] = None

    keystore: KeystoreCache = field(default_factory=KeystoreCache)
    tracker: PendingTxTracker = field(default_factory=PendingTxTracker)

    should_exit: bool = False

    node_factory: NodeFactory = _default_node_factory
    environ: Optional[Mapping[str, str]] = None

    @property
    def timeout(self) -> int:
        return int(self.config.get("RPC_TIMEOUT_S", DEFAULT_TIMEOUT) or DEFAULT_TIMEOUT)

    def require_node(self) -> NodeClient:
        if self.node is None:
            raise RuntimeError("node is not connected")
        return self.node

    async def connect(
            self,
            host: str = DEFAULT_NODE_HOST,
            port: int = DEFAULT_NODE_PORT,
            protocol: str = DEFAULT_NODE_PROTOCOL,
    ) -> bool:
        self.close()
        self.keystore = KeystoreCache()
        node = self.node_factory(host, int(port), protocol, self.timeout)
        self.node = node
        try:
            await node.init()
        except CONNECT_ERRORS as exc:
            self.connected = False
            debug_exception("connect_failed", exc, {"host": host, "port": port, "protocol": protocol})
            print_error(f"Failed to connect to node. {exc}")
            return False
        self.connected = True
        debug_log("connected", {"host": host, "port": port, "protocol": protocol, "node_id": node.node_id})
        self.print_node_info()
        self._load_env_user()
        return True

    def close(self) -> None:
        if self.node is not None:
            self.node.close()
        self.node = None
        self.connected = False

    def print_node_info(self) -> None:
        print_info("*************************************************")
        print_info("AVA shell initialized.")
        print_info()
        if not self.connected or self.node is None:
            print_info("Node is disconnected")
        else:
            print_info(f"Node ID: {self.node.node_id}")
            print_info(f"Node Address: {self.node.base_url}")
        print_info("*************************************************")

    def _load_env_user(self) -> None:
        env = os.environ if self.environ is None else self.environ
        env_user = str(env.get(ENV_KEYSTORE_USERNAME, "") or "")
        env_pass = str(env.get(ENV_KEYSTORE_PASSWORD, "") or "")
        if not env_user:
            return
        if not env_pass:
            print_info(f"[warning] ignoring {ENV_KEYSTORE_USERNAME} because the password is missing")
            return
        print_info("Setting active user from environment")
        self.keystore.add_user(KeystoreUser(env_user, env_pass), set_active=True)
