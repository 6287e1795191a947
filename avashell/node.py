import asyncio
import json
import time
from typing import Any, Dict, List, Optional

import requests

from avashell.config import DEFAULT_NODE_HOST, DEFAULT_NODE_PORT, DEFAULT_NODE_PROTOCOL, DEFAULT_TIMEOUT
from avashell.debug import debug_enabled, debug_log

INFO_ENDPOINT = "/ext/info"
HEALTH_ENDPOINT = "/ext/health"
KEYSTORE_ENDPOINT = "/ext/keystore"
X_CHAIN_ENDPOINT = "/ext/bc/X"
P_CHAIN_ENDPOINT = "/ext/bc/P"

NATIVE_ASSET = "AVAX"

_TRANSIENT_STATUS = {408, 429, 502, 503, 504}


class JsonRpcError(RuntimeError):
    def __init__(self, message: str, code: Optional[int] = None, method: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.method = method


def _resp_snippet(response: Optional[requests.Response]) -> str:
    if response is None:
        return ""
    try:
        txt = (response.text or "").strip()
    except (UnicodeDecodeError, AttributeError, TypeError):
        return ""
    if len(txt) > 800:
        txt = txt[:800] + "...(truncated)"
    return txt


class NodeClient:
    """JSON-RPC client for one node.

    Every public coroutine runs the blocking HTTP call in a worker thread, so
    awaiting it is the only point where the shell's event loop can switch to
    another task (the pending transaction poller).
    """

    def __init__(
            self,
            host: str = DEFAULT_NODE_HOST,
            port: int = DEFAULT_NODE_PORT,
            protocol: str = DEFAULT_NODE_PROTOCOL,
            timeout: int = DEFAULT_TIMEOUT,
            session: Optional[requests.Session] = None,
    ) -> None:
        self.host = host
        self.port = int(port)
        self.protocol = protocol
        self.timeout = timeout
        self.req_id = 1
        self.node_id = ""
        self._session = session or requests.Session()
        self._closed = False
        self._asset_names: Dict[str, str] = {}

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._session.close()
        except (OSError, RuntimeError, AttributeError):
            return

    def _rpc(self, endpoint: str, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        payload: Dict[str, Any] = {"jsonrpc": "2.0", "id": self.req_id, "method": method}
        payload["params"] = params if params is not None else {}
        self.req_id += 1
        url = f"{self.base_url}{endpoint}"
        headers = {"Content-Type": "application/json"}
        body = json.dumps(payload)

        last_exc: Optional[BaseException] = None
        for attempt in range(3):
            try:
                resp = self._session.post(url, headers=headers, data=body, timeout=self.timeout)
                if resp.status_code in _TRANSIENT_STATUS:
                    snip = _resp_snippet(resp)
                    msg = f"transient http {resp.status_code}"
                    if snip:
                        msg += f" body={snip}"
                    if debug_enabled():
                        debug_log("rpc_retry", {"method": method, "attempt": attempt + 1, "status_code": resp.status_code})
                    raise requests.HTTPError(msg, response=resp)
                resp.raise_for_status()
                try:
                    data = resp.json()
                except ValueError as exc:
                    raise ValueError(f"invalid json response: {_resp_snippet(resp)}") from exc
                break
            except (requests.ConnectionError, requests.HTTPError) as exc:
                last_exc = exc
                if debug_enabled():
                    debug_log("rpc_error", {"method": method, "attempt": attempt + 1, "error": str(exc)[:400]})
                status = getattr(getattr(exc, "response", None), "status_code", None)
                retryable = isinstance(exc, requests.ConnectionError) or status in _TRANSIENT_STATUS
                if retryable and attempt < 2:
                    time.sleep(0.4 * (2 ** attempt))
                    continue
                raise
        else:
            if last_exc is not None:
                raise last_exc
            raise RuntimeError("rpc retry loop ended unexpectedly")

        if not isinstance(data, dict):
            raise JsonRpcError(f"unexpected response calling {method}", method=method)
        err_obj = data.get("error")
        if err_obj is not None:
            code = err_obj.get("code") if isinstance(err_obj, dict) else None
            message = err_obj.get("message") if isinstance(err_obj, dict) else None
            raise JsonRpcError(message or json.dumps(err_obj, ensure_ascii=False), code=code, method=method)
        return data.get("result")

    async def call(self, endpoint: str, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await asyncio.to_thread(self._rpc, endpoint, method, params)

    async def init(self) -> None:
        self.node_id = await self.get_node_id()

    # info

    async def get_node_id(self) -> str:
        res = await self.call(INFO_ENDPOINT, "info.getNodeID")
        return str(res.get("nodeID", ""))

    async def get_tx_fee(self) -> Dict[str, Any]:
        return await self.call(INFO_ENDPOINT, "info.getTxFee")

    async def get_network_id(self) -> str:
        res = await self.call(INFO_ENDPOINT, "info.getNetworkID")
        return str(res.get("networkID", ""))

    async def get_network_name(self) -> str:
        res = await self.call(INFO_ENDPOINT, "info.getNetworkName")
        return str(res.get("networkName", ""))

    async def get_node_version(self) -> str:
        res = await self.call(INFO_ENDPOINT, "info.getNodeVersion")
        return str(res.get("version", ""))

    async def peers(self) -> List[Dict[str, Any]]:
        res = await self.call(INFO_ENDPOINT, "info.peers")
        return list(res.get("peers") or [])

    # health

    async def get_liveness(self) -> Dict[str, Any]:
        return await self.call(HEALTH_ENDPOINT, "health.health")

    # keystore

    async def list_users(self) -> List[str]:
        res = await self.call(KEYSTORE_ENDPOINT, "keystore.listUsers")
        return list(res.get("users") or [])

    async def create_user(self, username: str, password: str) -> None:
        await self.call(KEYSTORE_ENDPOINT, "keystore.createUser", {"username": username, "password": password})

    async def delete_user(self, username: str, password: str) -> None:
        await self.call(KEYSTORE_ENDPOINT, "keystore.deleteUser", {"username": username, "password": password})

    async def export_user(self, username: str, password: str) -> str:
        res = await self.call(KEYSTORE_ENDPOINT, "keystore.exportUser", {"username": username, "password": password})
        return str(res.get("user", ""))

    async def import_user(self, username: str, password: str, user_blob: str) -> None:
        await self.call(KEYSTORE_ENDPOINT, "keystore.importUser",
                        {"username": username, "password": password, "user": user_blob})

    # X-Chain

    async def x_list_addresses(self, username: str, password: str) -> List[str]:
        res = await self.call(X_CHAIN_ENDPOINT, "avm.listAddresses", {"username": username, "password": password})
        return list(res.get("addresses") or [])

    async def x_create_address(self, username: str, password: str) -> str:
        res = await self.call(X_CHAIN_ENDPOINT, "avm.createAddress", {"username": username, "password": password})
        return str(res.get("address", ""))

    async def x_get_balance(self, address: str, asset_id: str) -> Dict[str, Any]:
        return await self.call(X_CHAIN_ENDPOINT, "avm.getBalance", {"address": address, "assetID": asset_id})

    async def x_get_all_balances(self, address: str) -> List[Dict[str, Any]]:
        res = await self.call(X_CHAIN_ENDPOINT, "avm.getAllBalances", {"address": address})
        return list(res.get("balances") or [])

    async def x_get_asset_description(self, asset_id: str) -> Dict[str, Any]:
        return await self.call(X_CHAIN_ENDPOINT, "avm.getAssetDescription", {"assetID": asset_id})

    async def get_asset_name(self, asset_id: str) -> str:
        if asset_id in self._asset_names:
            return self._asset_names[asset_id]
        desc = await self.x_get_asset_description(asset_id)
        name = str(desc.get("name", "") or "")
        self._asset_names[asset_id] = name
        return name

    async def x_create_fixed_cap_asset(self, username: str, password: str, name: str, symbol: str,
                                       denomination: int, holders: List[Dict[str, Any]]) -> str:
        res = await self.call(X_CHAIN_ENDPOINT, "avm.createFixedCapAsset", {
            "username": username,
            "password": password,
            "name": name,
            "symbol": symbol,
            "denomination": denomination,
            "initialHolders": holders,
        })
        return str(res.get("assetID", ""))

    async def x_create_variable_cap_asset(self, username: str, password: str, name: str, symbol: str,
                                          denomination: int, minter_sets: List[Dict[str, Any]]) -> str:
        res = await self.call(X_CHAIN_ENDPOINT, "avm.createVariableCapAsset", {
            "username": username,
            "password": password,
            "name": name,
            "symbol": symbol,
            "denomination": denomination,
            "minterSets": minter_sets,
        })
        return str(res.get("assetID", ""))

    async def x_mint(self, username: str, password: str, amount: int, asset_id: str, to: str,
                     minters: List[str]) -> str:
        params: Dict[str, Any] = {
            "username": username,
            "password": password,
            "amount": amount,
            "assetID": asset_id,
            "to": to,
        }
        if minters:
            params["minters"] = minters
        res = await self.call(X_CHAIN_ENDPOINT, "avm.mint", params)
        return str(res.get("txID", ""))

    async def x_import_avax(self, username: str, password: str, to: str, source_chain: str) -> str:
        res = await self.call(X_CHAIN_ENDPOINT, "avm.importAVAX",
                              {"username": username, "password": password, "to": to, "sourceChain": source_chain})
        return str(res.get("txID", ""))

    async def x_export_avax(self, username: str, password: str, to: str, amount: int) -> str:
        res = await self.call(X_CHAIN_ENDPOINT, "avm.exportAVAX",
                              {"username": username, "password": password, "to": to, "amount": amount})
        return str(res.get("txID", ""))

    async def x_send(self, username: str, password: str, asset_id: str, amount: int, to: str,
                     from_addresses: List[str]) -> str:
        res = await self.call(X_CHAIN_ENDPOINT, "avm.send", {
            "username": username,
            "password": password,
            "assetID": asset_id,
            "amount": amount,
            "to": to,
            "from": from_addresses,
        })
        return str(res.get("txID", ""))

    async def x_get_tx_status(self, tx_id: str) -> str:
        res = await self.call(X_CHAIN_ENDPOINT, "avm.getTxStatus", {"txID": tx_id})
        return str(res.get("status", ""))

    # P-Chain

    async def p_create_address(self, username: str, password: str) -> str:
        res = await self.call(P_CHAIN_ENDPOINT, "platform.createAddress", {"username": username, "password": password})
        return str(res.get("address", ""))

    async def p_list_addresses(self, username: str, password: str) -> List[str]:
        res = await self.call(P_CHAIN_ENDPOINT, "platform.listAddresses", {"username": username, "password": password})
        return list(res.get("addresses") or [])

    async def p_get_balance(self, address: str) -> Dict[str, Any]:
        return await self.call(P_CHAIN_ENDPOINT, "platform.getBalance", {"address": address})

    async def p_create_subnet(self, username: str, password: str, control_keys: List[str], threshold: int) -> str:
        res = await self.call(P_CHAIN_ENDPOINT, "platform.createSubnet", {
            "username": username,
            "password": password,
            "controlKeys": control_keys,
            "threshold": threshold,
        })
        return str(res.get("txID", ""))

    async def p_get_subnets(self, ids: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        params = {"ids": ids} if ids else {}
        res = await self.call(P_CHAIN_ENDPOINT, "platform.getSubnets", params)
        return list(res.get("subnets") or [])

    async def p_get_tx_status(self, tx_id: str) -> str:
        res = await self.call(P_CHAIN_ENDPOINT, "platform.getTxStatus", {"txID": tx_id})
        return str(res.get("status", "") if isinstance(res, dict) else res)

    async def p_import_avax(self, username: str, password: str, to: str, source_chain: str) -> Dict[str, Any]:
        return await self.call(P_CHAIN_ENDPOINT, "platform.importAVAX",
                               {"username": username, "password": password, "to": to, "sourceChain": source_chain})

    async def p_export_avax(self, username: str, password: str, amount: int, to: str) -> Dict[str, Any]:
        return await self.call(P_CHAIN_ENDPOINT, "platform.exportAVAX",
                               {"username": username, "password": password, "amount": amount, "to": to})

    async def p_issue_tx(self, tx: str) -> str:
        res = await self.call(P_CHAIN_ENDPOINT, "platform.issueTx", {"tx": tx})
        return str(res.get("txID", ""))

    async def p_add_validator(self, username: str, password: str, node_id: str, start_time: int, end_time: int,
                              stake_amount: int, reward_address: str, delegation_fee_rate: int) -> str:
        res = await self.call(P_CHAIN_ENDPOINT, "platform.addValidator", {
            "username": username,
            "password": password,
            "nodeID": node_id,
            "startTime": start_time,
            "endTime": end_time,
            "stakeAmount": stake_amount,
            "rewardAddress": reward_address,
            "delegationFeeRate": delegation_fee_rate,
        })
        return str(res.get("txID", ""))

    async def p_add_subnet_validator(self, username: str, password: str, node_id: str, subnet_id: str,
                                     start_time: int, end_time: int, weight: int) -> str:
        res = await self.call(P_CHAIN_ENDPOINT, "platform.addSubnetValidator", {
            "username": username,
            "password": password,
            "nodeID": node_id,
            "subnetID": subnet_id,
            "startTime": start_time,
            "endTime": end_time,
            "weight": weight,
        })
        return str(res.get("txID", ""))

    async def p_get_pending_validators(self, subnet_id: Optional[str] = None) -> Dict[str, Any]:
        params = {"subnetID": subnet_id} if subnet_id else {}
        return await self.call(P_CHAIN_ENDPOINT, "platform.getPendingValidators", params)

    async def p_get_current_validators(self, subnet_id: Optional[str] = None) -> Dict[str, Any]:
        params = {"subnetID": subnet_id} if subnet_id else {}
        return await self.call(P_CHAIN_ENDPOINT, "platform.getCurrentValidators", params)
