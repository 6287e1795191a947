from __future__ import annotations

from typing import Any, Dict, List, Optional

from avashell.commands.context import Session
from avashell.commands.helpers import active_user, parse_int, split_list
from avashell.commands.registry import Command
from avashell.commands.spec import CommandSpec, FieldSpec
from avashell.keystore import KeystoreUser
from avashell.node import NATIVE_ASSET
from avashell.ui_core import pformat, print_error, print_info

MISSING_USER_HINT = "Set active user first with: keystore setUser"


def _user(session: Session) -> Optional[KeystoreUser]:
    return active_user(session, MISSING_USER_HINT)


def _pairs(args: List[str]) -> Optional[List[List[str]]]:
    if len(args) % 2 != 0:
        return None
    return [[args[i], args[i + 1]] for i in range(0, len(args), 2)]


def _submitted(session: Session, tx_id: str) -> str:
    print_info("Submitted transaction: " + tx_id)
    session.tracker.add(tx_id)
    return tx_id


async def get_asset_description(session: Session, asset_id: str) -> Dict[str, Any]:
    res = await session.require_node().x_get_asset_description(asset_id)
    print_info(f"name: {res.get('name', '')}")
    print_info(f"symbol: {res.get('symbol', '')}")
    return res


async def create_fixed_cap_asset(session: Session, name: str, symbol: str, *holder_args: str) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    pairs = _pairs(list(holder_args))
    if pairs is None:
        print_error("Unexpected number of holder arguments")
        return None
    holders = [{"address": addr, "amount": parse_int(amt, "initialHolderAmount")} for addr, amt in pairs]
    asset_id = await session.require_node().x_create_fixed_cap_asset(user.username, user.password, name, symbol,
                                                                     0, holders)
    print_info("Created Asset ID: " + asset_id)
    session.tracker.add(asset_id)
    return asset_id


async def create_variable_cap_asset(session: Session, name: str, symbol: str, *minter_args: str) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    pairs = _pairs(list(minter_args))
    if pairs is None:
        print_error("Unexpected number of minterset arguments")
        return None
    minter_sets = [{"minters": split_list(addrs), "threshold": parse_int(threshold, "minterThreshold")}
                   for addrs, threshold in pairs]
    asset_id = await session.require_node().x_create_variable_cap_asset(user.username, user.password, name,
                                                                        symbol, 0, minter_sets)
    print_info("Created Asset ID: " + asset_id)
    return asset_id


async def mint(session: Session, amount: str, asset_id: str, to_address: str, *minters: str) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    n = parse_int(amount, "amount")
    tx_id = await session.require_node().x_mint(user.username, user.password, n, asset_id, to_address, list(minters))
    return _submitted(session, tx_id)


async def import_avax(session: Session, dest: str, source_chain: str = "P") -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    tx_id = await session.require_node().x_import_avax(user.username, user.password, dest, source_chain)
    return _submitted(session, tx_id)


async def export_avax(session: Session, dest: str, amount: str) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    n = parse_int(amount, "amount")
    tx_id = await session.require_node().x_export_avax(user.username, user.password, dest, n)
    return _submitted(session, tx_id)


async def list_addresses(session: Session) -> List[str]:
    user = _user(session)
    if user is None:
        return []
    res = await session.require_node().x_list_addresses(user.username, user.password)
    print_info("Addresses for keystore user: " + user.username)
    if not res:
        print_info("None found")
        return []
    for address in res:
        print_info(address)
    return res


async def list_balances(session: Session) -> Dict[str, Any]:
    user = _user(session)
    if user is None:
        return {}
    res = await session.require_node().x_list_addresses(user.username, user.password)
    if not res:
        print_info("None found")
        return {}
    out: Dict[str, Any] = {}
    for address in res:
        out[address] = await get_all_balances(session, address)
        print_info()
    return out


async def create_address(session: Session) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    res = await session.require_node().x_create_address(user.username, user.password)
    print_info("Created Address:")
    print_info(res)
    return res


async def get_balance(session: Session, address: str, asset: str = NATIVE_ASSET) -> Dict[str, Any]:
    bal = await session.require_node().x_get_balance(address, asset)
    print_info(f"Balance on {address} for asset {asset}: {pformat(bal)}")
    return bal


async def get_all_balances(session: Session, address: str) -> List[Dict[str, Any]]:
    node = session.require_node()
    bal = await node.x_get_all_balances(address)
    for entry in bal:
        asset = entry.get("asset")
        if asset and asset != NATIVE_ASSET:
            entry["name"] = await node.get_asset_name(asset)
    print_info(f"Address {address}")
    print_info(pformat(bal))
    return bal


async def send(session: Session, from_address: str, to_address: str, amount: str,
               asset: str = NATIVE_ASSET) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    n = parse_int(amount, "amount")
    tx_id = await session.require_node().x_send(user.username, user.password, asset, n, to_address, [from_address])
    return _submitted(session, tx_id)


async def get_tx_status(session: Session, tx_id: str) -> str:
    res = await session.require_node().x_get_tx_status(tx_id)
    print_info("Transaction state: " + res)
    return res


async def list_txs(session: Session) -> List[str]:
    rows = session.tracker.render_rows()
    if not rows:
        print_info("No transactions submitted")
        return []
    print_info("Submitted transactions")
    for row in rows:
        print_info(row)
    return rows


def commands() -> Dict[str, Command]:
    return {
        "getAssetDescription": Command(get_asset_description, CommandSpec.of(
            "Get an asset's name and symbol from asset id", FieldSpec("assetId"))),
        "createFixedCapAsset": Command(create_fixed_cap_asset, CommandSpec.of(
            "Create a fixed cap asset with default denomination. Repeat address/amount pairs for more holders.",
            FieldSpec("name"), FieldSpec("symbol"), FieldSpec("initialHolderAddress"),
            FieldSpec("initialHolderAmount"), FieldSpec("moreHolders...", "none"))),
        "createVariableCapAsset": Command(create_variable_cap_asset, CommandSpec.of(
            "Create a variable cap asset. For a minter set, separate multiple minter addresses with comma.",
            FieldSpec("name"), FieldSpec("symbol"), FieldSpec("minterAddresses"), FieldSpec("minterThreshold"),
            FieldSpec("moreMinterSets...", "none"))),
        "mint": Command(mint, CommandSpec.of(
            "Mint more of a variable supply asset. This creates an unsigned transaction.",
            FieldSpec("amount"), FieldSpec("assetId"), FieldSpec("toAddress"), FieldSpec("minters..."))),
        "importAVAX": Command(import_avax, CommandSpec.of(
            "Import AVAX from a source chain.", FieldSpec("dest"), FieldSpec("sourceChain", "P"))),
        "exportAVAX": Command(export_avax, CommandSpec.of(
            "Send AVAX from the X-Chain to an account on the P-Chain.", FieldSpec("dest"), FieldSpec("amount"))),
        "listAddresses": Command(list_addresses, CommandSpec.of(
            "List all X-Chain addresses controlled by the current user")),
        "listBalances": Command(list_balances, CommandSpec.of(
            "List balances of all X-Chain addresses controlled by the current user")),
        "createAddress": Command(create_address, CommandSpec.of(
            "Create a new X-Chain address controlled by the current user")),
        "getBalance": Command(get_balance, CommandSpec.of(
            "Get the balance of an asset in an account", FieldSpec("address"), FieldSpec("asset", NATIVE_ASSET))),
        "getAllBalances": Command(get_all_balances, CommandSpec.of(
            "Get the balance of all assets in an account", FieldSpec("address"))),
        "send": Command(send, CommandSpec.of(
            "Sends asset from an address managed by this node's keystore to a destination address",
            FieldSpec("fromAddress"), FieldSpec("toAddress"), FieldSpec("amount"), FieldSpec("asset", NATIVE_ASSET))),
        "getTxStatus": Command(get_tx_status, CommandSpec.of(
            "Check the status of a transaction id", FieldSpec("txId"))),
        "listTxs": Command(list_txs, CommandSpec.of(
            "Show the status transactions that have been submitted in this session")),
    }
