from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Tuple

from avashell.commands.context import Session
from avashell.commands.helpers import active_user, parse_int
from avashell.commands.registry import Command
from avashell.commands.spec import CommandSpec, FieldSpec
from avashell.keystore import KeystoreUser
from avashell.ui_core import pformat, pprint, print_info

MISSING_USER_HINT = ("Missing user. Set active user with command: 'keystore login' "
                     "or create user with 'keystore createUser'")
DEFAULT_SUBNET = "default"
DELEGATION_FEE_RATE = 10


def _user(session: Session) -> Optional[KeystoreUser]:
    return active_user(session, MISSING_USER_HINT)


def _subnet(subnet_id: Optional[str]) -> Optional[str]:
    if not subnet_id or subnet_id == DEFAULT_SUBNET:
        return None
    return subnet_id


def validation_window(end_time_days: int, now: Optional[float] = None) -> Tuple[int, int]:
    """Start one minute from now, end after the given days; whole minutes."""
    base = int(time.time() if now is None else now)
    base -= base % 60
    return base + 60, base + end_time_days * 86400


async def create_address(session: Session) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    res = await session.require_node().p_create_address(user.username, user.password)
    print_info("Created platform account: " + res)
    return res


async def list_addresses(session: Session) -> List[str]:
    user = _user(session)
    if user is None:
        return []
    res = await session.require_node().p_list_addresses(user.username, user.password)
    if not res:
        print_info("No P-Chain addresses for current user")
        return []
    print_info(f"{len(res)} P-Chain addresses")
    for addr in res:
        print_info(addr)
    return res


async def list_balances(session: Session) -> Dict[str, Any]:
    user = _user(session)
    if user is None:
        return {}
    node = session.require_node()
    addresses = await node.p_list_addresses(user.username, user.password)
    if not addresses:
        print_info("No accounts found")
        return {}
    out: Dict[str, Any] = {}
    for address in addresses:
        res = await node.p_get_balance(address)
        out[address] = res
        print_info(f"Address: {address}")
        pprint(res)
    return out


async def get_balance(session: Session, address: str) -> Dict[str, Any]:
    res = await session.require_node().p_get_balance(address)
    pprint(res)
    return res


async def create_subnet(session: Session, threshold: str, *control_keys: str) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    n = parse_int(threshold, "threshold")
    res = await session.require_node().p_create_subnet(user.username, user.password, list(control_keys), n)
    print_info(f"Created subnet id {res}")
    session.tracker.add(res, chain="P")
    return res


async def get_subnets(session: Session, *subnet_ids: str) -> List[Dict[str, Any]]:
    res = await session.require_node().p_get_subnets(list(subnet_ids) or None)
    pprint(res)
    return res


async def get_tx_status(session: Session, tx_id: str) -> str:
    res = await session.require_node().p_get_tx_status(tx_id)
    print_info(f"Transaction status: {res}")
    return res


async def issue_tx(session: Session, tx: str) -> str:
    tx_id = await session.require_node().p_issue_tx(tx)
    print_info("result txId: " + tx_id)
    session.tracker.add(tx_id, chain="P")
    return tx_id


async def _issue_or_track(session: Session, res: Any) -> str:
    # older nodes return an unsigned tx to issue; newer ones issue it and return the id
    if isinstance(res, dict) and res.get("tx"):
        print_info("Issuing Transaction...")
        print_info(str(res["tx"]))
        return await issue_tx(session, str(res["tx"]))
    tx_id = str(res.get("txID", "") if isinstance(res, dict) else res)
    print_info("Submitted transaction: " + tx_id)
    session.tracker.add(tx_id, chain="P")
    return tx_id


async def import_avax(session: Session, dest: str, source_chain: str = "X") -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    res = await session.require_node().p_import_avax(user.username, user.password, dest, source_chain)
    return await _issue_or_track(session, res)


async def export_avax(session: Session, amount: str, dest: str) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    n = parse_int(amount, "amount")
    res = await session.require_node().p_export_avax(user.username, user.password, n, dest)
    return await _issue_or_track(session, res)


async def add_validator(session: Session, destination: str, stake_amount: str, end_time_days: str) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    stake = parse_int(stake_amount, "stakeAmount")
    start, end = validation_window(parse_int(end_time_days, "endTimeDays"))
    node = session.require_node()
    tx_id = await node.p_add_validator(user.username, user.password, node.node_id, start, end, stake,
                                       destination, DELEGATION_FEE_RATE)
    print_info("transactionId " + tx_id)
    session.tracker.add(tx_id, chain="P")
    return tx_id


async def add_subnet_validator(session: Session, subnet_id: str, weight: str, end_time_days: str) -> Optional[str]:
    user = _user(session)
    if user is None:
        return None
    w = parse_int(weight, "weight")
    start, end = validation_window(parse_int(end_time_days, "endTimeDays"))
    node = session.require_node()
    tx_id = await node.p_add_subnet_validator(user.username, user.password, node.node_id, subnet_id, start, end, w)
    print_info("transactionId " + tx_id)
    session.tracker.add(tx_id, chain="P")
    return tx_id


async def get_pending_validators(session: Session, subnet_id: str = DEFAULT_SUBNET) -> Dict[str, Any]:
    res = await session.require_node().p_get_pending_validators(_subnet(subnet_id))
    print_info(pformat(res))
    return res


async def get_current_validators(session: Session, subnet_id: str = DEFAULT_SUBNET) -> Dict[str, Any]:
    res = await session.require_node().p_get_current_validators(_subnet(subnet_id))
    print_info(pformat(res))
    return res


async def is_current_validator(session: Session, subnet_id: str = DEFAULT_SUBNET) -> bool:
    node = session.require_node()
    res = await node.p_get_current_validators(_subnet(subnet_id))
    found = False
    for val_info in (res or {}).get("validators") or []:
        if val_info.get("nodeID") == node.node_id:
            print_info("Current node is a validator")
            pprint(val_info)
            found = True
    if not found:
        print_info("Current node is not a validator")
    return found


SUBNET_ID = FieldSpec("subnetId", DEFAULT_SUBNET)


def commands() -> Dict[str, Command]:
    return {
        "createAddress": Command(create_address, CommandSpec.of("Create a new P-Chain address")),
        "listAddresses": Command(list_addresses, CommandSpec.of("Show all P-Chain addresses for current user")),
        "listBalances": Command(list_balances, CommandSpec.of("List balance for all your P-Chain accounts")),
        "getBalance": Command(get_balance, CommandSpec.of("Fetch P-Chain account by address", FieldSpec("address"))),
        "createSubnet": Command(create_subnet, CommandSpec.of(
            "Create a new Subnet. The Subnet's ID is the same as this transaction's ID.",
            FieldSpec("threshold"), FieldSpec("controlKeys..."))),
        "getSubnets": Command(get_subnets, CommandSpec.of(
            "Get info about specified subnets. If no id specified, get info on all subnets",
            FieldSpec("subnetIds...", "all"))),
        "getTxStatus": Command(get_tx_status, CommandSpec.of("Check the status of a transaction id", FieldSpec("txId"))),
        "importAVAX": Command(import_avax, CommandSpec.of(
            "Finalize a transfer of AVAX from the X-Chain to the P-Chain.",
            FieldSpec("dest"), FieldSpec("sourceChain", "X"))),
        "exportAVAX": Command(export_avax, CommandSpec.of(
            "Send AVAX from an account on the P-Chain to an address on the X-Chain.",
            FieldSpec("amount"), FieldSpec("x-dest"))),
        "issueTx": Command(issue_tx, CommandSpec.of("Issue a transaction to the platform chain", FieldSpec("tx"))),
        "addValidator": Command(add_validator, CommandSpec.of(
            "Add current node to default subnet (sign and issue the transaction)",
            FieldSpec("destination"), FieldSpec("stakeAmount"), FieldSpec("endTimeDays"))),
        "addSubnetValidator": Command(add_subnet_validator, CommandSpec.of(
            "Add current node to a subnet (sign and issue the transaction)",
            FieldSpec("subnetId"), FieldSpec("weight"), FieldSpec("endTimeDays"))),
        "getPendingValidators": Command(get_pending_validators, CommandSpec.of(
            "List pending validator set for a subnet, or the Default Subnet if no subnetId is specified", SUBNET_ID)),
        "getCurrentValidators": Command(get_current_validators, CommandSpec.of(
            "List current validator set for a subnet, or the Default Subnet if no subnetId is specified", SUBNET_ID)),
        "isCurrentValidator": Command(is_current_validator, CommandSpec.of(
            "Check if current node is a validator for a subnet, or the Default Subnet if no subnetId is specified",
            SUBNET_ID)),
    }
