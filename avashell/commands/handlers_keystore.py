from __future__ import annotations

from typing import Dict, List

import requests

from avashell.commands.context import Session
from avashell.commands.registry import Command
from avashell.commands.spec import CommandSpec, FieldSpec
from avashell.keystore import KeystoreUser
from avashell.node import JsonRpcError
from avashell.ui_core import print_error, print_info

USERNAME = FieldSpec("username")
PASSWORD = FieldSpec("password")


async def list_users(session: Session) -> List[str]:
    usernames = await session.require_node().list_users()
    if not usernames:
        print_info("No users found")
        return []
    print_info(f"{len(usernames)} users found:")
    for name in usernames:
        print_info(name)
    return usernames


async def create_user(session: Session, username: str, password: str) -> None:
    await session.require_node().create_user(username, password)
    session.keystore.add_user(KeystoreUser(username, password))
    print_info(f"Created user: {username}")


async def delete_user(session: Session, username: str, password: str) -> None:
    await session.require_node().delete_user(username, password)
    session.keystore.remove_user(username)
    print_info(f"Deleted user: {username}")


async def export_user(session: Session, username: str, password: str) -> str:
    out = await session.require_node().export_user(username, password)
    print_info("Exported user")
    print_info(out)
    return out


async def import_user(session: Session, username: str, password: str, encrypted_blob: str) -> None:
    await session.require_node().import_user(username, password, encrypted_blob)
    print_info("Successfully imported user")


async def login(session: Session, username: str, password: str) -> bool:
    # the keystore has no auth call; listing addresses proves the credentials
    try:
        await session.require_node().x_list_addresses(username, password)
    except JsonRpcError:
        print_error("Incorrect username/password")
        return False
    except requests.RequestException as exc:
        print_error(f"Login failed: {exc}")
        return False
    session.keystore.add_user(KeystoreUser(username, password), set_active=True)
    print_info("Login successful")
    return True


async def set_user(session: Session, username: str) -> bool:
    if not session.keystore.has_user(username):
        print_error("Please authenticate with this user first using command: login")
        return False
    session.keystore.set_active_user(username)
    print_info("Set active user to: " + username)
    return True


def commands() -> Dict[str, Command]:
    return {
        "listUsers": Command(list_users, CommandSpec.of("List the names of all users on the node")),
        "createUser": Command(create_user,
                              CommandSpec.of("Creates a user in the node's database.", USERNAME, PASSWORD)),
        "deleteUser": Command(delete_user, CommandSpec.of("Delete a user", USERNAME, PASSWORD)),
        "exportUser": Command(export_user, CommandSpec.of("Export a user", USERNAME, PASSWORD)),
        "importUser": Command(import_user, CommandSpec.of("Import a user", USERNAME, PASSWORD,
                                                          FieldSpec("encryptedBlob"))),
        "login": Command(login, CommandSpec.of("Authenticate with a username and password", USERNAME, PASSWORD)),
        "setUser": Command(set_user, CommandSpec.of("Sets the active user for future avm commands", USERNAME)),
    }
