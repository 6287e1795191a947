from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from avashell.cfg_schema import apply_env_overrides
from avashell.cli_input import CommandReader
from avashell.commands.context import Session
from avashell.commands.dispatcher import Dispatcher
from avashell.commands.registry import build_registry
from avashell.config import CONFIG_SAVE_PATH
from avashell.debug import configure_debug, debug_log
from avashell.persist import load_config, save_json_file
from avashell.poller import PendingTxPoller
from avashell.ui_core import print_info


def load_startup_config(path: str = CONFIG_SAVE_PATH) -> Dict[str, Any]:
    cfg, errs, has_file = load_config(path)
    if errs:
        print_info("[config] invalid or incomplete entries, falling back to defaults:")
        for e in errs[:6]:
            print_info(f"[config] - {e}")
    if not has_file or errs:
        try:
            save_json_file(path, cfg)
        except (OSError, TypeError, ValueError) as exc:
            print_info(f"[warning] could not write config: {exc}")
    cfg, env_errs = apply_env_overrides(cfg)
    for e in env_errs:
        print_info(f"[config] ignoring environment override: {e}")
    return cfg


async def run_shell(session: Session, dispatcher: Dispatcher, reader: Optional[CommandReader] = None) -> None:
    reader = reader or CommandReader(dispatcher)
    poller = PendingTxPoller(session, interval=float(session.config.get("PENDING_POLL_INTERVAL_S", 5)))
    poller.start()
    try:
        while not session.should_exit:
            try:
                raw = await reader.read(dispatcher.prompt())
            except KeyboardInterrupt:
                print_info("\n[hint] input cancelled.")
                continue
            except EOFError:
                break
            if not raw:
                continue
            await dispatcher.handle(raw)
    finally:
        await poller.stop()


async def amain() -> None:
    cfg = load_startup_config()
    configure_debug(cfg)
    debug_log("startup", {"host": cfg["NODE_HOST"], "port": cfg["NODE_PORT"], "protocol": cfg["NODE_PROTOCOL"]})

    registry = build_registry()
    session = Session(config=cfg)
    await session.connect(cfg["NODE_HOST"], cfg["NODE_PORT"], cfg["NODE_PROTOCOL"])
    if not session.connected:
        session.print_node_info()
    print_info("Type help to see all supported commands.")

    dispatcher = Dispatcher(session, registry)
    try:
        await run_shell(session, dispatcher)
    finally:
        session.close()


def main() -> None:
    try:
        asyncio.run(amain())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
