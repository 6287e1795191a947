from __future__ import annotations

import json
import os
import threading
import time
import traceback
from typing import Any, Dict, Optional

from avashell.config import DEBUG_LOG_PATH

# RPC retries log from worker threads (asyncio.to_thread)
_LOCK = threading.Lock()
_ENABLED_OVERRIDE: Optional[bool] = None
_PATH_OVERRIDE: Optional[str] = None
_MAX_BYTES_OVERRIDE: Optional[int] = None


def debug_enabled() -> bool:
    if _ENABLED_OVERRIDE is not None:
        return bool(_ENABLED_OVERRIDE)
    return False


def debug_log_path() -> str:
    if _PATH_OVERRIDE:
        return _PATH_OVERRIDE
    return DEBUG_LOG_PATH


def set_debug_enabled(enabled: Optional[bool]) -> None:
    global _ENABLED_OVERRIDE
    _ENABLED_OVERRIDE = enabled


def set_debug_log_path(path: Optional[str]) -> None:
    global _PATH_OVERRIDE
    _PATH_OVERRIDE = (path or "").strip() or None


def set_debug_max_bytes(max_bytes: Optional[int]) -> None:
    global _MAX_BYTES_OVERRIDE
    if max_bytes is None:
        _MAX_BYTES_OVERRIDE = None
        return
    try:
        _MAX_BYTES_OVERRIDE = int(max_bytes)
    except (TypeError, ValueError):
        _MAX_BYTES_OVERRIDE = None


def debug_max_bytes() -> int:
    if _MAX_BYTES_OVERRIDE is not None:
        return int(_MAX_BYTES_OVERRIDE)
    return 0


def configure_debug(cfg: Dict[str, Any]) -> None:
    set_debug_enabled(bool(cfg.get("DEBUG_ENABLED") is True))
    set_debug_log_path(str(cfg.get("DEBUG_LOG_PATH", "") or ""))
    try:
        set_debug_max_bytes(int(cfg.get("DEBUG_MAX_BYTES", 0) or 0))
    except (TypeError, ValueError):
        set_debug_max_bytes(0)


def _rotate_if_needed(path: str) -> None:
    max_bytes = debug_max_bytes()
    if max_bytes <= 0 or not os.path.exists(path):
        return
    if os.path.getsize(path) <= max_bytes:
        return
    rot = path + f".{int(time.time())}.bak"
    try:
        os.replace(path, rot)
    except OSError:
        return


def debug_log(event: str, data: Optional[Dict[str, Any]] = None) -> None:
    if not debug_enabled():
        return
    rec: Dict[str, Any] = {
        "ts": int(time.time() * 1000),
        "event": str(event or "").strip() or "event",
        "data": data or {},
    }
    try:
        line = json.dumps(rec, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return

    path = debug_log_path()
    try:
        with _LOCK:
            try:
                _rotate_if_needed(path)
            except (OSError, ValueError, TypeError):
                pass
            with open(path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
    except OSError:
        return


def debug_exception(event: str, exc: BaseException, data: Optional[Dict[str, Any]] = None) -> None:
    payload = dict(data or {})
    payload["error_type"] = type(exc).__name__
    payload["error"] = str(exc)[:800]
    payload["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))[-4000:]
    debug_log(event, payload)
