import json
import os
from typing import Any, Dict, List, Tuple

from avashell.cfg_schema import normalize_config


def load_json_file(path: str, default: Any) -> Any:
    if not os.path.exists(path):
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError, TypeError, ValueError):
        return default


def save_json_file(path: str, data: Any) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    os.replace(tmp, path)
    if os.name != "nt":
        os.chmod(path, 0o600)


def load_config(config_path: str) -> Tuple[Dict[str, Any], List[str], bool]:
    """Returns (normalized config, validation errors, whether the file existed)."""
    raw = load_json_file(config_path, None)
    if raw is None:
        norm, _errs = normalize_config({})
        return norm, [], False
    norm, errs = normalize_config(raw)
    return norm, errs, True
