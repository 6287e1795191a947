from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from avashell.config import (
    DEBUG_LOG_PATH,
    DEFAULT_NODE_HOST,
    DEFAULT_NODE_PORT,
    DEFAULT_NODE_PROTOCOL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TIMEOUT,
    ENV_NODE_HOST,
    ENV_NODE_PORT,
    ENV_NODE_PROTOCOL,
)


@dataclass(frozen=True)
class CfgField:
    key: str
    kind: str
    default: Any
    required: bool = True
    non_empty: bool = False
    min_int: Optional[int] = None
    choices: Tuple[str, ...] = ()


CFG_FIELDS: List[CfgField] = [
    CfgField("NODE_HOST", "str", DEFAULT_NODE_HOST, required=True, non_empty=True),
    CfgField("NODE_PORT", "int", int(DEFAULT_NODE_PORT), required=True, min_int=1),
    CfgField("NODE_PROTOCOL", "str", DEFAULT_NODE_PROTOCOL, required=True, non_empty=True,
             choices=("http", "https")),
    CfgField("RPC_TIMEOUT_S", "int", int(DEFAULT_TIMEOUT), required=True, min_int=1),
    CfgField("PENDING_POLL_INTERVAL_S", "int", int(DEFAULT_POLL_INTERVAL), required=True, min_int=1),
    CfgField("DEBUG_ENABLED", "bool", False, required=True),
    CfgField("DEBUG_LOG_PATH", "str", DEBUG_LOG_PATH, required=True, non_empty=True),
    CfgField("DEBUG_MAX_BYTES", "int", 0, required=True, min_int=0),
]

ENV_OVERRIDES: Dict[str, str] = {
    "NODE_HOST": ENV_NODE_HOST,
    "NODE_PORT": ENV_NODE_PORT,
    "NODE_PROTOCOL": ENV_NODE_PROTOCOL,
}


def _parse_bool(v: Any) -> Optional[bool]:
    if isinstance(v, bool):
        return v
    if isinstance(v, int) and v in {0, 1}:
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in {"1", "true", "yes", "y", "on"}:
            return True
        if s in {"0", "false", "no", "n", "off"}:
            return False
    return None


def _parse_int(v: Any) -> Optional[int]:
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        s = v.strip()
        if s.isdigit():
            return int(s)
    return None


def normalize_config(raw: Any) -> Tuple[Dict[str, Any], List[str]]:
    errs: List[str] = []
    if not isinstance(raw, dict):
        raw = {}
        errs.append("config file is not a JSON object, using defaults.")
    out: Dict[str, Any] = {}
    for f in CFG_FIELDS:
        if f.key not in raw:
            if f.required:
                errs.append(f"missing field: {f.key}")
            out[f.key] = f.default
            continue
        v = raw.get(f.key)
        if f.kind == "str":
            s = "" if v is None else str(v)
            s = s.strip()
            if f.non_empty and not s:
                errs.append(f"field {f.key} must not be empty")
                out[f.key] = f.default
            elif f.choices and s.lower() not in f.choices:
                errs.append(f"field {f.key} must be one of: {', '.join(f.choices)}")
                out[f.key] = f.default
            else:
                out[f.key] = s.lower() if f.choices else s
        elif f.kind == "int":
            n = _parse_int(v)
            if n is None:
                errs.append(f"field {f.key} must be an integer")
                out[f.key] = f.default
            else:
                if f.min_int is not None and n < f.min_int:
                    errs.append(f"field {f.key} too small: {n} < {f.min_int}")
                    out[f.key] = f.default
                else:
                    out[f.key] = n
        elif f.kind == "bool":
            b = _parse_bool(v)
            if b is None:
                errs.append(f"field {f.key} must be a boolean (0/1/true/false)")
                out[f.key] = f.default
            else:
                out[f.key] = b
        else:
            errs.append(f"unknown field kind: {f.key}")
            out[f.key] = f.default
    return out, errs


def apply_env_overrides(cfg: Dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> Tuple[Dict[str, Any], List[str]]:
    env = os.environ if environ is None else environ
    trial = dict(cfg)
    touched: List[str] = []
    for key, var in ENV_OVERRIDES.items():
        val = str(env.get(var, "") or "").strip()
        if val:
            trial[key] = val
            touched.append(key)
    norm, errs = normalize_config(trial)
    bad = [e for e in errs if any(k in e for k in touched)]
    return norm, bad
