# Rev 0.3.0
# src/ticktask/utils/config.py
from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .paths import config_dir

log = logging.getLogger(__name__)

SETTINGS_NAME = "settings.json"

_DEFAULTS: Dict[str, Any] = {
    "main_window": {
        "width": 900,
        "height": 670,
        "is_maximized": False,
    },
    "timer": {
        "tick_interval_ms": 1000,
        "reconcile_interval_ms": 3000,
    },
    "notifications": {
        "enabled": True,
        "debounce_seconds": 5,
        "time_leak_threshold_seconds": 3600,
        "time_leak_nudge_seconds": 300,
    },
    "sync": {
        "enabled": False,
        # entry point name in the ticktask.workspace_pushers group; sync needs one installed
        "pusher": None,
        "auto_sync": True,
        "timeout_seconds": 10.0,
        "last_sync": None,
    },
}


def settings_file() -> Path:
    return config_dir() / SETTINGS_NAME


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def defaults() -> Dict[str, Any]:
    return copy.deepcopy(_DEFAULTS)


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or settings_file()
    if not path.exists():
        return defaults()
    try:
        stored = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        log.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return defaults()
    if not isinstance(stored, dict):
        log.warning("Ignoring settings file %s: top level is not an object", path)
        return defaults()
    return _merge(_DEFAULTS, stored)


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or settings_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
