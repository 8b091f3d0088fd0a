# Rev 0.3.0

"""Paths and XDG helpers (Rev 0.3.0)
- Uses XDG Base Directory spec for data/state/config
- DB lives under the XDG data dir unless TICKTASK_DB points elsewhere
- SQL migrations ship inside the package (repositories/migrations)
"""
from __future__ import annotations
import os
from pathlib import Path


APP_NAME = "ticktask"


XDG_DATA_HOME = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
XDG_STATE_HOME = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
XDG_CONFIG_HOME = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


DATA_DIR = XDG_DATA_HOME / APP_NAME
STATE_DIR = XDG_STATE_HOME / APP_NAME
LOGS_DIR = STATE_DIR / "logs"
CONFIG_DIR = XDG_CONFIG_HOME / APP_NAME


PACKAGE_ROOT = Path(__file__).resolve().parents[1]
MIGRATIONS_DIR = (PACKAGE_ROOT / "repositories" / "migrations").resolve()


DB_PATH = Path(os.environ.get("TICKTASK_DB", DATA_DIR / "ticktask.db"))


def config_dir() -> Path:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR


def ensure_dirs() -> None:
    for p in (DATA_DIR, STATE_DIR, LOGS_DIR, CONFIG_DIR):
        p.mkdir(parents=True, exist_ok=True)
