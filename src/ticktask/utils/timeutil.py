# Rev 0.3.0
"""Clock, ISO timestamp and duration formatting helpers."""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def parse_iso(value: str) -> datetime:
    # Accept the trailing "Z" older rows were written with
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def elapsed_seconds(start: datetime, now: datetime) -> int:
    """Whole seconds from start to now, floored; 0 when the clock went backwards."""
    delta = (now - start).total_seconds()
    return max(0, math.floor(delta))


def format_time(seconds: float) -> str:
    total = max(0, math.floor(seconds))
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def parse_time_input(text: str) -> int:
    """'H:M:S', 'H:M' or 'H' into seconds. Raises ValueError on junk."""
    parts = [p.strip() for p in text.strip().split(":")]
    if not parts or len(parts) > 3 or any(not p.isdigit() for p in parts):
        raise ValueError(f"invalid time input: {text!r}")
    h, m, s = (list(map(int, parts)) + [0, 0])[:3]
    return h * 3600 + m * 60 + s


def calculate_progress(current: int, limit: int | None) -> float:
    if not limit:
        return 0.0
    return min(current / limit * 100.0, 100.0)
