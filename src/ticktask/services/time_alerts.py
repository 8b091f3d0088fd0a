# Rev 0.3.0
"""Time-limit and time-leak notifications driven by timer ticks."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Set

from ..models.entities import TimerSnapshot
from ..utils.timeutil import Clock, format_time, utc_now

log = logging.getLogger(__name__)

Deliver = Callable[[str, str], None]

TIME_LEAK = "time_leak"


class DebouncedNotifier:
    """Drops an identical title/body pair repeated within the debounce window."""

    def __init__(self, deliver: Deliver, *, debounce_seconds: float = 5.0, clock: Clock = utc_now):
        self._deliver = deliver
        self._window = timedelta(seconds=debounce_seconds)
        self._clock = clock
        self._last_key: Optional[str] = None
        self._last_at: Optional[datetime] = None

    def __call__(self, title: str, body: str) -> bool:
        key = f"{title}-{body}"
        now = self._clock()
        if key == self._last_key and self._last_at is not None and now - self._last_at < self._window:
            return False
        self._last_key, self._last_at = key, now
        try:
            self._deliver(title, body)
        except Exception:
            # delivery is fire-and-forget; a broken tray must not stop the clock
            log.exception("Notification delivery failed: %s", title)
            return False
        return True


class TimeAlertWatcher:
    """
    Fed with (snapshot, seconds) on every tick.

    - time limit: one notification per task once seconds >= limit, re-armed by reset()
      or by the total dropping back under the limit
    - time leak: tasks in the time_leak category get a nudge when they cross the
      threshold and every nudge_seconds after that
    """

    def __init__(
        self,
        notify: Deliver,
        *,
        leak_threshold_seconds: int = 3600,
        leak_nudge_seconds: int = 300,
    ):
        self._notify = notify
        self._leak_threshold = leak_threshold_seconds
        self._leak_every = leak_nudge_seconds
        self._limit_notified: Set[int] = set()
        self._last_nudge: Dict[int, int] = {}

    def on_tick(self, snapshot: TimerSnapshot, seconds: int) -> None:
        self._check_limit(snapshot, seconds)
        self._check_leak(snapshot, seconds)

    def reset(self, task_id: int) -> None:
        self._limit_notified.discard(task_id)
        self._last_nudge.pop(task_id, None)

    def _check_limit(self, snap: TimerSnapshot, seconds: int) -> None:
        limit = snap.time_limit_seconds
        if not limit:
            return
        if seconds < limit:
            self._limit_notified.discard(snap.task_id)
            return
        if snap.task_id in self._limit_notified:
            return
        self._limit_notified.add(snap.task_id)
        log.info("Task %s reached its time limit (%ss)", snap.task_id, limit)
        self._notify("Time limit reached!", f'The task "{snap.task_name}" reached its time limit of {format_time(limit)}')

    def _check_leak(self, snap: TimerSnapshot, seconds: int) -> None:
        if snap.category != TIME_LEAK:
            return
        if seconds < self._leak_threshold:
            self._last_nudge.pop(snap.task_id, None)
            return
        last = self._last_nudge.get(snap.task_id)
        if last is not None and seconds - last < self._leak_every:
            return
        self._last_nudge[snap.task_id] = seconds
        self._notify(
            "Time leak",
            f'"{snap.task_name}" has been running for {format_time(seconds)}. Have you considered stopping?',
        )
