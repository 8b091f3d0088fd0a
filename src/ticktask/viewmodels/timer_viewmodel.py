# Rev 0.3.0
from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from ..errors import TickTaskError
from ..models.entities import SessionState, TimerSnapshot
from ..models.types import TimerState
from ..services.session_engine import SessionEngine
from ..utils.timeutil import Clock, utc_now

log = logging.getLogger(__name__)


class TimerViewModel(QObject):
    """
    Live clock for the running task: idle -> seeded -> ticking.

    Ticks are pure arithmetic on the seed (base_seconds + floor(now - start_time));
    the store is only read by reconcile(), which a slower timer calls so that
    stops from another surface or a restart mid-session are picked up.
    """

    ticked = Signal(int, int)           # task_id, display seconds
    stateChanged = Signal(str)
    snapshotChanged = Signal(object)    # TimerSnapshot | None
    stopped = Signal(int, int)          # task_id, final total
    wasReset = Signal(int)
    errorRaised = Signal(str)

    def __init__(
        self,
        engine: SessionEngine,
        *,
        clock: Clock = utc_now,
        tick_interval_ms: int = 1000,
        reconcile_interval_ms: int = 3000,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._engine = engine
        self._clock = clock
        self._state: TimerState = "idle"
        self._snapshot: Optional[TimerSnapshot] = None
        self._last_published = 0
        self._idle_seconds = 0
        self._idle_task_id: Optional[int] = None   # task whose total the idle clock shows
        self._epoch = 0

        self._tick = QTimer(self)
        self._tick.setInterval(tick_interval_ms)
        self._tick.timeout.connect(self._on_tick)

        self._poll = QTimer(self)
        self._poll.setInterval(reconcile_interval_ms)
        self._poll.timeout.connect(self.reconcile)

    # ---- read-only state
    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def snapshot(self) -> Optional[TimerSnapshot]:
        return self._snapshot

    @property
    def epoch(self) -> int:
        """Bumped on every seed and every return to idle."""
        return self._epoch

    @property
    def tick_active(self) -> bool:
        return self._tick.isActive()

    @property
    def polling(self) -> bool:
        return self._poll.isActive()

    @property
    def display_seconds(self) -> int:
        if self._state == "ticking":
            return self._last_published
        return self._idle_seconds

    # ---- lifecycle
    def begin(self) -> None:
        """Adopt whatever the store says is running and start reconciling."""
        self.reconcile()
        self._poll.start()

    def shutdown(self) -> None:
        self._tick.stop()
        self._poll.stop()

    # ---- seeding
    def seed(self, snapshot: Optional[TimerSnapshot], *, force: bool = False) -> bool:
        """(Re)seed the clock. Same (task_id, start_time) as the current seed is a no-op."""
        if snapshot is None:
            if self._state != "idle":
                self._go_idle(self._last_published)
                return True
            return False
        if (
            not force
            and self._state != "idle"
            and self._snapshot is not None
            and self._snapshot.seed_key == snapshot.seed_key
        ):
            return False

        self._tick.stop()
        self._epoch += 1
        self._snapshot = snapshot
        self._last_published = 0
        self._set_state("seeded")
        self.snapshotChanged.emit(snapshot)

        self._set_state("ticking")
        self._tick.start()
        self._on_tick()
        log.debug("Timer seeded for task %s (base %ss)", snapshot.task_id, snapshot.base_seconds)
        return True

    def reconcile(self) -> None:
        try:
            current = self._engine.current()
        except TickTaskError as exc:
            log.warning("Timer reconcile failed: %s", exc)
            return
        if current.active is None:
            if self._state != "idle":
                log.info("Store reports no running task; timer going idle")
                self._go_idle(self._last_published)
            return
        if self.seed(current.active):
            log.info("Timer re-seeded from store for task %s", current.active.task_id)

    # ---- commands
    def start(self, task_id: int) -> Optional[SessionState]:
        try:
            result = self._engine.start(task_id)
        except TickTaskError as exc:
            return self._fail("start", exc)
        if result.stopped is not None:
            self.stopped.emit(result.stopped.id, result.stopped.total_seconds)
        self.seed(result.active)
        return result

    def stop(self, task_id: Optional[int] = None) -> Optional[SessionState]:
        if task_id is None:
            if self._snapshot is None:
                return None
            task_id = self._snapshot.task_id
        ours = self._snapshot is not None and self._snapshot.task_id == task_id
        if ours:
            self._tick.stop()
        try:
            result = self._engine.stop(task_id)
        except TickTaskError as exc:
            # the store did not change; resume showing what it has
            self._resync()
            return self._fail("stop", exc)
        if result.active is None:
            self._go_idle(result.task.total_seconds, task_id)
        else:
            self._resync(result.active)
        self.stopped.emit(task_id, result.task.total_seconds)
        return result

    def reset(self, task_id: int) -> Optional[SessionState]:
        ours = self._snapshot is not None and self._snapshot.task_id == task_id
        if ours:
            self._tick.stop()
        try:
            result = self._engine.reset(task_id)
        except TickTaskError as exc:
            self._resync()
            return self._fail("reset", exc)
        if ours or (result.active is None and self._idle_task_id in (None, task_id)):
            self._go_idle(result.task.total_seconds, task_id)
        self.wasReset.emit(task_id)
        return result

    def add_manual_time(self, task_id: int, seconds: int) -> Optional[SessionState]:
        try:
            result = self._engine.add_manual_time(task_id, seconds)
        except TickTaskError as exc:
            return self._fail("add manual time", exc)
        self._reseed_if_ours(task_id, result)
        return result

    def set_total_time(self, task_id: int, seconds: int) -> Optional[SessionState]:
        try:
            result = self._engine.set_total_time(task_id, seconds)
        except TickTaskError as exc:
            return self._fail("set total time", exc)
        self._reseed_if_ours(task_id, result)
        return result

    # ---- internals
    def _on_tick(self) -> None:
        if self._state != "ticking" or self._snapshot is None:
            return
        seconds = max(self._snapshot.display_seconds(self._clock()), self._last_published)
        self._last_published = seconds
        self.ticked.emit(self._snapshot.task_id, seconds)

    def _go_idle(self, final_seconds: int, task_id: Optional[int] = None) -> None:
        if task_id is None and self._snapshot is not None:
            task_id = self._snapshot.task_id
        self._tick.stop()
        self._epoch += 1
        self._snapshot = None
        self._idle_seconds = max(0, final_seconds)
        self._idle_task_id = task_id
        self._last_published = 0
        self._set_state("idle")
        self.snapshotChanged.emit(None)

    def _set_state(self, state: TimerState) -> None:
        if state != self._state:
            self._state = state
            self.stateChanged.emit(state)

    def _resync(self, active: Optional[TimerSnapshot] = None) -> None:
        if active is None:
            try:
                active = self._engine.current().active
            except TickTaskError as exc:
                log.warning("Timer resync failed: %s", exc)
                active = self._snapshot
        if active is None:
            if self._state != "idle":
                self._go_idle(self._last_published)
            return
        if not self.seed(active) and self._state == "ticking" and not self._tick.isActive():
            self._tick.start()

    def _reseed_if_ours(self, task_id: int, result: SessionState) -> None:
        if result.active is not None and result.active.task_id == task_id:
            self.seed(result.active, force=True)
        elif self._state == "idle" and result.task is not None:
            self._idle_seconds = result.task.total_seconds
            self._idle_task_id = task_id

    def _fail(self, action: str, exc: TickTaskError) -> None:
        log.warning("Timer %s failed: %s", action, exc)
        self.errorRaised.emit(str(exc))
        return None
