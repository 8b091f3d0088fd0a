# Rev 0.3.0
"""Keeps the floating always-on-top clock in step with the main timer."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, Signal

from ..models.entities import SessionState
from .timer_viewmodel import TimerViewModel

log = logging.getLogger(__name__)

MESSAGE_VERSION = 1


@dataclass(frozen=True)
class FloatUpdate:
    task_id: int
    task_name: str
    seconds: int
    epoch: int = 0
    version: int = MESSAGE_VERSION


@dataclass(frozen=True)
class FloatClear:
    epoch: int = 0
    version: int = MESSAGE_VERSION


# A surface is any QObject exposing stopRequested(int) / restoreRequested()
# signals plus apply(FloatUpdate), show() and close().
SurfaceFactory = Callable[[], Any]


class FloatTimerSync(QObject):
    """
    Bridge between TimerViewModel and the floating surface.

    The surface is disposable: it is built from the latest update on show()
    and destroyed on hide() and clear(), so nothing from a previous timer can
    linger in it. Updates older than the last clear (by timer epoch) are dropped.
    """

    stoppedFromSecondary = Signal(int, int)   # task_id, final total
    restoreRequested = Signal()

    def __init__(self, timer: TimerViewModel, surface_factory: SurfaceFactory, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._timer = timer
        self._factory = surface_factory
        self._surface: Any = None
        self._latest: Optional[FloatUpdate] = None
        self._visible = False
        self._floor_epoch = 0

        timer.ticked.connect(self._on_ticked)
        timer.stateChanged.connect(self._on_state_changed)

    @property
    def latest(self) -> Optional[FloatUpdate]:
        return self._latest

    @property
    def surface(self) -> Any:
        return self._surface

    @property
    def visible(self) -> bool:
        return self._visible

    # ---- messages
    def publish(self, update: FloatUpdate) -> bool:
        if update.version != MESSAGE_VERSION:
            log.warning("Dropping float update with version %s", update.version)
            return False
        if update.epoch < self._floor_epoch:
            log.debug("Dropping stale float update for task %s (epoch %s < %s)", update.task_id, update.epoch, self._floor_epoch)
            return False
        self._latest = update
        if self._visible:
            self._ensure_surface().apply(update)
        return True

    def clear(self, signal: Optional[FloatClear] = None) -> None:
        epoch = signal.epoch if signal is not None else self._timer.epoch
        self._floor_epoch = max(self._floor_epoch, epoch)
        self._latest = None
        self._destroy_surface()

    # ---- visibility (main window minimized / restored)
    def show(self) -> None:
        self._visible = True
        if self._latest is not None:
            self._ensure_surface().apply(self._latest)

    def hide(self) -> None:
        self._visible = False
        self._destroy_surface()

    # ---- requests coming back from the surface
    def stop_from_secondary(self, task_id: int) -> Optional[SessionState]:
        result = self._timer.stop(task_id)
        if result is None or result.task is None:
            return None
        self.stoppedFromSecondary.emit(task_id, result.task.total_seconds)
        return result

    # ---- internals
    def _on_ticked(self, task_id: int, seconds: int) -> None:
        snap = self._timer.snapshot
        name = snap.task_name if snap is not None and snap.task_id == task_id else ""
        self.publish(FloatUpdate(task_id, name, seconds, epoch=self._timer.epoch))

    def _on_state_changed(self, state: str) -> None:
        if state == "idle":
            self.clear(FloatClear(epoch=self._timer.epoch))

    def _ensure_surface(self) -> Any:
        if self._surface is None:
            surface = self._factory()
            surface.stopRequested.connect(self.stop_from_secondary)
            surface.restoreRequested.connect(self.restoreRequested)
            surface.show()
            self._surface = surface
        return self._surface

    def _destroy_surface(self) -> None:
        surface, self._surface = self._surface, None
        if surface is not None:
            surface.close()
            surface.deleteLater()
