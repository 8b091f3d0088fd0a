# tests/test_float_timer_sync.py
import pytest
from PySide6.QtCore import QObject, Signal

from ticktask.viewmodels.float_timer_viewmodel import FloatClear, FloatTimerSync, FloatUpdate
from ticktask.viewmodels.timer_viewmodel import TimerViewModel


class FakeSurface(QObject):
    stopRequested = Signal(int)
    restoreRequested = Signal()

    def __init__(self):
        super().__init__()
        self.applied = []
        self.shown = False
        self.closed = False

    def apply(self, update):
        self.applied.append(update)

    def show(self):
        self.shown = True

    def close(self):
        self.closed = True


class SurfaceFactory:
    def __init__(self):
        self.made = []

    def __call__(self):
        surface = FakeSurface()
        self.made.append(surface)
        return surface


@pytest.fixture()
def timer(qapp, engine, clock):
    vm = TimerViewModel(engine, clock=clock)
    yield vm
    vm.shutdown()


@pytest.fixture()
def factory():
    return SurfaceFactory()


@pytest.fixture()
def sync(timer, factory):
    return FloatTimerSync(timer, factory)


def test_updates_buffer_while_hidden(sync, timer, factory, make_task, clock):
    task = make_task("Focus")
    timer.start(task.id)
    clock.advance(7)
    timer._on_tick()
    assert factory.made == []
    assert sync.latest.seconds == 7
    assert sync.latest.task_name == "Focus"

    sync.show()
    assert len(factory.made) == 1
    surface = factory.made[0]
    assert surface.shown is True
    assert surface.applied[-1].seconds == 7


def test_visible_surface_receives_ticks(sync, timer, factory, make_task, clock):
    task = make_task()
    timer.start(task.id)
    sync.show()
    clock.advance(3)
    timer._on_tick()
    assert [u.seconds for u in factory.made[0].applied] == [0, 3]


def test_hide_destroys_and_show_rebuilds(sync, timer, factory, make_task):
    timer.start(make_task().id)
    sync.show()
    sync.hide()
    assert factory.made[0].closed is True
    assert sync.surface is None
    sync.show()
    assert len(factory.made) == 2


def test_timer_going_idle_clears_surface(sync, timer, factory, make_task, clock):
    task = make_task()
    timer.start(task.id)
    sync.show()
    stale_epoch = timer.epoch
    timer.stop()
    assert factory.made[0].closed is True
    assert sync.latest is None
    assert sync.publish(FloatUpdate(task.id, "T", 99, epoch=stale_epoch)) is False
    assert sync.surface is None


def test_show_after_clear_shows_nothing(sync, timer, factory, make_task):
    timer.start(make_task().id)
    timer.stop()
    sync.show()
    assert factory.made == []


def test_explicit_clear_sets_epoch_floor(sync, factory):
    sync.clear(FloatClear(epoch=5))
    assert sync.publish(FloatUpdate(1, "T", 1, epoch=4)) is False
    assert sync.publish(FloatUpdate(1, "T", 1, epoch=5)) is True


def test_wrong_version_rejected(sync):
    assert sync.publish(FloatUpdate(1, "T", 1, version=2)) is False
    assert sync.latest is None


def test_stop_from_secondary_surface(sync, timer, factory, make_task, clock):
    task = make_task()
    timer.start(task.id)
    sync.show()
    seen = []
    sync.stoppedFromSecondary.connect(lambda tid, total: seen.append((tid, total)))
    clock.advance(45)
    factory.made[0].stopRequested.emit(task.id)
    assert seen == [(task.id, 45)]
    assert timer.state == "idle"
    assert factory.made[0].closed is True


def test_restore_request_is_forwarded(sync, timer, factory, make_task):
    timer.start(make_task().id)
    sync.show()
    hits = []
    sync.restoreRequested.connect(lambda: hits.append(True))
    factory.made[0].restoreRequested.emit()
    assert hits == [True]


def test_switching_tasks_replaces_content(sync, timer, factory, make_task, clock):
    a, b = make_task("A"), make_task("B")
    timer.start(a.id)
    sync.show()
    clock.advance(30)
    timer.start(b.id)
    assert sync.latest.task_id == b.id
    assert sync.latest.seconds == 0
    assert factory.made[-1].applied[-1].task_name == "B"
