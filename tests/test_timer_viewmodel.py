# tests/test_timer_viewmodel.py
import pytest

from ticktask.viewmodels.timer_viewmodel import TimerViewModel


class Recorder:
    def __init__(self, vm: TimerViewModel):
        self.ticks = []
        self.states = []
        self.stops = []
        self.resets = []
        self.errors = []
        vm.ticked.connect(lambda tid, s: self.ticks.append((tid, s)))
        vm.stateChanged.connect(self.states.append)
        vm.stopped.connect(lambda tid, total: self.stops.append((tid, total)))
        vm.wasReset.connect(self.resets.append)
        vm.errorRaised.connect(self.errors.append)


@pytest.fixture()
def vm(qapp, engine, clock):
    timer = TimerViewModel(engine, clock=clock)
    yield timer
    timer.shutdown()


@pytest.fixture()
def rec(vm):
    return Recorder(vm)


def test_starts_idle(vm):
    assert vm.state == "idle"
    assert vm.snapshot is None
    assert vm.tick_active is False


def test_start_seeds_and_ticks(vm, rec, make_task, clock):
    task = make_task()
    vm.start(task.id)
    assert rec.states == ["seeded", "ticking"]
    assert vm.tick_active is True
    assert rec.ticks == [(task.id, 0)]
    clock.advance(3.4)
    vm._on_tick()
    assert rec.ticks[-1] == (task.id, 3)
    assert vm.display_seconds == 3


def test_published_seconds_never_go_backwards(vm, rec, make_task, clock):
    task = make_task()
    vm.start(task.id)
    clock.advance(10)
    vm._on_tick()
    clock.advance(-4)
    vm._on_tick()
    assert [s for _, s in rec.ticks] == [0, 10, 10]


def test_reseed_with_same_key_is_noop(vm, rec, engine, make_task, clock):
    task = make_task()
    vm.start(task.id)
    epoch = vm.epoch
    clock.advance(5)
    vm._on_tick()
    assert vm.seed(engine.current().active) is False
    vm.reconcile()
    assert vm.epoch == epoch
    assert rec.states == ["seeded", "ticking"]
    assert rec.ticks[-1] == (task.id, 5)


def test_switching_tasks_reports_stopped_one(vm, rec, make_task, clock):
    a, b = make_task("A"), make_task("B")
    vm.start(a.id)
    first_epoch = vm.epoch
    clock.advance(90)
    vm.start(b.id)
    assert rec.stops == [(a.id, 90)]
    assert vm.snapshot.task_id == b.id
    assert vm.epoch > first_epoch
    assert rec.ticks[-1] == (b.id, 0)


def test_stop_goes_idle_with_store_total(vm, rec, make_task, clock):
    task = make_task()
    vm.start(task.id)
    clock.advance(90)
    result = vm.stop()
    assert result.task.total_seconds == 90
    assert vm.state == "idle"
    assert vm.tick_active is False
    assert vm.display_seconds == 90
    assert rec.stops == [(task.id, 90)]


def test_stop_when_idle_does_nothing(vm, rec):
    assert vm.stop() is None
    assert rec.stops == []


def test_reconcile_picks_up_external_stop(vm, rec, engine, make_task, clock):
    task = make_task()
    vm.start(task.id)
    clock.advance(20)
    engine.stop(task.id)
    vm.reconcile()
    assert vm.state == "idle"
    assert vm.tick_active is False
    assert vm.snapshot is None


def test_begin_adopts_session_left_running(qapp, engine, make_task, clock):
    task = make_task()
    engine.start(task.id)
    clock.advance(120)
    vm = TimerViewModel(engine, clock=clock)
    try:
        vm.begin()
        assert vm.polling is True
        assert vm.state == "ticking"
        assert vm.display_seconds == 120
    finally:
        vm.shutdown()
    assert vm.polling is False


def test_manual_time_on_running_task_reseeds(vm, rec, make_task, clock):
    task = make_task()
    vm.start(task.id)
    clock.advance(60)
    vm._on_tick()
    epoch = vm.epoch
    vm.add_manual_time(task.id, 1800)
    assert vm.epoch == epoch + 1
    assert rec.ticks[-1] == (task.id, 1860)


def test_set_total_lower_than_display_restarts_count(vm, rec, make_task, clock):
    task = make_task()
    vm.add_manual_time(task.id, 500)
    vm.start(task.id)
    clock.advance(10)
    vm.set_total_time(task.id, 0)
    assert rec.ticks[-1] == (task.id, 10)


def test_reset_running_task_goes_idle_at_zero(vm, rec, make_task, clock):
    task = make_task()
    vm.start(task.id)
    clock.advance(30)
    vm.reset(task.id)
    assert vm.state == "idle"
    assert vm.display_seconds == 0
    assert rec.resets == [task.id]


def test_errors_are_signalled(vm, rec, make_task):
    assert vm.start(12345) is None
    assert len(rec.errors) == 1
    task = make_task()
    assert vm.add_manual_time(task.id, -1) is None
    assert len(rec.errors) == 2
    assert vm.state == "idle"


def test_reset_after_stop_shows_zero(vm, rec, make_task, clock):
    task = make_task()
    vm.start(task.id)
    clock.advance(90)
    vm.stop()
    assert vm.display_seconds == 90
    vm.reset(task.id)
    assert vm.state == "idle"
    assert vm.display_seconds == 0
    assert rec.resets == [task.id]


def test_reset_of_other_task_keeps_idle_total(vm, make_task, clock):
    a, b = make_task("A"), make_task("B")
    vm.add_manual_time(b.id, 300)
    vm.start(a.id)
    clock.advance(40)
    vm.stop()
    vm.reset(b.id)
    assert vm.display_seconds == 40
