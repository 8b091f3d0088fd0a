# Rev 0.3.0

# src/ticktask/main.py  (Rev 0.3.0)
import logging
import sys

from PySide6.QtCore import QCoreApplication, Qt
from PySide6.QtGui import QGuiApplication, QIcon
from PySide6.QtWidgets import QApplication, QStyle, QSystemTrayIcon

from ticktask.app_context import AppContext
from ticktask.ui.float_timer_window import FloatTimerWindow
from ticktask.ui.main_window import MainWindow
from ticktask.utils.config import load_settings, settings_file
from ticktask.utils.logging_setup import setup_logging
from ticktask.utils.paths import DB_PATH, ensure_dirs
from ticktask.viewmodels.float_timer_viewmodel import FloatTimerSync
from ticktask.viewmodels.tasks_viewmodel import TasksViewModel
from ticktask.viewmodels.timer_viewmodel import TimerViewModel


def _build_tray(app: QApplication) -> QSystemTrayIcon:
    icon = QIcon.fromTheme("chronometer", app.style().standardIcon(QStyle.SP_MediaPlay))
    tray = QSystemTrayIcon(icon, app)
    tray.setToolTip("TickTask")
    tray.show()
    return tray


def main():
    QGuiApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )
    app = QApplication(sys.argv)
    QCoreApplication.setOrganizationName("ticktask")
    QCoreApplication.setApplicationName("TickTask")

    ensure_dirs()
    logfile = setup_logging("ticktask")
    log = logging.getLogger("ticktask.main")
    log.info("Log file: %s", logfile)
    settings = load_settings()

    tray = _build_tray(app)

    def deliver(title: str, body: str) -> None:
        tray.showMessage(title, body, QSystemTrayIcon.Information, 5000)

    # --- DI wiring ---
    ctx = AppContext.create(DB_PATH, settings=settings, settings_path=settings_file(), deliver=deliver)

    timer_cfg = settings["timer"]
    timer_vm = TimerViewModel(
        ctx.engine,
        tick_interval_ms=int(timer_cfg["tick_interval_ms"]),
        reconcile_interval_ms=int(timer_cfg["reconcile_interval_ms"]),
    )

    def on_tick(_task_id: int, seconds: int) -> None:
        if timer_vm.snapshot is not None:
            ctx.alerts.on_tick(timer_vm.snapshot, seconds)

    timer_vm.ticked.connect(on_tick)
    timer_vm.wasReset.connect(ctx.alerts.reset)

    float_sync = FloatTimerSync(timer_vm, FloatTimerWindow)
    tasks_vm = TasksViewModel(ctx.tasks, ctx.tags, ctx.engine, timer_vm, ctx.workspace)

    # --- UI ---
    win = MainWindow(
        tasks_vm=tasks_vm, timer_vm=timer_vm, float_sync=float_sync, settings=settings,
        on_sync=ctx.sync_all if ctx.workspace.active else None,
    )
    win.show()
    app.setProperty("mainWindow", win)

    # picks up a session left running by a previous run
    timer_vm.begin()

    app.aboutToQuit.connect(timer_vm.shutdown)
    app.aboutToQuit.connect(ctx.close)
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
