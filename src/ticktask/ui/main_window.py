# Rev 0.3.0
# ticktask: main window
# Columns: ID | Name | Status | Category | Tags | Total | Limit

from __future__ import annotations

from PySide6.QtCore import QEvent, Qt
from PySide6.QtWidgets import (
    QCheckBox, QDialog, QHBoxLayout, QHeaderView, QInputDialog, QLabel, QLineEdit, QMainWindow, QMessageBox,
    QPushButton, QTableWidget, QTableWidgetItem, QVBoxLayout, QWidget,
)

from ..models.types import CATEGORY_LABELS, STATUS_LABELS
from ..utils.timeutil import calculate_progress, format_time, parse_time_input
from .task_editor_dialog import TaskEditorDialog


def _limit_text(task) -> str:
    if not task.time_limit_seconds:
        return "-"
    pct = calculate_progress(task.total_seconds, task.time_limit_seconds)
    return f"{format_time(task.time_limit_seconds)} ({pct:.0f}%)"


class MainWindow(QMainWindow):
    def __init__(self, *, tasks_vm, timer_vm, float_sync, settings: dict, on_sync=None, parent=None):
        super().__init__(parent)
        self._on_sync = on_sync
        self._tasks_vm = tasks_vm
        self._timer_vm = timer_vm
        self._float = float_sync
        self._rows: list = []

        self.setWindowTitle("TickTask")
        geo = settings.get("main_window", {})
        self.resize(int(geo.get("width", 900)), int(geo.get("height", 670)))

        # ---- central ----
        central = QWidget(self)
        v = QVBoxLayout(central)

        top_bar = QHBoxLayout()
        self._edit_name = QLineEdit()
        self._edit_name.setPlaceholderText("New task name…")
        self._btn_add = QPushButton("Add")
        self._chk_archived = QCheckBox("Archived")
        top_bar.addWidget(self._edit_name, 1)
        top_bar.addWidget(self._btn_add)
        top_bar.addWidget(self._chk_archived)
        v.addLayout(top_bar)

        self._tbl = QTableWidget(0, 7, self)
        self._tbl.setSelectionBehavior(QTableWidget.SelectRows)
        self._tbl.setSelectionMode(QTableWidget.SingleSelection)
        self._tbl.setEditTriggers(QTableWidget.NoEditTriggers)
        self._tbl.setAlternatingRowColors(True)
        self._tbl.verticalHeader().setVisible(False)
        self._tbl.setHorizontalHeaderLabels(["ID", "Name", "Status", "Category", "Tags", "Total", "Limit"])
        h = self._tbl.horizontalHeader()
        h.setSectionResizeMode(0, QHeaderView.ResizeToContents)
        h.setSectionResizeMode(1, QHeaderView.Stretch)
        for col in range(2, 7):
            h.setSectionResizeMode(col, QHeaderView.ResizeToContents)
        v.addWidget(self._tbl, 1)

        bottom = QHBoxLayout()
        self._lbl_clock = QLabel("00:00:00")
        self._lbl_clock.setStyleSheet("font-family: monospace; font-size: 28px; font-weight: bold;")
        self._lbl_task = QLabel("")
        self._btn_start = QPushButton("Start")
        self._btn_stop = QPushButton("Stop")
        self._btn_reset = QPushButton("Reset")
        self._btn_add_time = QPushButton("Add time…")
        self._btn_archive = QPushButton("Archive")
        self._btn_edit = QPushButton("Edit…")
        self._btn_sync = QPushButton("Sync now")
        self._btn_sync.setVisible(on_sync is not None)
        bottom.addWidget(self._lbl_clock)
        bottom.addWidget(self._lbl_task, 1)
        for b in (self._btn_start, self._btn_stop, self._btn_reset, self._btn_add_time, self._btn_edit,
                  self._btn_archive, self._btn_sync):
            bottom.addWidget(b)
        v.addLayout(bottom)
        self.setCentralWidget(central)

        # ---- wiring ----
        self._btn_add.clicked.connect(self._add_task)
        self._edit_name.returnPressed.connect(self._add_task)
        self._chk_archived.toggled.connect(self._tasks_vm.set_show_archived)
        self._btn_start.clicked.connect(self._start_selected)
        self._btn_stop.clicked.connect(self._stop_selected)
        self._btn_reset.clicked.connect(self._reset_selected)
        self._btn_add_time.clicked.connect(self._add_time_selected)
        self._btn_archive.clicked.connect(self._toggle_archive_selected)
        self._btn_edit.clicked.connect(self._edit_selected)
        self._tbl.cellDoubleClicked.connect(lambda *_: self._edit_selected())
        self._btn_sync.clicked.connect(self._sync_now)

        self._tasks_vm.tasksReloaded.connect(self._fill_table)
        self._tasks_vm.errorRaised.connect(self._show_error)
        self._timer_vm.errorRaised.connect(self._show_error)
        self._timer_vm.ticked.connect(self._on_tick)
        self._timer_vm.snapshotChanged.connect(self._on_snapshot)
        self._float.restoreRequested.connect(self._restore)
        self._float.stoppedFromSecondary.connect(lambda *_: self._tasks_vm.reload())

        self._tasks_vm.reload()

    # -------------------- table --------------------
    def _fill_table(self, rows: list):
        self._rows = rows
        self._tbl.setRowCount(0)
        for task in rows:
            r = self._tbl.rowCount()
            self._tbl.insertRow(r)
            values = [
                str(task.id),
                ("● " if task.is_running else "") + task.name,
                STATUS_LABELS.get(task.status, task.status),
                CATEGORY_LABELS.get(task.category, task.category),
                ", ".join(task.tag_names),
                format_time(task.total_seconds),
                _limit_text(task),
            ]
            for c, val in enumerate(values):
                item = QTableWidgetItem(val)
                if c == 0:
                    item.setData(Qt.UserRole, task.id)
                self._tbl.setItem(r, c, item)
        self._btn_archive.setText("Unarchive" if self._chk_archived.isChecked() else "Archive")

    def _selected_id(self) -> int | None:
        row = self._tbl.currentRow()
        if row < 0:
            return None
        item = self._tbl.item(row, 0)
        return int(item.data(Qt.UserRole)) if item else None

    # -------------------- actions --------------------
    def _add_task(self):
        name = self._edit_name.text()
        if self._tasks_vm.create_task(name=name) is not None:
            self._edit_name.clear()

    def _start_selected(self):
        tid = self._selected_id()
        if tid is not None:
            self._timer_vm.start(tid)

    def _stop_selected(self):
        self._timer_vm.stop(self._selected_id())

    def _reset_selected(self):
        tid = self._selected_id()
        if tid is None:
            return
        answer = QMessageBox.question(
            self, "Reset timer", "Reset the timer? All recorded time for this task will be cleared."
        )
        if answer == QMessageBox.Yes:
            self._timer_vm.reset(tid)

    def _add_time_selected(self):
        tid = self._selected_id()
        if tid is None:
            return
        text, ok = QInputDialog.getText(self, "Add time", "Time to add (H:MM:SS, H:MM or H):")
        if not ok or not text.strip():
            return
        try:
            seconds = parse_time_input(text)
        except ValueError as exc:
            self._show_error(str(exc))
            return
        self._timer_vm.add_manual_time(tid, seconds)
        self._tasks_vm.reload()

    def _edit_selected(self):
        tid = self._selected_id()
        task = self._tasks_vm.get_task(tid) if tid is not None else None
        if task is None:
            return
        dlg = TaskEditorDialog(task, self)
        if dlg.exec() != QDialog.Accepted:
            return
        try:
            edit = dlg.values()
        except ValueError as exc:
            self._show_error(str(exc))
            return
        self._tasks_vm.apply_edit(tid, edit)

    def _sync_now(self):
        ok, failed = self._on_sync()
        self.statusBar().showMessage(f"Workspace sync: {ok} pushed, {failed} failed", 5000)

    def _toggle_archive_selected(self):
        tid = self._selected_id()
        if tid is None:
            return
        if self._chk_archived.isChecked():
            self._tasks_vm.unarchive_task(tid)
        else:
            self._tasks_vm.archive_task(tid)

    def _show_error(self, message: str):
        QMessageBox.warning(self, "TickTask", message)

    # -------------------- clock --------------------
    def _on_tick(self, task_id: int, seconds: int):
        self._lbl_clock.setText(format_time(seconds))

    def _on_snapshot(self, snapshot):
        if snapshot is None:
            self._lbl_clock.setText(format_time(self._timer_vm.display_seconds))
            self._lbl_task.setText("")
        else:
            self._lbl_task.setText(snapshot.task_name)
        self._tasks_vm.reload()

    # -------------------- floating clock --------------------
    def changeEvent(self, event):
        if event.type() == QEvent.WindowStateChange:
            if self.isMinimized():
                self._float.show()
            else:
                self._float.hide()
        super().changeEvent(event)

    def _restore(self):
        self._float.hide()
        self.showNormal()
        self.raise_()
        self.activateWindow()

    def closeEvent(self, event):
        self._float.hide()
        self._timer_vm.shutdown()
        super().closeEvent(event)
