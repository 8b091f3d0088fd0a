# Rev 0.3.0

# ui/float_timer_window.py
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from ..utils.timeutil import format_time


class FloatTimerWindow(QWidget):
    """Small frameless always-on-top clock shown while the main window is minimized."""

    stopRequested = Signal(int)
    restoreRequested = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowFlags(Qt.FramelessWindowHint | Qt.WindowStaysOnTopHint | Qt.Tool)
        self.setAttribute(Qt.WA_DeleteOnClose, True)
        self.setObjectName("FloatTimerWindow")
        self.setFixedSize(260, 64)

        self._task_id = None

        self.lbl_time = QLabel("00:00:00")
        self.lbl_time.setStyleSheet("font-family: monospace; font-size: 18px; font-weight: bold;")
        self.lbl_task = QLabel("")
        self.lbl_task.setStyleSheet("color: gray; font-size: 11px;")

        self.btn_stop = QPushButton("■")
        self.btn_stop.setToolTip("Stop")
        self.btn_stop.setFixedWidth(32)
        self.btn_restore = QPushButton("⤢")
        self.btn_restore.setToolTip("Restore")
        self.btn_restore.setFixedWidth(32)

        text = QVBoxLayout()
        text.addWidget(self.lbl_time)
        text.addWidget(self.lbl_task)

        lay = QHBoxLayout(self)
        lay.addLayout(text, 1)
        lay.addWidget(self.btn_stop)
        lay.addWidget(self.btn_restore)

        self.btn_stop.clicked.connect(self._on_stop)
        self.btn_restore.clicked.connect(self.restoreRequested)

        self._drag_origin = None
        self._move_to_corner()

    def apply(self, update) -> None:
        self._task_id = update.task_id
        self.lbl_time.setText(format_time(update.seconds))
        self.lbl_task.setText(update.task_name)

    def _on_stop(self):
        if self._task_id is not None:
            self.stopRequested.emit(self._task_id)

    def _move_to_corner(self):
        screen = QGuiApplication.primaryScreen()
        if screen is None:
            return
        rect = screen.availableGeometry()
        self.move(rect.right() - self.width() - 24, rect.bottom() - self.height() - 24)

    # drag anywhere to move
    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self._drag_origin = event.globalPosition().toPoint() - self.frameGeometry().topLeft()
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._drag_origin is not None and event.buttons() & Qt.LeftButton:
            self.move(event.globalPosition().toPoint() - self._drag_origin)
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        self._drag_origin = None
        super().mouseReleaseEvent(event)
