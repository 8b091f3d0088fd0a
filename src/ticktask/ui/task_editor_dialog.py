# Rev 0.3.0
# ui/task_editor_dialog.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QComboBox, QDialog, QDialogButtonBox, QFormLayout, QLabel, QLineEdit,
    QTextEdit, QVBoxLayout, QWidget,
)

from ..models.entities import Task
from ..models.types import CATEGORIES, CATEGORY_LABELS, STATUSES, STATUS_LABELS
from ..utils.timeutil import format_time, parse_time_input


@dataclass(frozen=True)
class TaskEdit:
    name: str
    description: Optional[str]
    status: str
    category: str
    time_limit_seconds: Optional[int]
    tag_names: List[str]
    total_seconds: int


def parse_duration(text: str) -> Optional[int]:
    """Blank -> None, otherwise H:MM:SS / H:MM / H. Raises ValueError on junk."""
    if not text.strip():
        return None
    return parse_time_input(text)


def parse_tags(text: str) -> List[str]:
    return [t.strip() for t in text.split(",") if t.strip()]


class TaskEditorDialog(QDialog):
    """
    Edit everything a task carries: name, description, status, category,
    time limit, tags and the accumulated total. values() raises ValueError
    when a duration field does not parse.
    """

    def __init__(self, task: Task, parent: QWidget | None = None):
        super().__init__(parent)
        self.setWindowTitle(f"Edit task #{task.id}")

        self._name = QLineEdit(task.name)

        self._desc = QTextEdit()
        self._desc.setAcceptRichText(False)
        self._desc.setPlainText(task.description or "")

        self._cmb_status = QComboBox()
        for status in STATUSES:
            self._cmb_status.addItem(STATUS_LABELS[status], status)
        self._cmb_status.setCurrentIndex(max(0, self._cmb_status.findData(task.status)))

        self._cmb_category = QComboBox()
        for category in CATEGORIES:
            self._cmb_category.addItem(CATEGORY_LABELS[category], category)
        self._cmb_category.setCurrentIndex(max(0, self._cmb_category.findData(task.category)))

        self._limit = QLineEdit(format_time(task.time_limit_seconds) if task.time_limit_seconds else "")
        self._limit.setPlaceholderText("No limit (H:MM:SS)")

        self._tags = QLineEdit(", ".join(task.tag_names))
        self._tags.setPlaceholderText("Comma separated")

        self._total = QLineEdit(format_time(task.total_seconds))

        form = QFormLayout()
        form.addRow("Name:", self._name)
        form.addRow("Description:", self._desc)
        form.addRow(QLabel("<hr/>"))
        form.addRow("Status:", self._cmb_status)
        form.addRow("Category:", self._cmb_category)
        form.addRow("Time limit:", self._limit)
        form.addRow("Tags:", self._tags)
        form.addRow("Total time:", self._total)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)

        root = QVBoxLayout(self)
        root.addLayout(form)
        root.addWidget(btns)
        self.resize(420, 460)

        self._name.setFocus(Qt.OtherFocusReason)

    def values(self) -> TaskEdit:
        return TaskEdit(
            name=self._name.text().strip(),
            description=self._desc.toPlainText().strip() or None,
            status=str(self._cmb_status.currentData()),
            category=str(self._cmb_category.currentData()),
            time_limit_seconds=parse_duration(self._limit.text()),
            tag_names=parse_tags(self._tags.text()),
            total_seconds=parse_duration(self._total.text()) or 0,
        )
