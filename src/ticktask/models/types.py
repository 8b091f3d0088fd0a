# ticktask type definitions
# Rev 0.3.0

from __future__ import annotations
from typing import Dict, Literal, Tuple

TaskStatus = Literal["inbox", "aguardando", "proximas", "executando", "finalizada"]
TaskCategory = Literal["urgent", "priority", "normal", "time_leak"]
TimerState = Literal["idle", "seeded", "ticking"]

STATUSES: Tuple[str, ...] = ("inbox", "aguardando", "proximas", "executando", "finalizada")
CATEGORIES: Tuple[str, ...] = ("urgent", "priority", "normal", "time_leak")

RUNNING_STATUS = "executando"
DONE_STATUS = "finalizada"

STATUS_LABELS: Dict[str, str] = {
    "inbox": "Inbox",
    "aguardando": "Aguardando",
    "proximas": "Próximas",
    "executando": "Executando",
    "finalizada": "Finalizada",
}

CATEGORY_LABELS: Dict[str, str] = {
    "urgent": "Urgent",
    "priority": "Priority",
    "normal": "Normal",
    "time_leak": "Time Leak",
}

# Palette new tags draw from when no colour is given
TAG_COLORS: Tuple[str, ...] = (
    "#6366f1",  # indigo
    "#8b5cf6",  # violet
    "#ec4899",  # pink
    "#f43f5e",  # rose
    "#f97316",  # orange
    "#eab308",  # yellow
    "#22c55e",  # green
    "#14b8a6",  # teal
    "#0ea5e9",  # sky
    "#3b82f6",  # blue
)
