# Rev 0.3.0

# ticktask logging setup (Rev 0.3.0)
from __future__ import annotations
import logging, os, sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from PySide6.QtCore import QtMsgType, qInstallMessageHandler

from .paths import APP_NAME, LOGS_DIR

FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

_configured_file: Path | None = None


# pipe Qt messages into Python logging
def _qt_handler(msg_type, context, message):
    lvl = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }.get(msg_type, logging.INFO)
    logging.getLogger("qt").log(lvl, message)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{APP_NAME}.{name}")


def setup_logging(app_name: str = APP_NAME, log_dir: Path = LOGS_DIR) -> Path:
    """Configure the root logger once; later calls return the same log file."""
    global _configured_file
    if _configured_file is not None:
        return _configured_file

    # Level via env (DEBUG/INFO/WARNING/ERROR), default INFO
    level_name = os.environ.get("TICKTASK_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    log_dir.mkdir(parents=True, exist_ok=True)
    logfile = log_dir / f"{app_name}.log"

    root = logging.getLogger()
    root.setLevel(level)

    # File: rotate at 5MB, keep 7 backups
    fh = RotatingFileHandler(logfile, maxBytes=5_000_000, backupCount=7, encoding="utf-8")
    fh.setFormatter(logging.Formatter(FMT, DATEFMT))
    fh.setLevel(level)
    root.addHandler(fh)

    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(logging.Formatter(FMT, DATEFMT))
    ch.setLevel(level)
    root.addHandler(ch)

    # Uncaught exceptions → log as ERROR
    def _excepthook(exctype, value, tb):
        logging.getLogger("unhandled").exception("Uncaught exception", exc_info=(exctype, value, tb))
        sys.__excepthook__(exctype, value, tb)
    sys.excepthook = _excepthook

    qInstallMessageHandler(_qt_handler)

    logging.getLogger(__name__).info("Logging initialized at %s; file: %s", level_name, logfile)
    _configured_file = logfile
    return logfile
