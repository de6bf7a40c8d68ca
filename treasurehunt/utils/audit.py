import json
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Debug flag: enable when running tests or when env var TREASURE_HUNT_DEBUG is set
DEBUG = bool(os.getenv('TREASURE_HUNT_DEBUG')) or ('unittest' in sys.modules) or ('PYTEST_CURRENT_TEST' in os.environ)

# Maintain per-session filename base so all writes go to the same timestamped file
_SESSION_FILE_BASE: Dict[str, str] = {}


def _dbg(*args, **kwargs):
    if DEBUG:
        print(*args, **kwargs)


def _ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def log_dir() -> str:
    """Directory for session logs: $TREASURE_HUNT_LOG_DIR or <project>/logs/sessions."""
    configured = os.getenv("TREASURE_HUNT_LOG_DIR")
    if configured:
        return os.path.abspath(configured)
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "logs", "sessions"))


def _file_base_for(session_id: str) -> str:
    """Return a stable '<timestamp>_<session_id>' base for this process."""
    if session_id in _SESSION_FILE_BASE:
        return _SESSION_FILE_BASE[session_id]
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    base = f"{ts}_{session_id}"
    _SESSION_FILE_BASE[session_id] = base
    return base


def audit_path(session_id: str) -> str:
    return os.path.join(log_dir(), f"{_file_base_for(session_id)}.log")


def audit_write(session_id: str, record: Dict[str, Any]) -> None:
    """Append a structured JSON line to the per-session audit log.

    The file is stored under <log_dir>/<timestamp>_<session_id>.log.
    """
    record = dict(record)
    record.setdefault("ts", datetime.now(timezone.utc).isoformat())
    record.setdefault("session_id", session_id)
    try:
        _ensure_dir(log_dir())
        with open(audit_path(session_id), "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
    except OSError as e:
        # Never raise from audit logging; it's best-effort.
        _dbg(f"audit_write failed: {e}")
