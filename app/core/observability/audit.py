import json
import logging
import logging.handlers
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional


DEFAULT_AUDIT_PATH = Path(".mediator") / "audit.log"

# 10MB per file, 5 backups
_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5

_handler_cache: Dict[str, logging.Handler] = {}


def _now_ms() -> int:
    return int(time.time() * 1000)


def audit_path_from_env() -> Path:
    raw = (os.getenv("MEDIATOR_AUDIT_PATH") or "").strip()
    return Path(raw) if raw else DEFAULT_AUDIT_PATH


def _get_rotating_handler(audit_path: Path) -> logging.Handler:
    key = str(audit_path.resolve())
    if key not in _handler_cache:
        audit_path.parent.mkdir(parents=True, exist_ok=True)
        h = logging.handlers.RotatingFileHandler(
            str(audit_path),
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        h.setFormatter(logging.Formatter("%(message)s"))
        _handler_cache[key] = h
    return _handler_cache[key]


def audit_operation(
    operation: str,
    request_id: Optional[str],
    repository: Optional[str],
    outcome: str,
    extra: Optional[Dict[str, Any]] = None,
    audit_path: Optional[Path] = None,
) -> None:
    """
    Append one JSON line describing a repository mutation attempt.
    Tokens and file contents are never written here.
    """
    record: Dict[str, Any] = {
        "ts_ms": _now_ms(),
        "type": "repo_operation",
        "operation": operation,
        "request_id": request_id,
        "repository": repository,
        "outcome": outcome,
    }
    if extra:
        record["extra"] = extra

    line = json.dumps(record, separators=(",", ":"), ensure_ascii=False)

    handler = _get_rotating_handler(audit_path or audit_path_from_env())
    log_record = logging.LogRecord(
        name="mediator.audit",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=line,
        args=(),
        exc_info=None,
    )
    handler.emit(log_record)
