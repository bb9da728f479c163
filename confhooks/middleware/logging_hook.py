"""
Logging middleware: diagnostic sinks for the hook registry.

The registry emits human-readable diagnostics ("Loading file ...", "Hook ...
was never applied") through a single sink callback. This module provides a
JSONL file sink and a bridge to the stdlib logging module.
"""

import json
import logging
import os
import re
import time
from typing import Any, Dict, Optional

from confhooks.hooks import LogSink, Registry, default_registry

# Module state
_log_path: Optional[str] = None
_run_context: Dict[str, Any] = {}

_CONTEXT_KEYS = ("run_name", "app", "config")


def get_log_path() -> Optional[str]:
    """Return current log path (for use by other modules)."""
    return _log_path


def _write_event(event_type: str, payload: Optional[Dict[str, Any]] = None, path: Optional[str] = None) -> None:
    """Append a single JSONL log entry."""
    path = path or _log_path
    if not path:
        return
    rec: Dict[str, Any] = {"ts": time.strftime("%Y-%m-%dT%H:%M:%S"), "event": event_type}
    # Enrich with run context
    for key in _CONTEXT_KEYS:
        val = _run_context.get(key)
        if val:
            rec[key] = val
    if payload:
        rec.update(payload)
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(rec, ensure_ascii=False) + "\n")


def jsonl_sink(path: Optional[str] = None) -> LogSink:
    """Sink writing each message as a "diagnostic" record.

    With no path the current module log path is used at write time.
    """
    def sink(message: str) -> None:
        _write_event("diagnostic", {"message": message.rstrip("\n")}, path)
    return sink


def std_logger_sink(name: str = "confhooks", level: int = logging.INFO) -> LogSink:
    """Sink forwarding messages to a stdlib logger."""
    logger = logging.getLogger(name)

    def sink(message: str) -> None:
        logger.log(level, message.rstrip("\n"))
    return sink


def init_logging(log_dir: str, name: Optional[str] = None) -> str:
    """Initialize logging, create log file path. Returns the log path."""
    global _log_path
    if _log_path:
        return _log_path
    os.makedirs(log_dir, exist_ok=True)
    timestamp = time.strftime("%Y-%m-%d_%H-%M-%S")
    safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", name or "hooks")
    _log_path = os.path.join(log_dir, f"confhooks_{safe_name}_{timestamp}.jsonl")
    return _log_path


def update_run_context(context: Dict[str, Any]) -> None:
    """Update run context fields (run_name, app, config)."""
    _run_context.update(context)


def install(
    registry: Optional[Registry] = None,
    log_path: Optional[str] = None,
    run_context: Optional[Dict[str, Any]] = None,
) -> LogSink:
    """Route registry diagnostics to the JSONL log. Returns the sink."""
    global _log_path
    if registry is None:
        registry = default_registry()
    if log_path:
        _log_path = log_path
    if run_context:
        _run_context.update(run_context)
    return registry.log_with(jsonl_sink())
