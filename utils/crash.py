"""Crash handling: uncaught exceptions go to stderr and a JSON-lines crash file."""

import json
import os
import sys
import traceback

from utils.ksuid import generate_ksuid
from utils.timestamp import format_timestamp

# Default crash log path, can be overridden by configure()
_crash_log = "logs/crash.log"


def configure(crash_file):
    """Set crash log file path from config."""
    global _crash_log
    _crash_log = crash_file


def _describe(exc):
    """Reuse the tracking id and context of simulator errors so the crash file matches the log."""
    crash_id = getattr(exc, "error_id", None) or generate_ksuid()
    context = getattr(exc, "context", None) or None
    return crash_id, context


def _write_crash(record):
    """Append one record to the crash file. Never raises."""
    try:
        log_dir = os.path.dirname(_crash_log)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        with open(_crash_log, "a") as f:
            f.write(json.dumps(record, default=str) + "\n")
    except OSError:
        pass


def log_crash(exc_type, exc_value, exc_tb):
    """sys.excepthook replacement."""
    crash_id, context = _describe(exc_value)
    timestamp = format_timestamp()
    exc_name = exc_type.__name__ if exc_type else "Unknown"
    exc_msg = str(exc_value) if exc_value else ""
    tb = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))

    sys.stderr.write(f"\n{'=' * 60}\nCRASH [{crash_id}] {timestamp}\n{'=' * 60}\n")
    sys.stderr.write(f"{exc_name}: {exc_msg}\n{'-' * 60}\n{tb}{'=' * 60}\n\n")
    record = {"id": crash_id, "timestamp": timestamp, "type": exc_name, "msg": exc_msg, "traceback": tb}
    if context:
        record["context"] = context
    _write_crash(record)
    return crash_id


def log_async_crash(exc, context_dict, logger=None):
    """Log an exception escaping an asyncio task. Never raises."""
    crash_id, context = _describe(exc)
    exc_name = type(exc).__name__ if exc else "AsyncError"
    exc_msg = str(exc) if exc else context_dict.get("message", "Unknown")
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)) if exc else None

    if logger:
        logger.error("async exception", error=exc_msg, crash_id=crash_id,
                     task=str(context_dict.get("future", "unknown")))

    record = {"id": crash_id, "timestamp": format_timestamp(), "type": exc_name, "msg": exc_msg,
              "traceback": tb, "loop_context": str(context_dict)}
    if context:
        record["context"] = context
    _write_crash(record)
    return crash_id


def create_async_handler(logger=None):
    """Create async exception handler for event loop."""
    def handler(loop, context):
        log_async_crash(context.get("exception"), context, logger)
    return handler


def install_crash_handler():
    """Install global sync exception handler."""
    sys.excepthook = log_crash
