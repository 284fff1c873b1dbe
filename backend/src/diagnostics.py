"""Diagnostics — structured logging and crash dumps.

Layers:
1. Structured JSON logging with RotatingFileHandler (never stdout, which
   carries the waveform records)
2. sys.excepthook: unhandled Python exceptions → PII-stripped JSON crash dumps
"""

import datetime
import json
import logging
import logging.handlers
import os
import sys
import traceback
from pathlib import Path

from security import strip_pii

logger = logging.getLogger(__name__)

APP_DIR = "~/.wavedown"
LOG_FILENAME = "wavedown.log"

MAX_CRASH_REPORTS = 5
MAX_LOG_AGE_DAYS = 7
MAX_LOG_BYTES = 10_000_000
LOG_BACKUPS = 7


def _validate_log_dir(env_dir: str) -> str:
    """Validate WAVEDOWN_LOG_DIR is under ~/.wavedown. Returns safe path."""
    default = os.path.join(os.path.expanduser(APP_DIR), "logs")
    if not env_dir:
        return default
    resolved = os.path.realpath(env_dir)
    allowed = os.path.realpath(os.path.expanduser(APP_DIR))
    if resolved != allowed and not resolved.startswith(allowed + os.sep):
        logger.warning("WAVEDOWN_LOG_DIR outside %s, using default", APP_DIR)
        return default
    return resolved


class JSONFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry)


def _cleanup_old_logs(log_dir: str):
    """Delete rotated logs older than MAX_LOG_AGE_DAYS."""
    cutoff = datetime.datetime.now() - datetime.timedelta(days=MAX_LOG_AGE_DAYS)
    try:
        for f in Path(log_dir).glob(f"{LOG_FILENAME}*"):
            if f.stat().st_mtime < cutoff.timestamp():
                f.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Log cleanup skipped: %s", e)


def _cleanup_old_crash_reports(crash_dir: str):
    """Keep only the newest MAX_CRASH_REPORTS crash files."""
    try:
        reports = sorted(
            Path(crash_dir).glob("crash_*.json"),
            key=lambda f: f.stat().st_mtime,
            reverse=True,
        )
        for old in reports[MAX_CRASH_REPORTS:]:
            old.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Crash report cleanup skipped: %s", e)


def setup_structured_logging(log_dir: str | None = None) -> str | None:
    """Attach a rotating JSON log handler to the root logger.

    Logging is best effort: if the directory or file cannot be created, a
    warning goes to stderr and the run continues without a log file.

    Args:
        log_dir: Override log directory (validated against the ~/.wavedown prefix).

    Returns:
        The directory logs are written to, or None if file logging is off.
    """
    resolved_dir = _validate_log_dir(log_dir or os.environ.get("WAVEDOWN_LOG_DIR", ""))

    log_path = os.path.join(resolved_dir, LOG_FILENAME)
    level = os.environ.get("WAVEDOWN_LOG_LEVEL", "INFO").upper()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))

    # Repeated calls in one process share the handler
    for existing in root.handlers:
        if getattr(existing, "baseFilename", None) == os.path.abspath(log_path):
            return resolved_dir

    try:
        os.makedirs(resolved_dir, mode=0o700, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError as e:
        print(f"wavedown: warning: file logging disabled: {e}", file=sys.stderr)
        return None
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    _cleanup_old_logs(resolved_dir)
    return resolved_dir


def write_crash_report(exc_type, exc_value, exc_tb, crash_dir: str) -> Path:
    """Write a PII-stripped crash dump and prune old ones. Returns its path."""
    os.makedirs(crash_dir, mode=0o700, exist_ok=True)

    now = datetime.datetime.now(tz=datetime.timezone.utc)
    timestamp = now.strftime("%Y%m%dT%H%M%S.%fZ")
    crash_path = Path(crash_dir) / f"crash_{timestamp}.json"
    suffix = 1
    while crash_path.exists():
        crash_path = Path(crash_dir) / f"crash_{timestamp}_{suffix}.json"
        suffix += 1

    crash_data = {
        "timestamp": timestamp,
        "exception_type": exc_type.__name__ if exc_type else "Unknown",
        "exception_message": str(exc_value),
        "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
        "argv": sys.argv,
        "python_version": sys.version,
        "platform": sys.platform,
    }
    crash_data = strip_pii({"extra": crash_data}, {})["extra"]

    old_umask = os.umask(0o077)
    try:
        crash_path.write_text(json.dumps(crash_data, indent=2))
    finally:
        os.umask(old_umask)

    _cleanup_old_crash_reports(crash_dir)
    return crash_path


def setup_excepthook():
    """Install a sys.excepthook that writes crash dumps, then defers to the default hook."""
    crash_dir = os.path.join(os.path.expanduser(APP_DIR), "crash_reports")

    def _crash_excepthook(exc_type, exc_value, exc_tb):
        try:
            write_crash_report(exc_type, exc_value, exc_tb, crash_dir)
        except Exception as e:
            # Crash handler failed; report and fall through to the default hook
            print(f"wavedown: could not write crash report: {e}", file=sys.stderr)

        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = _crash_excepthook


def init_diagnostics():
    """Initialize all diagnostic layers. Call from main.py."""
    log_dir = setup_structured_logging()
    setup_excepthook()
    logger.info("Diagnostics initialized: logging=%s", log_dir)
