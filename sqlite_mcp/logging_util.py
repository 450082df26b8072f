"""Lightweight structured logging helper.

Emits JSON lines to stderr; stdout is reserved for the MCP stdio channel.
The level is read from LOG_LEVEL on every call so tests and operators can
change it without re-importing.
"""
from __future__ import annotations
import os, sys, json, time, threading

_lock = threading.Lock()
LEVEL_ORDER = ["DEBUG","INFO","WARN","ERROR"]
DEFAULT_LEVEL = "INFO"

def current_level() -> str:
    level = os.environ.get("LOG_LEVEL", DEFAULT_LEVEL).upper()
    if level == "WARNING":
        level = "WARN"
    return level if level in LEVEL_ORDER else DEFAULT_LEVEL

def _should(level: str) -> bool:
    try:
        return LEVEL_ORDER.index(level) >= LEVEL_ORDER.index(current_level())
    except ValueError:
        return True

def log(level: str, event: str, **fields):
    level = level.upper()
    if not _should(level):
        return
    record = {
        "ts": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime()),
        "level": level,
        "event": event,
    }
    record.update(fields)
    # default=str keeps Path / exception values from breaking a log line
    line = json.dumps(record, separators=(',',':'), default=str)
    with _lock:
        sys.stderr.write(line + "\n")
        sys.stderr.flush()

def debug(event: str, **fields): log("DEBUG", event, **fields)
def info(event: str, **fields): log("INFO", event, **fields)
def warn(event: str, **fields): log("WARN", event, **fields)
def error(event: str, **fields): log("ERROR", event, **fields)
