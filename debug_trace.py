"""
debug_trace.py

Debug instrumentation for following a TikZ import through its stages.
Enable by setting DEBUG_TRACE = True below, or ``trace = true`` in the
``[debug]`` section of settings.toml.
"""

import sys
import threading
import traceback
from datetime import datetime
from functools import wraps

from settings import get_settings

# Set to True to force tracing regardless of settings
DEBUG_TRACE = False

# Set to True to trace every dropped primitive (verbose on large diagrams)
TRACE_GAPS = True

_log_file = None
_log_path = None
_log_lock = threading.RLock()


def is_enabled() -> bool:
    """Return True when tracing is switched on by flag or settings."""
    return DEBUG_TRACE or get_settings().settings.debug.trace


def _get_log_file():
    global _log_file, _log_path
    path = get_settings().settings.debug.trace_file
    if not path:
        return None
    if _log_file is None or _log_path != path:
        close_log()
        try:
            _log_file = open(path, "a", encoding="utf-8")
            _log_path = path
        except OSError as e:
            print(f"[debug_trace] cannot open {path}: {e}", file=sys.stderr, flush=True)
            return None
    return _log_file


def trace(msg: str, category: str = "INFO", enabled=None):
    """Print a trace message with timestamp.

    Args:
        msg: Message text.
        category: Tag shown in brackets.
        enabled: Explicit on/off switch from the caller. When given, the
            settings are not consulted and nothing is written to the
            log file.
    """
    if enabled is None:
        if not is_enabled():
            return
    elif not (DEBUG_TRACE or enabled):
        return
    if category == "GAP" and not TRACE_GAPS:
        return

    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    line = f"[{timestamp}] [{category}] {msg}"

    print(line, file=sys.stderr, flush=True)

    if enabled is not None:
        return
    with _log_lock:
        log_file = _get_log_file()
        if log_file:
            log_file.write(line + "\n")
            log_file.flush()


def trace_exception(msg: str = "Exception"):
    """Print exception info."""
    if not is_enabled():
        return
    trace(f"{msg}: {traceback.format_exc()}", "ERROR")


def trace_call(category: str = "CALL"):
    """Decorator to trace function calls."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not is_enabled():
                return func(*args, **kwargs)
            func_name = func.__qualname__
            trace(f">>> {func_name}", category)
            try:
                result = func(*args, **kwargs)
                trace(f"<<< {func_name}", category)
                return result
            except Exception as e:
                trace(f"!!! {func_name} raised {type(e).__name__}: {e}", "ERROR")
                raise
        return wrapper
    return decorator


def close_log():
    """Close log file."""
    global _log_file, _log_path
    with _log_lock:
        if _log_file:
            _log_file.close()
            _log_file = None
            _log_path = None
