from __future__ import annotations

import logging
import os as _os
import sys

DEBUG_PY_TRACE_ENV = "MINIPAS_DEBUG_PY_TRACE"
MAX_CALL_DEPTH_ENV = "MINIPAS_MAX_CALL_DEPTH"
DEFAULT_MAX_CALL_DEPTH = 100

_TRUTHY = ("1", "true", "yes", "on")


def debug_py_trace_enabled() -> bool:
    """Print Python tracebacks alongside interpreter errors."""
    return _os.environ.get(DEBUG_PY_TRACE_ENV, "").strip().lower() in _TRUTHY


def max_call_depth() -> int:
    raw = _os.environ.get(MAX_CALL_DEPTH_ENV)
    if raw is None:
        return DEFAULT_MAX_CALL_DEPTH

    try:
        value = int(raw.strip())
    except ValueError:
        return DEFAULT_MAX_CALL_DEPTH

    return value if value > 0 else DEFAULT_MAX_CALL_DEPTH


def setup_logging(scope: bool = False, stack: bool = False) -> None:
    """Route scope/stack tracing to stderr, one bare message per line."""
    logging.basicConfig(format="{message}", style="{", stream=sys.stderr)

    set_trace("minipas.semantic", scope)
    set_trace("minipas.evaluator", stack)


def set_trace(logger_name: str, enabled: bool) -> None:
    logging.getLogger(logger_name).setLevel(logging.DEBUG if enabled else logging.WARNING)


def trace_enabled(logger_name: str) -> bool:
    return logging.getLogger(logger_name).isEnabledFor(logging.DEBUG)
