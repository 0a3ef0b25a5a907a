from __future__ import annotations

import os
import sys


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def debug_py_trace_enabled() -> bool:
    """Python tracebacks are appended to reported Lair errors."""
    return _env_flag("LAIR_DEBUG_PY_TRACE")


def debug_eval_enabled() -> bool:
    return _env_flag("LAIR_DEBUG_EVAL")


def trace(message: str) -> None:
    """Write an evaluator trace line to stderr when LAIR_DEBUG_EVAL is set."""
    if debug_eval_enabled():
        print(f"[lair] {message}", file=sys.stderr)
