from __future__ import annotations

import os
import sys

DEBUG_ENV = "EPUBTEXT_DEBUG"
_TRUTHY = {"1", "true", "yes", "on"}


def _env_enabled() -> bool:
    return os.environ.get(DEBUG_ENV, "").strip().lower() in _TRUTHY


_DEBUG_LOG = _env_enabled()


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def debug_enabled() -> bool:
    return _DEBUG_LOG


def debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[epubtext debug] {message}", file=sys.stderr)
