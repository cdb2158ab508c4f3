"""Structured logging helpers shared by the scanner entrypoints."""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator

UTC = getattr(datetime, "UTC", timezone.utc)
_LOGGER_NAME = "adslot_scanner"
_configured = False
_base_context: dict[str, Any] = {}
# Tuple so a pushed frame never mutates the parent task's view.
_context_stack: ContextVar[tuple[dict[str, Any], ...]] = ContextVar("adslot_scanner_log_context", default=())


def configure_logging(level: int | str | None = None) -> None:
    """Configure the global logging formatter once."""

    global _configured
    if _configured:
        return
    if level is None:
        level = os.getenv("AD_SCANNER_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    _configured = True


def set_global_context(**fields: Any) -> None:
    """Add persistent context fields that appear on every structured log."""

    _base_context.update({k: v for k, v in fields.items() if v is not None})


@contextmanager
def logging_context(**fields: Any) -> Iterator[None]:
    """Push context fields for the ``with`` block, scoped to the current task."""

    ctx = {k: v for k, v in fields.items() if v is not None}
    token = _context_stack.set(_context_stack.get() + (ctx,))
    try:
        yield
    finally:
        _context_stack.reset(token)


def _merged_context() -> dict[str, Any]:
    merged: dict[str, Any] = {}
    merged.update(_base_context)
    for ctx in _context_stack.get():
        merged.update(ctx)
    return merged


def _utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


def jlog(level: str, /, **fields: Any) -> None:
    """Emit a structured JSON log payload under the scanner logger."""

    log = logging.getLogger(_LOGGER_NAME)
    record = {"ts": _utcnow_iso(), **_merged_context(), **fields}
    getattr(log, level.lower())(json.dumps(record, ensure_ascii=False, sort_keys=True, default=str))


def scanlog(event: str, *, url: str, level: str = "info", **kw: Any) -> None:
    """Shortcut for scan-scoped JSON logging records."""

    jlog(level, event=event, url=url, **kw)


__all__ = ["configure_logging", "jlog", "logging_context", "scanlog", "set_global_context"]
