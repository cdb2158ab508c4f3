"""Debug artifact helpers (best effort, never fail a scan)."""

from __future__ import annotations

import os

from playwright.async_api import Page

from .logging import jlog

DEBUG_DIR = "media/debug"


def ensure_debug_dir() -> str:
    """Create the debug directory if it does not exist and return the path."""

    try:
        os.makedirs(DEBUG_DIR, exist_ok=True)
    except OSError as exc:
        jlog("warning", event="debug_dir_error", path=DEBUG_DIR, error=str(exc))
    return DEBUG_DIR


async def ensure_debug_html(page: Page, scan_id: str) -> str | None:
    """Persist the current page HTML and return the written path."""

    path = os.path.join(DEBUG_DIR, f"page_{scan_id}.html")
    try:
        ensure_debug_dir()
        html = await page.content()
        with open(path, "w", encoding="utf-8") as f:
            f.write(html)
    except Exception as exc:  # pragma: no cover - logging only
        jlog("error", event="debug_save_html_error", scan_id=scan_id, error=str(exc))
        return None
    return path


def save_debug_capture(png_bytes: bytes, scan_id: str, index: int) -> str | None:
    """Persist one slot capture as ``slot_<scan_id>_<index>.png``."""

    path = os.path.join(DEBUG_DIR, f"slot_{scan_id}_{index}.png")
    try:
        ensure_debug_dir()
        with open(path, "wb") as fh:
            fh.write(png_bytes)
    except OSError as exc:
        jlog("error", event="debug_save_capture_error", scan_id=scan_id, index=index, error=str(exc))
        return None
    return path


__all__ = ["DEBUG_DIR", "ensure_debug_dir", "ensure_debug_html", "save_debug_capture"]
