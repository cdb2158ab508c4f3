"""Scanner version resolution helpers."""

from __future__ import annotations

import os

SCANNER_NAME = "adslot-scanner"
SCANNER_VERSION = "2026-10-18.1"


def get_scanner_version(name: str = SCANNER_NAME, version: str = SCANNER_VERSION) -> str:
    """Return a human-readable version string with an env override."""

    return os.getenv("AD_SCANNER_VERSION", f"{name}:{version}")


__all__ = ["SCANNER_NAME", "SCANNER_VERSION", "get_scanner_version"]
