#!/usr/bin/env python3
"""Run the scan HTTP API under uvicorn."""
from __future__ import annotations

import argparse

import uvicorn

from adslot_scanner.logging import configure_logging


def main() -> None:
    ap = argparse.ArgumentParser(description="Serve POST /api/scan")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    args = ap.parse_args()

    configure_logging()
    uvicorn.run("adslot_scanner.api:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
