#!/usr/bin/env python3
"""CLI shim for the batch ad slot scanner.

Delegates to :mod:`adslot_scanner.cli`; kept as a script so cron jobs and
container entrypoints can run it without installing console scripts.
"""
from __future__ import annotations

import asyncio
import sys

from adslot_scanner.cli import CliArgs, parse_args, run
from adslot_scanner.logging import configure_logging, logging_context, set_global_context
from adslot_scanner.versioning import get_scanner_version

SCRIPT_NAME = "scan"


def main() -> None:
    """Parse CLI arguments and scan every requested target."""
    configure_logging()
    set_global_context(app="adslot_scanner", pipeline=SCRIPT_NAME)
    with logging_context(script=SCRIPT_NAME, scanner_version=get_scanner_version()):
        args: CliArgs = parse_args()
        failures = asyncio.run(run(args))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
