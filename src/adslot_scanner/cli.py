"""Command-line batch scanner.

Usage (examples)
----------------
# One page, results to stdout as JSON Lines
python scripts/scan_ads.py --url https://www.clarin.com

# The whole newspaper list, written to a report file
python scripts/scan_ads.py --all-presets --output media/report.jsonl

# Hosted launch strategy with a longer inference deadline
AD_SCANNER_ENV=hosted python scripts/scan_ads.py --preset infobae --inference-timeout-s 60
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import IO, Sequence

from .config import ENV_HOSTED, ENV_LOCAL, ScannerConfig
from .errors import ScannerError, ValidationError
from .logging import jlog
from .scanner import Scanner
from .sources import NEWSPAPERS, resolve_preset
from .urls import source_host

UTC = getattr(datetime, "UTC", timezone.utc)


@dataclass(frozen=True)
class CliArgs:
    urls: list[str]
    output: str | None
    environment: str | None
    max_slots: int | None
    page_timeout_ms: int | None
    inference_timeout_s: float | None
    debug_html: bool


def _collect_targets(ns: argparse.Namespace) -> list[str]:
    targets: list[str] = list(ns.url or [])
    for name in ns.preset or []:
        targets.append(resolve_preset(name).url)
    if ns.all_presets:
        targets.extend(source.url for source in NEWSPAPERS)
    # Keep first occurrence order.
    return list(dict.fromkeys(targets))


def parse_args(argv: Sequence[str] | None = None) -> CliArgs:
    p = argparse.ArgumentParser(description="Detect and classify ad placements on web pages")
    p.add_argument("--url", action="append", help="Page to scan (repeatable)")
    p.add_argument(
        "--preset",
        action="append",
        help="Preset newspaper by slug or name (repeatable): " + ", ".join(s.slug for s in NEWSPAPERS),
    )
    p.add_argument("--all-presets", action="store_true", help="Scan every preset newspaper")
    p.add_argument("--output", help="Write JSON Lines here instead of stdout")
    p.add_argument("--env", dest="environment", choices=[ENV_LOCAL, ENV_HOSTED], help="Override AD_SCANNER_ENV")
    p.add_argument("--max-slots", type=int, help="Classify at most this many slots per page (default 3)")
    p.add_argument("--page-timeout-ms", type=int, help="Navigation wait before scanning best effort")
    p.add_argument("--inference-timeout-s", type=float, help="Per-slot inference deadline in seconds")
    p.add_argument("--debug-html", action="store_true", help="Dump page HTML and slot captures to media/debug/")

    ns = p.parse_args(argv)
    try:
        urls = _collect_targets(ns)
    except ValidationError as exc:
        p.error(str(exc))
    if not urls:
        p.error("at least one of --url, --preset or --all-presets is required")

    return CliArgs(
        urls=urls,
        output=ns.output,
        environment=ns.environment,
        max_slots=ns.max_slots,
        page_timeout_ms=ns.page_timeout_ms,
        inference_timeout_s=ns.inference_timeout_s,
        debug_html=ns.debug_html,
    )


def build_config(args: CliArgs, base: ScannerConfig | None = None) -> ScannerConfig:
    base = base or ScannerConfig.from_env()
    return base.with_overrides(
        environment=args.environment,
        max_slots=args.max_slots,
        page_timeout_ms=args.page_timeout_ms,
        inference_timeout_s=args.inference_timeout_s,
        debug_html=args.debug_html or None,
    )


def report_row(ad_row: dict, scanned_at: datetime) -> dict:
    """Attach scan provenance to a serialized slot for the reporting layer."""

    return {**ad_row, "source": source_host(ad_row.get("sourceUrl", "")), "scannedAt": scanned_at.isoformat()}


async def run(args: CliArgs, *, scanner: Scanner | None = None, out: IO[str] | None = None) -> int:
    """Scan every target sequentially; return the number of failed targets."""

    scanner = scanner or Scanner(build_config(args))
    close_out = False
    if out is None:
        if args.output:
            out = open(args.output, "a", encoding="utf-8")
            close_out = True
        else:
            out = sys.stdout

    failures = 0
    try:
        for url in args.urls:
            try:
                result = await scanner.scan(url)
            except ScannerError as exc:
                failures += 1
                jlog("error", event="target_failed", url=url, error_type=type(exc).__name__, error=str(exc))
                continue
            scanned_at = datetime.now(UTC)
            for ad in result.ads:
                out.write(json.dumps(report_row(ad.to_dict(), scanned_at), ensure_ascii=False) + "\n")
            out.flush()
    finally:
        if close_out:
            out.close()
    jlog("info", event="batch_done", targets=len(args.urls), failed=failures)
    return failures


__all__ = ["CliArgs", "build_config", "parse_args", "report_row", "run"]
