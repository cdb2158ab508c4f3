"""Ad slot detection.

Detection is split in two halves. :func:`query_slot_geometry` runs inside the
live page and returns raw rectangles and computed style for every element that
matches :data:`AD_SLOT_SELECTORS`. :func:`build_candidates` is a pure fold over
those records that applies the size/visibility filter, the location and ad-type
heuristics, de-duplication and the top-N cut. Only the second half carries
business rules, so it is tested without a browser.

The selector list is a heuristic allow-list of common ad-container markup
(Google Publisher Tag, AdSense, generic ``ad-container`` classes). Misses are
expected.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .config import DEFAULT_MAX_SLOTS
from .logging import jlog
from .models import AdSlotCandidate, AdType, Geometry, SlotLocation
from .session import BrowserHandle

AD_SLOT_SELECTORS = (
    'iframe[id*="google_ads"]',
    'div[id*="google_ads"]',
    'div[id*="gpt-ad"]',
    'div[class*="ad-container"]',
    'div[class*="ad_slot"]',
    'div[id*="block-block-ad"]',
    "ins.adsbygoogle",
)

MIN_SLOT_WIDTH = 90
MIN_SLOT_HEIGHT = 40
HEADER_BAND_PX = 150
UPPER_FOLD_FRACTION = 0.4
FOOTER_FRACTION = 0.6
LEADERBOARD_MIN_RATIO = 3.0
SKYSCRAPER_MAX_RATIO = 0.4
MEDIUM_RECTANGLE_SIZE = (300, 250)
MEDIUM_RECTANGLE_TOLERANCE = 50
LARGE_RECTANGLE_MIN = (300, 200)

_QUERY_SCRIPT = """
(selector) => {
    const slots = [];
    for (const el of document.querySelectorAll(selector)) {
        const rect = el.getBoundingClientRect();
        const style = window.getComputedStyle(el);
        slots.push({
            x: rect.x + window.scrollX,
            y: rect.y + window.scrollY,
            top: rect.top,
            width: rect.width,
            height: rect.height,
            display: style.display,
            visibility: style.visibility,
            opacity: style.opacity,
        });
    }
    return { viewportHeight: window.innerHeight, slots };
}
"""


def passes_size_filter(width: float, height: float) -> bool:
    return width > MIN_SLOT_WIDTH and height > MIN_SLOT_HEIGHT


def is_rendered(display: str | None, visibility: str | None, opacity: str | float | None) -> bool:
    if display == "none" or visibility == "hidden":
        return False
    try:
        return opacity is None or float(opacity) != 0.0
    except (TypeError, ValueError):
        return True


def classify_location(top: float, center_y: float, viewport_height: float) -> SlotLocation:
    """Fold position from the element's viewport top and vertical centre."""

    if top < HEADER_BAND_PX:
        return SlotLocation.HEADER_TOP
    if viewport_height <= 0:
        return SlotLocation.UNKNOWN
    if center_y < viewport_height * UPPER_FOLD_FRACTION:
        return SlotLocation.UPPER_FOLD
    if center_y > viewport_height * FOOTER_FRACTION:
        return SlotLocation.FOOTER_BOTTOM
    return SlotLocation.SIDEBAR


def classify_ad_type(width: float, height: float) -> AdType:
    """IAB-style format from aspect ratio first, then absolute size."""

    if height <= 0:
        return AdType.DISPLAY_AD
    ratio = width / height
    if ratio > LEADERBOARD_MIN_RATIO:
        return AdType.LEADERBOARD
    if ratio < SKYSCRAPER_MAX_RATIO:
        return AdType.SKYSCRAPER
    mr_w, mr_h = MEDIUM_RECTANGLE_SIZE
    if abs(width - mr_w) < MEDIUM_RECTANGLE_TOLERANCE and abs(height - mr_h) < MEDIUM_RECTANGLE_TOLERANCE:
        return AdType.MEDIUM_RECTANGLE
    lr_w, lr_h = LARGE_RECTANGLE_MIN
    if width > lr_w and height > lr_h:
        return AdType.LARGE_RECTANGLE
    return AdType.DISPLAY_AD


def _number(raw: Mapping[str, Any], key: str) -> float:
    try:
        return float(raw.get(key) or 0.0)
    except (TypeError, ValueError):
        return 0.0


def build_candidates(
    raw_slots: Iterable[Mapping[str, Any]],
    viewport_height: float,
    *,
    limit: int = DEFAULT_MAX_SLOTS,
) -> list[AdSlotCandidate]:
    """Turn raw DOM records into at most ``limit`` classified candidates."""

    candidates: list[AdSlotCandidate] = []
    seen: set[tuple[int, int, int, int]] = set()
    for raw in raw_slots:
        width = _number(raw, "width")
        height = _number(raw, "height")
        if not passes_size_filter(width, height):
            continue
        if not is_rendered(raw.get("display"), raw.get("visibility"), raw.get("opacity")):
            continue
        geometry = Geometry(x=_number(raw, "x"), y=_number(raw, "y"), width=width, height=height)
        # A GPT container and its inner iframe usually share one box.
        if geometry.key() in seen:
            continue
        seen.add(geometry.key())
        top = _number(raw, "top")
        candidates.append(
            AdSlotCandidate(
                geometry=geometry,
                visibility_ok=True,
                location=classify_location(top, top + height / 2, viewport_height),
                ad_type=classify_ad_type(width, height),
            )
        )
        if len(candidates) >= limit:
            break
    return candidates


async def query_slot_geometry(page: Page) -> tuple[list[dict[str, Any]], float]:
    """Return ``(raw_slots, viewport_height)`` for every selector match."""

    payload = await page.evaluate(_QUERY_SCRIPT, ", ".join(AD_SLOT_SELECTORS))
    payload = payload or {}
    return list(payload.get("slots") or []), float(payload.get("viewportHeight") or 0)


async def detect(handle: BrowserHandle, *, limit: int = DEFAULT_MAX_SLOTS) -> list[AdSlotCandidate]:
    """Query the live DOM and return the first ``limit`` ad candidates.

    Each call re-reads the page, so dynamic pages may answer differently. A
    failed DOM query is logged and yields no candidates.
    """

    async with handle.lock:
        try:
            raw_slots, viewport_height = await query_slot_geometry(handle.page)
        except PlaywrightError as exc:
            jlog("error", event="slot_query_failed", error=str(exc))
            return []
    candidates = build_candidates(raw_slots, viewport_height, limit=limit)
    jlog("info", event="slots_detected", matched=len(raw_slots), kept=len(candidates), limit=limit)
    return candidates


__all__ = [
    "AD_SLOT_SELECTORS",
    "MIN_SLOT_HEIGHT",
    "MIN_SLOT_WIDTH",
    "build_candidates",
    "classify_ad_type",
    "classify_location",
    "detect",
    "is_rendered",
    "passes_size_filter",
    "query_slot_geometry",
]
