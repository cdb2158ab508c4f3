"""Per-slot capture and brand classification.

Every failure inside one slot becomes a :class:`ClassificationOutcome` value so
a broken creative never aborts the scan:

* ``CLASSIFIED``: the service answered with a usable label (or the capture
  was blank and labelled "Not an Ad" locally).
* ``UNPARSEABLE``: the service answered with something that is not a JSON
  object, reported as "Unknown".
* ``SERVICE_FAILED``: the capture or the call itself broke (including the
  deadline), reported as "Analysis Failed".
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

from .debug import save_debug_capture
from .errors import ClassificationParseError, ClassificationServiceError
from .imaging import average_hash, is_blank_capture
from .logging import jlog
from .models import ANALYSIS_FAILED, NOT_AN_AD, UNKNOWN, AdSlotCandidate, ClassifiedAdSlot
from .session import BrowserHandle
from .vision import VisionClient


class OutcomeKind(str, Enum):
    CLASSIFIED = "classified"
    UNPARSEABLE = "unparseable"
    SERVICE_FAILED = "service_failed"


@dataclass(frozen=True, slots=True)
class ClassificationOutcome:
    kind: OutcomeKind
    brand: str
    product: str
    error: str | None = None

    @classmethod
    def classified(cls, brand: str, product: str) -> ClassificationOutcome:
        return cls(OutcomeKind.CLASSIFIED, brand, product)

    @classmethod
    def unparseable(cls, error: str) -> ClassificationOutcome:
        return cls(OutcomeKind.UNPARSEABLE, UNKNOWN, UNKNOWN, error)

    @classmethod
    def service_failed(cls, error: str) -> ClassificationOutcome:
        return cls(OutcomeKind.SERVICE_FAILED, ANALYSIS_FAILED, ANALYSIS_FAILED, error)


async def capture_slot(handle: BrowserHandle, candidate: AdSlotCandidate) -> bytes:
    """Screenshot exactly the candidate's box (page coordinates) as PNG."""

    async with handle.lock:
        return await handle.page.screenshot(type="png", full_page=True, clip=candidate.geometry.clip())


async def evaluate_slot(
    handle: BrowserHandle,
    candidate: AdSlotCandidate,
    source_url: str,
    *,
    vision: VisionClient,
    timeout_s: float | None = None,
    skip_blank: bool = True,
    index: int = 0,
    debug_scan_id: str | None = None,
) -> ClassificationOutcome:
    try:
        png = await capture_slot(handle, candidate)
    except Exception as exc:
        jlog("warning", event="slot_capture_failed", index=index, error=str(exc))
        return ClassificationOutcome.service_failed(f"capture: {exc}")

    if debug_scan_id:
        save_debug_capture(png, debug_scan_id, index)

    phash = average_hash(png)
    if skip_blank and is_blank_capture(png):
        jlog("info", event="slot_blank", index=index, phash=phash)
        return ClassificationOutcome.classified(NOT_AN_AD, NOT_AN_AD)

    try:
        if timeout_s is not None and timeout_s > 0:
            label = await asyncio.wait_for(vision.identify(png, source_url), timeout=timeout_s)
        else:
            label = await vision.identify(png, source_url)
    except asyncio.TimeoutError:
        jlog("warning", event="slot_classification_failed", index=index, reason="deadline", timeout_s=timeout_s)
        return ClassificationOutcome.service_failed(f"deadline exceeded after {timeout_s}s")
    except ClassificationParseError as exc:
        jlog("warning", event="slot_classification_unparseable", index=index, error=str(exc), raw=(exc.raw or "")[:500])
        return ClassificationOutcome.unparseable(str(exc))
    except ClassificationServiceError as exc:
        jlog("warning", event="slot_classification_failed", index=index, reason="service", error=str(exc))
        return ClassificationOutcome.service_failed(str(exc))
    except Exception as exc:
        jlog("error", event="slot_classification_failed", index=index, reason="unexpected", error=repr(exc))
        return ClassificationOutcome.service_failed(repr(exc))

    jlog(
        "info",
        event="slot_classified",
        index=index,
        brand=label.brand,
        product=label.product,
        phash=phash,
        ad_type=candidate.ad_type.value,
        location=candidate.location.value,
    )
    return ClassificationOutcome.classified(label.brand, label.product)


async def classify(
    handle: BrowserHandle,
    candidate: AdSlotCandidate,
    source_url: str,
    *,
    vision: VisionClient,
    timeout_s: float | None = None,
    skip_blank: bool = True,
    index: int = 0,
    debug_scan_id: str | None = None,
) -> ClassifiedAdSlot:
    """Capture and label one slot. Never raises for per-slot failures."""

    outcome = await evaluate_slot(
        handle,
        candidate,
        source_url,
        vision=vision,
        timeout_s=timeout_s,
        skip_blank=skip_blank,
        index=index,
        debug_scan_id=debug_scan_id,
    )
    return candidate.classified(outcome.brand, outcome.product, source_url)


__all__ = [
    "ClassificationOutcome",
    "OutcomeKind",
    "capture_slot",
    "classify",
    "evaluate_slot",
]
