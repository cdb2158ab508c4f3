"""Scan orchestration: launch, load, detect, classify, aggregate, release."""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Awaitable, Callable

from .classifier import ClassificationOutcome, OutcomeKind, evaluate_slot
from .config import ScannerConfig
from .debug import ensure_debug_html
from .detector import detect
from .loader import load
from .logging import logging_context, scanlog
from .models import AdSlotCandidate, ClassifiedAdSlot, ScanResult
from .session import BrowserHandle, acquire, release
from .urls import normalize_target_url
from .vision import VisionClient

AcquireFn = Callable[[ScannerConfig], Awaitable[BrowserHandle]]
ReleaseFn = Callable[[BrowserHandle], Awaitable[None]]


def aggregate(
    candidates: list[AdSlotCandidate],
    outcomes: list[ClassificationOutcome],
    source_url: str,
) -> tuple[ClassifiedAdSlot, ...]:
    """Zip candidates with their outcomes, keeping detection order."""

    return tuple(
        candidate.classified(outcome.brand, outcome.product, source_url)
        for candidate, outcome in zip(candidates, outcomes, strict=True)
    )


class Scanner:
    """Runs one self-contained scan per :meth:`scan` call.

    Each scan owns its own browser; nothing is shared between concurrent calls
    apart from the inference client.
    """

    def __init__(
        self,
        config: ScannerConfig,
        *,
        vision: VisionClient | None = None,
        acquire_session: AcquireFn = acquire,
        release_session: ReleaseFn = release,
    ) -> None:
        self.config = config
        self.vision = vision or VisionClient(config.gemini_api_key, config.gemini_model)
        self._acquire = acquire_session
        self._release = release_session

    async def scan(self, url: str | None, *, inference_timeout_s: float | None = None) -> ScanResult:
        """Scan ``url`` and return its classified ad slots.

        Raises ``ValidationError`` before any browser work, ``LaunchError`` if
        Chromium cannot start and ``NavigationSetupError`` if the page cannot be
        prepared. Every later failure is folded into the returned records.
        """

        target = normalize_target_url(url)
        scan_id = uuid.uuid4().hex[:12]
        timeout_s = inference_timeout_s if inference_timeout_s is not None else self.config.inference_timeout_s

        with logging_context(scan_id=scan_id):
            started = time.monotonic()
            scanlog("scan_start", url=target, environment=self.config.environment, max_slots=self.config.max_slots)
            handle = await self._acquire(self.config)
            try:
                outcome = await load(
                    handle,
                    target,
                    self.config.page_timeout_ms,
                    viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
                )
                if self.config.debug_html:
                    await ensure_debug_html(handle.page, scan_id)

                candidates = await detect(handle, limit=self.config.max_slots)
                outcomes = await asyncio.gather(
                    *(
                        evaluate_slot(
                            handle,
                            candidate,
                            target,
                            vision=self.vision,
                            timeout_s=timeout_s,
                            skip_blank=self.config.skip_blank_captures,
                            index=index,
                            debug_scan_id=scan_id if self.config.debug_html else None,
                        )
                        for index, candidate in enumerate(candidates)
                    )
                )
                ads = aggregate(candidates, list(outcomes), target)
            finally:
                await self._release(handle)

            scanlog(
                "scan_done",
                url=target,
                load_outcome=outcome.value,
                ads=len(ads),
                failed=sum(1 for o in outcomes if o.kind is OutcomeKind.SERVICE_FAILED),
                unparseable=sum(1 for o in outcomes if o.kind is OutcomeKind.UNPARSEABLE),
                elapsed_s=round(time.monotonic() - started, 3),
            )
            return ScanResult(source_url=target, ads=ads, load_outcome=outcome.value)


__all__ = ["Scanner", "aggregate"]
