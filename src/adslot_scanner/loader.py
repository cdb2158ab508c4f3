"""Best-effort page navigation."""

from __future__ import annotations

from enum import Enum

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import DEFAULT_PAGE_TIMEOUT_MS
from .errors import NavigationSetupError, NavigationTimeout
from .logging import jlog
from .session import BrowserHandle

DESKTOP_VIEWPORT = {"width": 1366, "height": 768}


class LoadOutcome(str, Enum):
    READY = "ready"
    TIMED_OUT_BUT_USABLE = "timed_out_but_usable"


async def wait_assets_ready(page: Page) -> None:
    """Wait for fonts and images to settle before geometry is read."""

    try:
        await page.evaluate(
            """
            () => Promise.race([
                Promise.all([
                    (document.fonts && document.fonts.ready) ? document.fonts.ready : Promise.resolve(),
                    Promise.all(
                        Array.from(document.images || []).map(img => {
                            if (img.complete) return Promise.resolve();
                            return new Promise(res => {
                                img.addEventListener('load', () => res(), { once: true });
                                img.addEventListener('error', () => res(), { once: true });
                            });
                        })
                    )
                ]),
                new Promise(res => setTimeout(res, 5000))
            ])
            """
        )
    except PlaywrightError as exc:
        jlog("warning", event="assets_wait_error", error=str(exc))


async def load(
    handle: BrowserHandle,
    url: str,
    timeout_ms: int = DEFAULT_PAGE_TIMEOUT_MS,
    *,
    viewport: dict[str, int] | None = None,
) -> LoadOutcome:
    """Navigate ``handle.page`` to ``url`` and wait for network quiescence.

    Ad networks hold long-poll connections open, so a missed idle deadline (or
    any other navigation error) keeps the partially loaded DOM and returns
    ``TIMED_OUT_BUT_USABLE``. Only a failure to prepare the page raises.
    """

    page = handle.page
    async with handle.lock:
        try:
            await page.set_viewport_size(viewport or DESKTOP_VIEWPORT)
        except PlaywrightError as exc:
            raise NavigationSetupError(f"could not apply viewport: {exc}") from exc

        outcome = LoadOutcome.READY
        try:
            await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            outcome = LoadOutcome.TIMED_OUT_BUT_USABLE
            jlog(
                "warning",
                event="page_load_degraded",
                url=url,
                reason=NavigationTimeout.__name__,
                timeout_ms=timeout_ms,
            )
        except PlaywrightError as exc:
            outcome = LoadOutcome.TIMED_OUT_BUT_USABLE
            jlog("warning", event="page_load_degraded", url=url, reason="navigation_error", error=str(exc))

        await wait_assets_ready(page)

    if outcome is LoadOutcome.READY:
        jlog("info", event="page_loaded", url=url)
    return outcome


__all__ = ["DESKTOP_VIEWPORT", "LoadOutcome", "load", "wait_assets_ready"]
