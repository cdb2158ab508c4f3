"""Headless browser lifecycle: launch strategy, handle, and guaranteed release."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from .config import ScannerConfig
from .errors import LaunchError
from .logging import jlog

# Hosted runtimes (Cloud Run, serverless) lack user namespaces and a large /dev/shm.
HOSTED_CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--single-process",
    "--no-zygote",
    "--hide-scrollbars",
]

LOCAL_CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]


@dataclass(eq=False)
class BrowserHandle:
    """One scan's exclusive browser. Page operations must hold ``lock``."""

    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: Page
    environment: str
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    released: bool = False


def launch_options(config: ScannerConfig) -> dict[str, Any]:
    """Return ``chromium.launch`` keyword arguments for the configured environment."""

    if config.hosted:
        options: dict[str, Any] = {"headless": True, "args": list(HOSTED_CHROMIUM_ARGS)}
        if config.chromium_executable_path:
            options["executable_path"] = config.chromium_executable_path
        return options
    return {"headless": True, "args": list(LOCAL_CHROMIUM_ARGS)}


async def acquire(config: ScannerConfig) -> BrowserHandle:
    """Start Playwright, launch Chromium and open a fresh page.

    Raises :class:`LaunchError` on any failure; partially started resources are
    torn down before raising.
    """

    pw = None
    browser = None
    context = None
    try:
        pw = await async_playwright().start()
        browser = await pw.chromium.launch(**launch_options(config))
        context_kwargs: dict[str, Any] = {
            "viewport": {"width": config.viewport_width, "height": config.viewport_height},
        }
        if config.user_agent:
            context_kwargs["user_agent"] = config.user_agent
        context = await browser.new_context(**context_kwargs)
        page = await context.new_page()
    except Exception as exc:
        jlog("error", event="browser_launch_failed", environment=config.environment, error=str(exc))
        await _close_quietly(context, browser, pw)
        raise LaunchError(str(exc)) from exc
    except BaseException:
        await _close_quietly(context, browser, pw)
        raise
    jlog("info", event="browser_launched", environment=config.environment)
    return BrowserHandle(playwright=pw, browser=browser, context=context, page=page, environment=config.environment)


async def release(handle: BrowserHandle | None) -> None:
    """Close the context, browser and driver. Safe to call more than once."""

    if handle is None or handle.released:
        return
    handle.released = True
    await _close_quietly(handle.context, handle.browser, handle.playwright)
    jlog("info", event="browser_released", environment=handle.environment)


async def _close_quietly(context, browser, pw) -> None:
    for step, closer in (
        ("context", getattr(context, "close", None)),
        ("browser", getattr(browser, "close", None)),
        ("playwright", getattr(pw, "stop", None)),
    ):
        if closer is None:
            continue
        try:
            await closer()
        except Exception as exc:
            jlog("warning", event="browser_release_error", step=step, error=str(exc))


@asynccontextmanager
async def browser_session(config: ScannerConfig) -> AsyncIterator[BrowserHandle]:
    """Acquire a handle for the ``async with`` block and always release it."""

    handle = await acquire(config)
    try:
        yield handle
    finally:
        await release(handle)


__all__ = [
    "BrowserHandle",
    "HOSTED_CHROMIUM_ARGS",
    "LOCAL_CHROMIUM_ARGS",
    "acquire",
    "browser_session",
    "launch_options",
    "release",
]
