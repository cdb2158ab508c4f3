import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from adslot_scanner.config import ScannerConfig
from adslot_scanner.errors import LaunchError
from adslot_scanner.session import HOSTED_CHROMIUM_ARGS, acquire, browser_session, launch_options, release


def _playwright(launch_error=None):
    page = MagicMock(name="page")
    context = MagicMock(name="context")
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()
    browser = MagicMock(name="browser")
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    pw = MagicMock(name="playwright")
    pw.chromium.launch = AsyncMock(side_effect=launch_error, return_value=browser)
    pw.stop = AsyncMock()
    starter = MagicMock()
    starter.start = AsyncMock(return_value=pw)
    return starter, pw, browser, context, page


def test_launch_options_hosted_uses_constrained_flags():
    cfg = ScannerConfig(gemini_api_key="k", environment="hosted", chromium_executable_path="/opt/chromium")
    opts = launch_options(cfg)
    assert opts["args"] == HOSTED_CHROMIUM_ARGS
    assert "--no-sandbox" in opts["args"] and "--disable-dev-shm-usage" in opts["args"]
    assert opts["executable_path"] == "/opt/chromium"
    assert opts["headless"] is True


def test_launch_options_local_uses_bundled_chromium():
    opts = launch_options(ScannerConfig(gemini_api_key="k", chromium_executable_path="/opt/chromium"))
    assert "executable_path" not in opts
    assert "--single-process" not in opts["args"]


@pytest.mark.asyncio
async def test_acquire_opens_page_with_desktop_viewport(config):
    starter, pw, browser, context, page = _playwright()
    with patch("adslot_scanner.session.async_playwright", return_value=starter):
        handle = await acquire(config)
    assert handle.page is page
    assert browser.new_context.await_args.kwargs["viewport"] == {"width": 1366, "height": 768}
    assert not handle.released


@pytest.mark.asyncio
async def test_acquire_wraps_launch_failure_and_stops_driver(config):
    starter, pw, browser, context, page = _playwright(launch_error=RuntimeError("Executable doesn't exist"))
    with patch("adslot_scanner.session.async_playwright", return_value=starter):
        with pytest.raises(LaunchError, match="Executable doesn't exist"):
            await acquire(config)
    pw.stop.assert_awaited_once()
    context.new_page.assert_not_awaited()


@pytest.mark.asyncio
async def test_release_is_idempotent(config):
    starter, pw, browser, context, page = _playwright()
    with patch("adslot_scanner.session.async_playwright", return_value=starter):
        handle = await acquire(config)
    await release(handle)
    await release(handle)
    context.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    pw.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_release_continues_after_a_close_error(config):
    starter, pw, browser, context, page = _playwright()
    context.close.side_effect = RuntimeError("context already closed")
    with patch("adslot_scanner.session.async_playwright", return_value=starter):
        handle = await acquire(config)
    await release(handle)
    browser.close.assert_awaited_once()
    pw.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_browser_session_releases_on_error(config):
    starter, pw, browser, context, page = _playwright()
    with patch("adslot_scanner.session.async_playwright", return_value=starter):
        with pytest.raises(ValueError):
            async with browser_session(config) as handle:
                raise ValueError("boom")
    assert handle.released
    browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_cancelled_launch_still_closes_browser_and_driver(config):
    starter, pw, browser, context, page = _playwright()
    opening = asyncio.Event()

    async def hang(**kwargs):
        opening.set()
        await asyncio.sleep(60)

    browser.new_context.side_effect = hang
    with patch("adslot_scanner.session.async_playwright", return_value=starter):
        task = asyncio.create_task(acquire(config))
        await opening.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
    browser.close.assert_awaited_once()
    pw.stop.assert_awaited_once()
    context.close.assert_not_awaited()
