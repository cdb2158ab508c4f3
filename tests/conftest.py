"""Shared fakes for the scanner tests: Pillow PNGs, a scripted page, a vision stub."""

from __future__ import annotations

from io import BytesIO
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from adslot_scanner.config import ScannerConfig
from adslot_scanner.session import BrowserHandle
from adslot_scanner.vision import BrandLabel

CAPTURE_BASE_WIDTH = 40


def make_png(width: int = 40, height: int = 20, *, accent: int = 200, solid: bool = False) -> bytes:
    """White image whose left half is painted (accent, 0, 0) unless ``solid``."""

    img = Image.new("RGB", (width, height), (255, 255, 255))
    if not solid:
        for x in range(width // 2):
            for y in range(height):
                img.putpixel((x, y), (accent, 0, 0))
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def slot_key_of(png_bytes: bytes) -> int:
    """Recover the clip x offset that FakePage encoded into the capture width."""

    with Image.open(BytesIO(png_bytes)) as im:
        return im.width - CAPTURE_BASE_WIDTH


def slot(x: float, y: float, width: float, height: float, **style: Any) -> dict[str, Any]:
    """Raw DOM record in the shape returned by the in-page query."""

    return {
        "x": x,
        "y": y,
        "top": style.pop("top", y),
        "width": width,
        "height": height,
        "display": style.pop("display", "block"),
        "visibility": style.pop("visibility", "visible"),
        "opacity": style.pop("opacity", "1"),
    }


class FakePage:
    """Scripted stand-in for ``playwright.async_api.Page``.

    Screenshots encode the clip's x offset into the image width so the vision
    stub can tell slots apart regardless of call order.
    """

    def __init__(self, slots: list[dict[str, Any]] | None = None, viewport_height: int = 768):
        self.slots = list(slots or [])
        self.viewport_height = viewport_height
        self.set_viewport_size = AsyncMock()
        self.goto = AsyncMock()
        self.content = AsyncMock(return_value="<html><body></body></html>")
        self.screenshot_calls: list[dict[str, Any]] = []
        self.screenshot_error: Exception | None = None

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if arg is None:
            return None
        return {"viewportHeight": self.viewport_height, "slots": [dict(s) for s in self.slots]}

    async def screenshot(self, **kwargs: Any) -> bytes:
        self.screenshot_calls.append(kwargs)
        if self.screenshot_error is not None:
            raise self.screenshot_error
        return make_png(width=CAPTURE_BASE_WIDTH + int(kwargs["clip"]["x"]))


class FakeVision:
    """Vision stub keyed by slot x offset. Values: BrandLabel, Exception or callable."""

    def __init__(self, behaviours: dict[float, Any] | None = None, default: Any = None):
        self.behaviours = {int(x): b for x, b in (behaviours or {}).items()}
        self.default = default or BrandLabel(brand="Acme", product="Rocket Skates")
        self.calls: list[tuple[int, str]] = []

    async def identify(self, image_bytes: bytes, source_url: str) -> BrandLabel:
        key = slot_key_of(image_bytes)
        self.calls.append((key, source_url))
        behaviour = self.behaviours.get(key, self.default)
        if isinstance(behaviour, Exception):
            raise behaviour
        if callable(behaviour):
            return await behaviour()
        return behaviour


def make_handle(page: Any) -> BrowserHandle:
    return BrowserHandle(
        playwright=MagicMock(stop=AsyncMock()),
        browser=MagicMock(close=AsyncMock()),
        context=MagicMock(close=AsyncMock()),
        page=page,
        environment="local",
    )


@pytest.fixture
def config() -> ScannerConfig:
    return ScannerConfig(gemini_api_key="test-key", inference_timeout_s=5.0)


@pytest.fixture
def page() -> FakePage:
    return FakePage()


@pytest.fixture
def handle(page: FakePage) -> BrowserHandle:
    return make_handle(page)
