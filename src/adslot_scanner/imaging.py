"""Capture inspection helpers (blank detection and perceptual hashing)."""

from __future__ import annotations

from io import BytesIO

from PIL import Image, UnidentifiedImageError

BLANK_CHANNEL_TOLERANCE = 8


def is_blank_capture(png_bytes: bytes, *, tolerance: int = BLANK_CHANNEL_TOLERANCE) -> bool:
    """True when every RGB channel stays within ``tolerance`` (solid colour).

    Undecodable payloads are not considered blank; the inference service gets
    to judge them.
    """

    if not png_bytes:
        return True
    try:
        with Image.open(BytesIO(png_bytes)) as im:
            extrema = im.convert("RGB").getextrema()
    except (UnidentifiedImageError, OSError):
        return False
    return all(hi - lo <= tolerance for lo, hi in extrema)


def average_hash(png_bytes: bytes) -> str | None:
    """Return a 64-bit average hash as 16 hex chars, or None if undecodable."""

    try:
        with Image.open(BytesIO(png_bytes)) as im:
            ah = im.convert("L").resize((8, 8), resample=Image.Resampling.LANCZOS)
            pixels = list(getattr(ah, "get_flattened_data", ah.getdata)())
    except (UnidentifiedImageError, OSError):
        return None
    avg = sum(pixels) / len(pixels)
    bits = "".join("1" if p > avg else "0" for p in pixels)
    return f"{int(bits, 2):016x}"


__all__ = ["BLANK_CHANNEL_TOLERANCE", "average_hash", "is_blank_capture"]
