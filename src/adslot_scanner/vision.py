"""Brand/product recognition backed by the Gemini vision API."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

from google import genai
from google.genai import types

from .config import DEFAULT_GEMINI_MODEL
from .errors import ClassificationParseError, ClassificationServiceError, ConfigError
from .models import UNKNOWN

IMAGE_MIME_TYPE = "image/png"

CLASSIFY_PROMPT = """Analyze this image which is a visual advertisement captured from {source_url}.
Identify:
1. Brand Name (e.g. Nike, Coca-Cola).
2. Product Name/Description.
If the image is empty, a solid colour, a loading placeholder or otherwise not an advertisement,
use "Not an Ad" for both fields.
Return JSON only: {{ "brand": "string", "product": "string" }}"""

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class BrandLabel:
    brand: str
    product: str


def build_prompt(source_url: str) -> str:
    return CLASSIFY_PROMPT.format(source_url=source_url)


def strip_code_fences(text: str) -> str:
    """Remove markdown fences the model likes to wrap JSON in."""

    return _FENCE_RE.sub("", text or "").strip()


def _field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return UNKNOWN
    value = str(value).strip()
    return value or UNKNOWN


def parse_brand_label(text: str) -> BrandLabel:
    """Parse the model's reply into a :class:`BrandLabel`.

    Raises :class:`ClassificationParseError` when the reply is not a JSON object.
    """

    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ClassificationParseError(f"response is not JSON: {exc}", raw=text) from exc
    if not isinstance(data, dict):
        raise ClassificationParseError(f"expected a JSON object, got {type(data).__name__}", raw=text)
    return BrandLabel(brand=_field(data, "brand"), product=_field(data, "product"))


class VisionClient:
    """Thin async wrapper around ``google.genai`` for image + prompt calls."""

    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL, *, client: genai.Client | None = None):
        if not api_key and client is None:
            raise ConfigError("GEMINI_API_KEY environment variable is required")
        self.model = model
        self._client = client or genai.Client(api_key=api_key)

    async def generate(self, prompt: str, image_bytes: bytes, mime_type: str = IMAGE_MIME_TYPE) -> str:
        """Send one prompt/image pair and return the raw response text.

        Raises :class:`ClassificationServiceError` for any transport or API error.
        """

        image = types.Part.from_bytes(data=image_bytes, mime_type=mime_type)
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=[prompt, image],
                config=types.GenerateContentConfig(temperature=0.0),
            )
        except Exception as exc:
            raise ClassificationServiceError(f"{type(exc).__name__}: {exc}") from exc
        return response.text or ""

    async def identify(self, image_bytes: bytes, source_url: str) -> BrandLabel:
        text = await self.generate(build_prompt(source_url), image_bytes)
        return parse_brand_label(text)


__all__ = [
    "BrandLabel",
    "CLASSIFY_PROMPT",
    "IMAGE_MIME_TYPE",
    "VisionClient",
    "build_prompt",
    "parse_brand_label",
    "strip_code_fences",
]
