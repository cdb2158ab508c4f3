"""Value types produced by the detection and classification stages."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Any

UNKNOWN = "Unknown"
NOT_AN_AD = "Not an Ad"
ANALYSIS_FAILED = "Analysis Failed"


class SlotLocation(str, Enum):
    HEADER_TOP = "Header/Top"
    UPPER_FOLD = "Upper Fold"
    SIDEBAR = "Sidebar/Body"
    FOOTER_BOTTOM = "Footer/Bottom"
    UNKNOWN = "Unknown"


class AdType(str, Enum):
    LEADERBOARD = "Leaderboard"
    SKYSCRAPER = "Skyscraper"
    MEDIUM_RECTANGLE = "Medium Rectangle"
    LARGE_RECTANGLE = "Large Rectangle"
    DISPLAY_AD = "Display Ad"


@dataclass(frozen=True, slots=True)
class Geometry:
    """Bounding box in page coordinates (CSS pixels)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def rounded_width(self) -> int:
        return round(self.width)

    @property
    def rounded_height(self) -> int:
        return round(self.height)

    def key(self) -> tuple[int, int, int, int]:
        """Integer identity used to drop duplicate placements."""

        return (round(self.x), round(self.y), self.rounded_width, self.rounded_height)

    def clip(self) -> dict[str, float]:
        """Screenshot clip rectangle for Playwright."""

        return {"x": self.x, "y": self.y, "width": float(self.rounded_width), "height": float(self.rounded_height)}


@dataclass(frozen=True, slots=True)
class AdSlotCandidate:
    geometry: Geometry
    visibility_ok: bool
    location: SlotLocation
    ad_type: AdType

    def classified(self, brand: str, product: str, source_url: str) -> ClassifiedAdSlot:
        return ClassifiedAdSlot(
            geometry=self.geometry,
            visibility_ok=self.visibility_ok,
            location=self.location,
            ad_type=self.ad_type,
            brand=brand,
            product=product,
            source_url=source_url,
        )


@dataclass(frozen=True, slots=True)
class ClassifiedAdSlot:
    geometry: Geometry
    visibility_ok: bool
    location: SlotLocation
    ad_type: AdType
    brand: str
    product: str
    source_url: str

    @property
    def degraded(self) -> bool:
        return self.brand in (UNKNOWN, ANALYSIS_FAILED)

    def to_dict(self) -> OrderedDict[str, Any]:
        """Return the report row with a stable key order."""

        row: OrderedDict[str, Any] = OrderedDict()
        row["x"] = self.geometry.x
        row["y"] = self.geometry.y
        row["width"] = self.geometry.rounded_width
        row["height"] = self.geometry.rounded_height
        row["location"] = self.location.value
        row["type"] = self.ad_type.value
        row["brand"] = self.brand
        row["product"] = self.product
        row["sourceUrl"] = self.source_url
        return row


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Classified slots of one scan, in detection order."""

    source_url: str
    ads: tuple[ClassifiedAdSlot, ...]
    load_outcome: str

    def __len__(self) -> int:
        return len(self.ads)

    def __iter__(self):
        return iter(self.ads)

    def to_payload(self) -> dict[str, Any]:
        return {"ads": [ad.to_dict() for ad in self.ads]}


__all__ = [
    "ANALYSIS_FAILED",
    "AdSlotCandidate",
    "AdType",
    "ClassifiedAdSlot",
    "Geometry",
    "NOT_AN_AD",
    "ScanResult",
    "SlotLocation",
    "UNKNOWN",
]
