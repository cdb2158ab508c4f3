"""Detect, capture and classify ad placements on live web pages."""

from .classifier import ClassificationOutcome, OutcomeKind, classify, evaluate_slot
from .config import ScannerConfig
from .detector import build_candidates, classify_ad_type, classify_location, detect
from .errors import (
    ClassificationParseError,
    ClassificationServiceError,
    ConfigError,
    LaunchError,
    NavigationSetupError,
    NavigationTimeout,
    ScannerError,
    ValidationError,
)
from .loader import LoadOutcome, load
from .logging import jlog, scanlog
from .models import ANALYSIS_FAILED, NOT_AN_AD, UNKNOWN, AdSlotCandidate, AdType, ClassifiedAdSlot, Geometry, ScanResult, SlotLocation
from .scanner import Scanner
from .session import BrowserHandle, acquire, browser_session, release
from .versioning import get_scanner_version

__all__ = [
    "ANALYSIS_FAILED",
    "AdSlotCandidate",
    "AdType",
    "BrowserHandle",
    "ClassificationOutcome",
    "ClassificationParseError",
    "ClassificationServiceError",
    "ClassifiedAdSlot",
    "ConfigError",
    "Geometry",
    "LaunchError",
    "LoadOutcome",
    "NOT_AN_AD",
    "NavigationSetupError",
    "NavigationTimeout",
    "OutcomeKind",
    "ScanResult",
    "Scanner",
    "ScannerConfig",
    "ScannerError",
    "SlotLocation",
    "UNKNOWN",
    "ValidationError",
    "acquire",
    "browser_session",
    "build_candidates",
    "classify",
    "classify_ad_type",
    "classify_location",
    "detect",
    "evaluate_slot",
    "get_scanner_version",
    "jlog",
    "load",
    "release",
    "scanlog",
]
