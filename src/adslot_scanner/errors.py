"""Exception taxonomy for the ad slot scanner."""

from __future__ import annotations


class ScannerError(RuntimeError):
    """Base class for scanner failures."""


class ConfigError(ScannerError):
    """Raised at startup when required configuration is missing or malformed."""


class ValidationError(ScannerError):
    """Raised when scan input is rejected before any browser work starts."""


class LaunchError(ScannerError):
    """Signal that the headless browser could not be started."""


class NavigationSetupError(ScannerError):
    """Signal that the page could not be prepared for navigation."""


class NavigationTimeout(ScannerError):
    """Navigation did not reach network idle in time; the page stays usable."""


class ClassificationServiceError(ScannerError):
    """The inference call itself failed (transport, quota, deadline)."""


class ClassificationParseError(ScannerError):
    """The inference service answered, but not with a usable JSON object."""

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


__all__ = [
    "ClassificationParseError",
    "ClassificationServiceError",
    "ConfigError",
    "LaunchError",
    "NavigationSetupError",
    "NavigationTimeout",
    "ScannerError",
    "ValidationError",
]
