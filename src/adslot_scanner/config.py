"""Process-wide scanner configuration resolved from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping

from .errors import ConfigError

ENV_LOCAL = "local"
ENV_HOSTED = "hosted"

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_VIEWPORT_WIDTH = 1366
DEFAULT_VIEWPORT_HEIGHT = 768
DEFAULT_PAGE_TIMEOUT_MS = 45000
DEFAULT_INFERENCE_TIMEOUT_S = 30.0
DEFAULT_MAX_SLOTS = 3

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True, slots=True)
class ScannerConfig:
    gemini_api_key: str
    environment: str = ENV_LOCAL
    gemini_model: str = DEFAULT_GEMINI_MODEL
    chromium_executable_path: str | None = None
    viewport_width: int = DEFAULT_VIEWPORT_WIDTH
    viewport_height: int = DEFAULT_VIEWPORT_HEIGHT
    page_timeout_ms: int = DEFAULT_PAGE_TIMEOUT_MS
    inference_timeout_s: float | None = DEFAULT_INFERENCE_TIMEOUT_S
    max_slots: int = DEFAULT_MAX_SLOTS
    skip_blank_captures: bool = True
    debug_html: bool = False
    user_agent: str | None = None

    def __post_init__(self) -> None:
        if not self.gemini_api_key:
            raise ConfigError("GEMINI_API_KEY environment variable is required")
        if self.environment not in (ENV_LOCAL, ENV_HOSTED):
            raise ConfigError(f"AD_SCANNER_ENV must be '{ENV_LOCAL}' or '{ENV_HOSTED}', got {self.environment!r}")
        if self.max_slots < 1:
            raise ConfigError("max_slots must be >= 1")
        if self.page_timeout_ms <= 0:
            raise ConfigError("page_timeout_ms must be > 0")
        if self.inference_timeout_s is not None and self.inference_timeout_s <= 0:
            # Non-positive deadlines mean "no deadline", same as INFERENCE_TIMEOUT_S=0.
            object.__setattr__(self, "inference_timeout_s", None)

    @property
    def hosted(self) -> bool:
        return self.environment == ENV_HOSTED

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ScannerConfig:
        env = os.environ if environ is None else environ
        timeout_s = _float(env, "INFERENCE_TIMEOUT_S", DEFAULT_INFERENCE_TIMEOUT_S)
        return cls(
            gemini_api_key=(env.get("GEMINI_API_KEY") or "").strip(),
            environment=(env.get("AD_SCANNER_ENV") or ENV_LOCAL).strip().lower(),
            gemini_model=env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            chromium_executable_path=env.get("CHROMIUM_EXECUTABLE_PATH") or None,
            page_timeout_ms=_int(env, "PAGE_TIMEOUT_MS", DEFAULT_PAGE_TIMEOUT_MS),
            inference_timeout_s=timeout_s if timeout_s > 0 else None,
            max_slots=_int(env, "AD_SCANNER_MAX_SLOTS", DEFAULT_MAX_SLOTS),
            skip_blank_captures=_bool(env, "AD_SCANNER_SKIP_BLANK", True),
            debug_html=_bool(env, "AD_SCANNER_DEBUG_HTML", False),
            user_agent=env.get("AD_SCANNER_USER_AGENT") or None,
        )

    def with_overrides(self, **changes: Any) -> ScannerConfig:
        """Return a copy with the non-None ``changes`` applied."""

        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean flag, got {raw!r}")


__all__ = [
    "DEFAULT_GEMINI_MODEL",
    "DEFAULT_INFERENCE_TIMEOUT_S",
    "DEFAULT_MAX_SLOTS",
    "DEFAULT_PAGE_TIMEOUT_MS",
    "ENV_HOSTED",
    "ENV_LOCAL",
    "ScannerConfig",
]
