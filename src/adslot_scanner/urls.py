"""URL helpers for scan targets."""

from __future__ import annotations

import urllib.parse

from .errors import ValidationError

_ALLOWED_SCHEMES = ("http", "https")


def normalize_target_url(url: str | None) -> str:
    """Return a navigable http(s) URL or raise :class:`ValidationError`.

    Bare hostnames (``www.clarin.com``) get an ``https://`` scheme.
    """

    if url is None or not isinstance(url, str) or not url.strip():
        raise ValidationError("URL is required")
    candidate = url.strip()
    if "://" not in candidate:
        scheme, sep, rest = candidate.partition(":")
        # "host:8080/path" is a bare host with a port, "mailto:x" is a scheme.
        if sep and scheme.lower() not in _ALLOWED_SCHEMES and not rest[:1].isdigit():
            raise ValidationError(f"Unsupported URL scheme: {scheme!r}")
        candidate = f"https://{candidate}"
    parsed = urllib.parse.urlparse(candidate)
    if parsed.scheme.lower() not in _ALLOWED_SCHEMES:
        raise ValidationError(f"Unsupported URL scheme: {parsed.scheme!r}")
    if not parsed.hostname:
        raise ValidationError(f"URL has no host: {url!r}")
    return urllib.parse.urlunparse(
        (parsed.scheme.lower(), parsed.netloc, parsed.path or "/", parsed.params, parsed.query, parsed.fragment)
    )


def source_host(url: str) -> str:
    """Hostname used to label report rows; ``"Unknown"`` if unparsable."""

    try:
        host = urllib.parse.urlparse(url).hostname
    except ValueError:
        host = None
    return host or "Unknown"


__all__ = ["normalize_target_url", "source_host"]
