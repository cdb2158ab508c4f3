"""Preset scan targets for the daily competitive report."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass

from .errors import ValidationError


@dataclass(frozen=True, slots=True)
class PresetSource:
    slug: str
    name: str
    url: str


NEWSPAPERS: tuple[PresetSource, ...] = (
    PresetSource("clarin", "Clarín", "https://www.clarin.com"),
    PresetSource("lanacion", "La Nación", "https://www.lanacion.com.ar"),
    PresetSource("infobae", "Infobae", "https://www.infobae.com"),
    PresetSource("pagina12", "Página/12", "https://www.pagina12.com.ar"),
    PresetSource("perfil", "Perfil", "https://www.perfil.com"),
    PresetSource("cronista", "El Cronista", "https://www.cronista.com"),
    PresetSource("ambito", "Ámbito", "https://www.ambito.com"),
    PresetSource("lavoz", "La Voz", "https://www.lavoz.com.ar"),
)


def _fold(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if ch.isalnum()).lower()


def resolve_preset(name: str) -> PresetSource:
    """Look up a preset by slug or display name (case/accent-insensitive)."""

    wanted = _fold(name or "")
    for source in NEWSPAPERS:
        if wanted in (source.slug, _fold(source.name)):
            return source
    known = ", ".join(s.slug for s in NEWSPAPERS)
    raise ValidationError(f"Unknown preset {name!r}; expected one of: {known}")


__all__ = ["NEWSPAPERS", "PresetSource", "resolve_preset"]
