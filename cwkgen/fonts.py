from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from PIL import ImageFont

from cwkgen.config import (
    BOLD_FONT_CANDIDATES,
    FONT_CANDIDATES,
    FONT_PATH,
    FONT_PATHS,
    MONO_FONT_CANDIDATES,
    SERIF_FONT_CANDIDATES,
)

_fonts_logger = logging.getLogger("cwkgen.fonts")

GENERIC_FAMILIES = frozenset({"sans-serif", "serif", "monospace"})

_BOLD_WEIGHTS = {"bold", "bolder", "600", "700", "800", "900"}

FontLike = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


@dataclass(frozen=True)
class RegisteredFont:
    path: Path
    family: str
    weight: str
    style: str


def normalize_weight(weight: Optional[object]) -> str:
    value = str(weight or "normal").strip().lower()
    return "bold" if value in _BOLD_WEIGHTS else "normal"


def normalize_style(style: Optional[object]) -> str:
    value = str(style or "normal").strip().lower()
    return "italic" if value in {"italic", "oblique"} else "normal"


def is_generic_family(family: Optional[str]) -> bool:
    return bool(family) and str(family).strip().lower() in GENERIC_FAMILIES


@lru_cache(maxsize=256)
def load_truetype_font(path: str, size: int) -> ImageFont.FreeTypeFont:
    return ImageFont.truetype(path, size=size)


def pick_font_from_candidates(size: int, candidates: Iterable[Path]) -> FontLike:
    for font_path in candidates:
        if font_path.exists():
            try:
                return load_truetype_font(str(font_path), size)
            except OSError:
                continue
    return ImageFont.load_default(size=size)


def collect_font_candidates(family: str = "sans-serif", *, bold: bool = False) -> List[Path]:
    env_paths: List[Path] = []
    if FONT_PATH:
        env_paths.append(Path(FONT_PATH))
    if FONT_PATHS:
        env_paths.extend(Path(part.strip()) for part in FONT_PATHS.split(";") if part.strip())
    generic = str(family or "").strip().lower()
    if generic == "serif":
        return env_paths + SERIF_FONT_CANDIDATES + FONT_CANDIDATES
    if generic == "monospace":
        return env_paths + MONO_FONT_CANDIDATES + FONT_CANDIDATES
    if bold:
        return BOLD_FONT_CANDIDATES + env_paths + FONT_CANDIDATES
    return env_paths + FONT_CANDIDATES


class FontRegistry:
    """Process-wide set of registered font families.

    Registration is idempotent per (path, family, weight, style). Composers
    only read from the registry: to resolve a family to a font file and to
    warn when a custom family was never registered.
    """

    def __init__(self) -> None:
        self._fonts: Dict[Tuple[str, str, str], RegisteredFont] = {}
        self._lock = threading.Lock()

    def register(
        self,
        path: Union[str, Path],
        family: str,
        weight: Optional[object] = None,
        style: Optional[object] = None,
    ) -> RegisteredFont:
        if not family or not str(family).strip():
            raise ValueError("Font family must be a non-empty string")
        font_path = Path(path)
        if not font_path.is_file():
            raise FileNotFoundError(f"Font file not found: {font_path}")
        load_truetype_font(str(font_path), 12)
        entry = RegisteredFont(
            path=font_path,
            family=str(family).strip(),
            weight=normalize_weight(weight),
            style=normalize_style(style),
        )
        key = (entry.family, entry.weight, entry.style)
        with self._lock:
            existing = self._fonts.get(key)
            if existing == entry:
                return existing
            self._fonts[key] = entry
        if existing is not None:
            _fonts_logger.info(
                "Font re-registered family=%s weight=%s style=%s path=%s (was %s)",
                entry.family,
                entry.weight,
                entry.style,
                entry.path,
                existing.path,
            )
        return entry

    def register_many(self, fonts: Iterable[Mapping[str, object]]) -> List[RegisteredFont]:
        registered = []
        for font in fonts:
            registered.append(
                self.register(
                    font["path"],
                    str(font["family"]),
                    weight=font.get("weight"),
                    style=font.get("style"),
                )
            )
        return registered

    def is_registered(self, family: str) -> bool:
        with self._lock:
            return any(key[0] == family for key in self._fonts)

    def families(self) -> List[str]:
        with self._lock:
            return sorted({key[0] for key in self._fonts})

    def lookup(self, family: str, *, bold: bool = False) -> Optional[Path]:
        weight = "bold" if bold else "normal"
        with self._lock:
            for key in ((family, weight, "normal"), (family, "normal", "normal")):
                entry = self._fonts.get(key)
                if entry is not None:
                    return entry.path
            for key, entry in self._fonts.items():
                if key[0] == family:
                    return entry.path
        return None

    def resolve(self, family: Optional[str], size: int, *, bold: bool = False) -> FontLike:
        size = max(1, int(size))
        name = str(family or "sans-serif").strip()
        if not is_generic_family(name):
            path = self.lookup(name, bold=bold)
            if path is not None:
                try:
                    return load_truetype_font(str(path), size)
                except OSError:
                    _fonts_logger.warning("Registered font failed to load family=%s path=%s", name, path)
        return pick_font_from_candidates(size, collect_font_candidates(name, bold=bold))

    def warn_if_unregistered(self, family: Optional[str], *, subject: str, card: str) -> bool:
        name = str(family or "").strip()
        if not name or is_generic_family(name) or self.is_registered(name):
            return False
        _fonts_logger.warning(
            "%s for %s: font family '%s' was specified but not found among registered fonts; "
            "a fallback font will be used",
            card,
            subject,
            name,
        )
        return True

    def clear(self) -> None:
        with self._lock:
            self._fonts.clear()


_default_registry: Optional[FontRegistry] = None
_default_registry_lock = threading.Lock()


def default_font_registry() -> FontRegistry:
    global _default_registry
    if _default_registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                _default_registry = FontRegistry()
    return _default_registry


def load_font(
    path: Union[str, Path],
    family: str,
    weight: Optional[object] = None,
    style: Optional[object] = None,
) -> RegisteredFont:
    return default_font_registry().register(path, family, weight=weight, style=style)


def register_fonts(fonts: Iterable[Mapping[str, object]]) -> List[RegisteredFont]:
    return default_font_registry().register_many(fonts)
