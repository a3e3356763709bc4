from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from cwkgen.surface import ColorLike, ShadowSpec, Surface

MeasureFn = Callable[[str], float]

DEFAULT_SHADOW = ShadowSpec()
NO_SHADOW: Optional[ShadowSpec] = None


def shadow_spec(
    enabled: bool = True,
    *,
    color: Optional[str] = None,
    blur: Optional[float] = None,
    offset_x: Optional[float] = None,
    offset_y: Optional[float] = None,
) -> Optional[ShadowSpec]:
    if not enabled:
        return NO_SHADOW
    return ShadowSpec(
        color=DEFAULT_SHADOW.color if color is None else color,
        blur=DEFAULT_SHADOW.blur if blur is None else blur,
        offset_x=DEFAULT_SHADOW.offset_x if offset_x is None else offset_x,
        offset_y=DEFAULT_SHADOW.offset_y if offset_y is None else offset_y,
    )


def hyphenate_word(word: str, max_width: float, measure: MeasureFn) -> Optional[Tuple[str, str]]:
    """Splits ``word`` at the longest prefix whose ``prefix-`` fits.

    Returns ``(prefix + "-", remainder)`` or ``None`` when not even a single
    character plus hyphen fits.
    """
    lo, hi = 1, len(word) - 1
    best = 0
    while lo <= hi:
        mid = (lo + hi) // 2
        if measure(word[:mid] + "-") <= max_width:
            best = mid
            lo = mid + 1
        else:
            hi = mid - 1
    if best == 0:
        return None
    return word[:best] + "-", word[best:]


def _break_word(word: str, max_width: float, measure: MeasureFn) -> Tuple[List[str], str]:
    pieces: List[str] = []
    rest = word
    while measure(rest) > max_width:
        split = hyphenate_word(rest, max_width, measure)
        if split is None:
            break
        head, rest = split
        pieces.append(head)
    return pieces, rest


def _wrap_paragraph(words: Sequence[str], max_width: float, measure: MeasureFn) -> List[str]:
    lines: List[str] = []
    pieces, current = _break_word(words[0], max_width, measure)
    lines.extend(pieces)
    for word in words[1:]:
        candidate = f"{current} {word}"
        if measure(candidate) < max_width:
            current = candidate
            continue
        lines.append(current)
        if measure(word) > max_width:
            pieces, current = _break_word(word, max_width, measure)
            lines.extend(pieces)
        else:
            current = word
    lines.append(current)
    return lines


def wrap_text(text: object, max_width: float, measure: MeasureFn) -> List[str]:
    if not isinstance(text, str) or not text.strip():
        return []
    lines: List[str] = []
    for paragraph in text.splitlines():
        words = paragraph.split()
        if words:
            lines.extend(_wrap_paragraph(words, max_width, measure))
    return lines


def draw_lines(
    surface: Surface,
    lines: Sequence[str],
    x: float,
    start_y: float,
    line_height: float,
    font,
    fill: ColorLike,
    *,
    center: bool = False,
    shadow: Optional[ShadowSpec] = NO_SHADOW,
) -> None:
    for idx, line in enumerate(lines):
        line_x = x - surface.measure(line, font) / 2 if center else x
        surface.draw_text(line, line_x, start_y + idx * line_height, font, fill, shadow=shadow)


def draw_centered(
    surface: Surface,
    text: str,
    center_x: float,
    y: float,
    font,
    fill: ColorLike,
    *,
    shadow: Optional[ShadowSpec] = NO_SHADOW,
) -> None:
    width = surface.measure(text, font)
    surface.draw_text(text, center_x - width / 2, y, font, fill, shadow=shadow)
