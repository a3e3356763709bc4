from __future__ import annotations

import re
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Sequence, Tuple, Union

from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageOps

RGBA = Tuple[int, int, int, int]
ColorLike = Union[str, Sequence[int]]

_FUNC_COLOR = re.compile(r"^rgba?\(\s*([^)]*)\)$", re.IGNORECASE)


def _channel(raw: str) -> int:
    raw = raw.strip()
    if raw.endswith("%"):
        return int(round(float(raw[:-1]) * 2.55))
    return int(round(float(raw)))


def _alpha(raw: str) -> int:
    raw = raw.strip()
    if raw.endswith("%"):
        return int(round(float(raw[:-1]) * 2.55))
    return int(round(float(raw) * 255))


def parse_color(value: ColorLike) -> RGBA:
    """Parses CSS-style colors into an RGBA tuple.

    Accepts hex strings, named colors, ``transparent``, ``rgb(...)`` and
    ``rgba(...)`` with a 0..1 alpha, and 3- or 4-item integer sequences.
    Raises ``ValueError`` for anything else.
    """
    if isinstance(value, (tuple, list)):
        if len(value) not in (3, 4):
            raise ValueError(f"Color tuple must have 3 or 4 items: {value!r}")
        channels = [max(0, min(255, int(part))) for part in value]
        if len(channels) == 3:
            channels.append(255)
        return tuple(channels)  # type: ignore[return-value]
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid color: {value!r}")
    text = value.strip()
    if text.lower() == "transparent":
        return (0, 0, 0, 0)
    match = _FUNC_COLOR.match(text)
    if match:
        parts = [part for part in re.split(r"[\s,/]+", match.group(1)) if part]
        if len(parts) not in (3, 4):
            raise ValueError(f"Invalid color: {value!r}")
        try:
            r, g, b = (max(0, min(255, _channel(part))) for part in parts[:3])
            a = max(0, min(255, _alpha(parts[3]))) if len(parts) == 4 else 255
        except ValueError as exc:
            raise ValueError(f"Invalid color: {value!r}") from exc
        return (r, g, b, a)
    return ImageColor.getcolor(text, "RGBA")  # type: ignore[return-value]


def cover_fit(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
    return ImageOps.fit(image.convert("RGBA"), size, method=Image.LANCZOS)


@dataclass(frozen=True)
class ShadowSpec:
    color: str = "rgba(0, 0, 0, 0.5)"
    blur: float = 5
    offset_x: float = 2
    offset_y: float = 2


class Surface:
    """An RGBA drawing surface with canvas-like primitives.

    Every primitive composites a layer over the current pixels, so
    translucent fills blend the way a 2D canvas does. Text and image shadows
    are passed per call; the surface itself holds no shadow state.
    """

    def __init__(self, width: int, height: int, color: ColorLike = (0, 0, 0, 0)) -> None:
        self.width = int(width)
        self.height = int(height)
        self.image = Image.new("RGBA", (self.width, self.height), parse_color(color))
        self._measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def _layer(self) -> Image.Image:
        return Image.new("RGBA", self.size, (0, 0, 0, 0))

    def fill(self, color: ColorLike) -> None:
        self.fill_rect(0, 0, self.width, self.height, color)

    def fill_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        color: ColorLike,
        *,
        radius: float = 0,
    ) -> None:
        rgba = parse_color(color)
        w = int(round(width))
        h = int(round(height))
        if w <= 0 or h <= 0 or rgba[3] == 0:
            return
        x0, y0 = int(round(x)), int(round(y))
        box = (x0, y0, x0 + w - 1, y0 + h - 1)
        layer = self._layer()
        draw = ImageDraw.Draw(layer)
        if radius > 0:
            draw.rounded_rectangle(box, radius=int(radius), fill=rgba)
        else:
            draw.rectangle(box, fill=rgba)
        self.image.alpha_composite(layer)

    def stroke_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        color: ColorLike,
        *,
        line_width: int = 1,
    ) -> None:
        rgba = parse_color(color)
        if width <= 0 or height <= 0 or rgba[3] == 0 or line_width <= 0:
            return
        half = line_width // 2
        x0, y0 = int(round(x)), int(round(y))
        box = (
            x0 - half,
            y0 - half,
            x0 + int(round(width)) - 1 + half,
            y0 + int(round(height)) - 1 + half,
        )
        layer = self._layer()
        ImageDraw.Draw(layer).rectangle(box, outline=rgba, width=line_width)
        self.image.alpha_composite(layer)

    def fill_circle(self, cx: float, cy: float, radius: float, color: ColorLike) -> None:
        rgba = parse_color(color)
        if radius <= 0 or rgba[3] == 0:
            return
        # 4x supersampled mask for a smooth edge.
        scale = 4
        left = int(cx - radius) - 1
        top = int(cy - radius) - 1
        span = int(radius * 2) + 3
        mask = Image.new("L", (span * scale, span * scale), 0)
        ImageDraw.Draw(mask).ellipse(
            (
                (cx - radius - left) * scale,
                (cy - radius - top) * scale,
                (cx + radius - left) * scale,
                (cy + radius - top) * scale,
            ),
            fill=rgba[3],
        )
        mask = mask.resize((span, span), Image.LANCZOS)
        disc = Image.new("RGBA", (span, span), rgba[:3] + (0,))
        disc.putalpha(mask)
        self.draw_image(disc, left, top)

    def draw_image(
        self,
        image: Image.Image,
        x: float,
        y: float,
        size: Optional[Tuple[int, int]] = None,
        *,
        opacity: float = 1.0,
        shadow: Optional[ShadowSpec] = None,
    ) -> None:
        source = image.convert("RGBA")
        if size is not None and source.size != tuple(size):
            source = source.resize((int(size[0]), int(size[1])), Image.LANCZOS)
        if opacity < 1.0:
            alpha = source.getchannel("A").point(lambda a: int(a * max(0.0, opacity)))
            source.putalpha(alpha)
        pos = (int(round(x)), int(round(y)))
        if shadow is not None:
            self._draw_image_shadow(source, pos, shadow)
        layer = self._layer()
        layer.paste(source, pos)
        self.image.alpha_composite(layer)

    def _draw_image_shadow(self, source: Image.Image, pos: Tuple[int, int], shadow: ShadowSpec) -> None:
        rgba = parse_color(shadow.color)
        if rgba[3] == 0:
            return
        silhouette = Image.new("RGBA", source.size, rgba[:3] + (0,))
        silhouette.putalpha(source.getchannel("A").point(lambda a: a * rgba[3] // 255))
        layer = self._layer()
        layer.paste(silhouette, (pos[0] + int(shadow.offset_x), pos[1] + int(shadow.offset_y)))
        if shadow.blur > 0:
            layer = layer.filter(ImageFilter.GaussianBlur(radius=shadow.blur / 2))
        self.image.alpha_composite(layer)

    def measure(self, text: str, font) -> float:
        if not text:
            return 0.0
        return float(self._measure.textlength(text, font=font))

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        font,
        fill: ColorLike,
        *,
        shadow: Optional[ShadowSpec] = None,
        anchor: str = "ls",
    ) -> None:
        if not text:
            return
        if shadow is not None:
            shadow_rgba = parse_color(shadow.color)
            if shadow_rgba[3] > 0:
                layer = self._layer()
                ImageDraw.Draw(layer).text(
                    (x + shadow.offset_x, y + shadow.offset_y),
                    text,
                    font=font,
                    fill=shadow_rgba,
                    anchor=anchor,
                )
                if shadow.blur > 0:
                    layer = layer.filter(ImageFilter.GaussianBlur(radius=shadow.blur / 2))
                self.image.alpha_composite(layer)
        layer = self._layer()
        ImageDraw.Draw(layer).text((x, y), text, font=font, fill=parse_color(fill), anchor=anchor)
        self.image.alpha_composite(layer)

    def to_png(self) -> bytes:
        output = BytesIO()
        self.image.save(output, format="PNG")
        return output.getvalue()
