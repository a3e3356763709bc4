from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Mapping, Optional, Sequence, Type, TypeVar

import aiohttp
from PIL import Image, ImageFilter

from cwkgen.assets import AssetLoader, open_image
from cwkgen.errors import (
    AssetLoadError,
    AvatarProcessingError,
    CardError,
    EncodingError,
    RenderError,
    ValidationError,
)
from cwkgen.fonts import FontLike, FontRegistry, default_font_registry
from cwkgen.masks import MaskCache, crop_circle, default_mask_cache
from cwkgen.options import BackgroundConfig, CardOptions
from cwkgen.surface import ColorLike, ShadowSpec, Surface, cover_fit, parse_color
from cwkgen.text import shadow_spec

_render_logger = logging.getLogger("cwkgen.render")

T = TypeVar("T")
O = TypeVar("O", bound=CardOptions)


@dataclass
class StageResult(Generic[T]):
    """Outcome of one pipeline stage: a value or a typed error, never both."""

    value: Optional[T] = None
    error: Optional[CardError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def fold(self, fallback: Optional[T] = None) -> Optional[T]:
        if self.error is None:
            return self.value
        if self.error.recoverable:
            return fallback
        raise self.error


class Composer(Generic[O]):
    """Shared stage machinery for the static card composers.

    Subclasses set ``options_type`` and implement ``compose``; ``render`` owns
    validation and the top-level error wrapping.
    """

    options_type: Type[CardOptions] = CardOptions

    def __init__(
        self,
        *,
        loader: Optional[AssetLoader] = None,
        masks: Optional[MaskCache] = None,
        fonts: Optional[FontRegistry] = None,
    ) -> None:
        self.loader = loader or AssetLoader()
        self.masks = masks or default_mask_cache()
        self.fonts = fonts or default_font_registry()

    async def render(self, options: object = None, **kwargs) -> bytes:
        opts = self.prepare(options, kwargs)
        return await self.guarded(opts, self.compose)

    def prepare(self, options: object, overrides: Mapping[str, Any]) -> O:
        opts = self.options_type.coerce(options, overrides)
        opts.validate()
        return opts  # type: ignore[return-value]

    async def guarded(self, opts: O, compose: Callable[[O], Awaitable[bytes]]) -> bytes:
        subject = opts.subject
        try:
            self.fonts.warn_if_unregistered(opts.font, subject=subject, card=opts.card_name)
            return await compose(opts)
        except ValidationError:
            raise
        except CardError as exc:
            if exc.subject is not None:
                raise
            raise self._wrap(opts, exc) from exc
        except Exception as exc:
            raise self._wrap(opts, exc) from exc

    async def compose(self, opts: O) -> bytes:
        raise NotImplementedError

    def _wrap(self, opts: CardOptions, exc: BaseException) -> RenderError:
        _render_logger.error(
            "Failed to generate %s for %s: %r", opts.card_name, opts.subject, exc
        )
        return RenderError(
            f"Failed to generate {opts.card_name} for {opts.subject}. Reason: {exc}",
            subject=opts.subject,
        )

    async def _load(
        self,
        source: object,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        validate: bool = True,
    ) -> StageResult[bytes]:
        if source is None:
            return StageResult()
        try:
            if validate:
                return StageResult(value=await self.loader.load(source, session=session))  # type: ignore[arg-type]
            return StageResult(value=await self.loader.fetch(source, session=session))  # type: ignore[arg-type]
        except AssetLoadError as exc:
            return StageResult(error=exc)

    async def load_all(self, sources: Sequence[object]) -> List[StageResult[bytes]]:
        present = [source for source in sources if source is not None]
        if not present:
            return [StageResult() for _ in sources]
        async with self.loader.session(*present) as session:
            results = await asyncio.gather(*(self._load(source, session=session) for source in sources))
        return list(results)

    def font(self, opts: CardOptions, size: int, *, bold: bool = False) -> FontLike:
        return self.fonts.resolve(opts.font, size, bold=bold)

    def text_shadow(self, opts: CardOptions, **overrides) -> Optional[ShadowSpec]:
        return shadow_spec(opts.shadow, **overrides)

    def background_layer(
        self, config: BackgroundConfig, fetched: StageResult[bytes], size
    ) -> StageResult[Image.Image]:
        if not fetched.ok:
            return StageResult(error=fetched.error)
        if fetched.value is None:
            return StageResult()
        try:
            layer = cover_fit(open_image(fetched.value), size)
            if config.blur > 0:
                layer = layer.filter(ImageFilter.GaussianBlur(radius=config.blur))
        except AssetLoadError as exc:
            return StageResult(error=exc)
        except (OSError, ValueError) as exc:
            return StageResult(error=AssetLoadError(f"Background processing failed: {exc}"))
        return StageResult(value=layer)

    def paint_background(
        self,
        surface: Surface,
        config: BackgroundConfig,
        fetched: StageResult[bytes],
        *,
        subject: str,
        card: str,
    ) -> None:
        result = self.background_layer(config, fetched, surface.size)
        if not result.ok:
            _render_logger.warning(
                "%s for %s: background image unavailable, using solid color: %s",
                card,
                subject,
                result.error,
            )
        layer = result.fold(None)
        surface.fill(config.color)
        if layer is None:
            return
        surface.draw_image(layer, 0, 0, opacity=config.opacity)
        if config.overlay_color:
            surface.fill(config.overlay_color)

    def paint_avatar(
        self,
        surface: Surface,
        fetched: StageResult[bytes],
        *,
        x: float,
        y: float,
        size: int,
        border_width: int = 0,
        border_color: ColorLike = "#FFFFFF",
        shadow: Optional[ShadowSpec] = None,
        subject: str,
    ) -> None:
        framed = self.prepare_avatar(
            fetched, size, border_width=border_width, border_color=border_color, subject=subject
        )
        surface.draw_image(framed, x - border_width, y - border_width, shadow=shadow)

    def prepare_avatar(
        self,
        fetched: StageResult[bytes],
        size: int,
        *,
        border_width: int = 0,
        border_color: ColorLike = "#FFFFFF",
        subject: str,
    ) -> Image.Image:
        """Circular avatar, optionally on a border disc ``border_width`` wider."""
        try:
            if fetched.error is not None:
                raise fetched.error
            if fetched.value is None:
                raise AssetLoadError("No avatar image was loaded")
            avatar = crop_circle(open_image(fetched.value), size, self.masks)
        except (AssetLoadError, AvatarProcessingError) as exc:
            raise AvatarProcessingError(
                f"Failed to load or process avatar for {subject}. Reason: {exc}",
                subject=subject,
            ) from exc
        if border_width <= 0:
            return avatar
        outer = size + 2 * border_width
        disc = Image.new("RGBA", (outer, outer), parse_color(border_color))
        framed = crop_circle(disc, outer, self.masks)
        framed.alpha_composite(avatar, (border_width, border_width))
        return framed

    def serialize(self, surface: Surface, opts: CardOptions) -> bytes:
        try:
            return surface.to_png()
        except (OSError, ValueError) as exc:
            raise EncodingError(
                f"Failed to encode {opts.card_name} for {opts.subject}: {exc}",
                subject=opts.subject,
            ) from exc
