from __future__ import annotations

import asyncio
import logging
import tempfile
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from PIL import Image

from cwkgen.assets import AssetLoader
from cwkgen.composer import Composer
from cwkgen.config import GIF_MAX_FRAMES, TEMP_DIR
from cwkgen.encoder import GifEncoder
from cwkgen.errors import EncodingError
from cwkgen.fonts import FontRegistry
from cwkgen.frames import FrameSource, default_frame_source
from cwkgen.masks import MaskCache
from cwkgen.options import AnimatedWelcomeOptions, BackgroundConfig
from cwkgen.surface import Surface, cover_fit, parse_color
from cwkgen.text import draw_lines, wrap_text

_animated_logger = logging.getLogger("cwkgen.animated")

EncoderFactory = Callable[..., GifEncoder]

AVATAR_CENTER_X = 100
TEXT_LEFT = 200
TITLE_SIZE = 22
TITLE_BASELINE = 60
USERNAME_SIZE = 32
USERNAME_BASELINE = 100
MESSAGE_SIZE = 20
MESSAGE_TOP = 150
MESSAGE_LINE_HEIGHT = 24
MESSAGE_RIGHT_RESERVE = 220


class AnimatedState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DECODING = "decoding"
    COMPOSING = "composing"
    ENCODING = "encoding"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


def plan_frame_count(requested: Optional[int], available: int, cap: int = GIF_MAX_FRAMES) -> int:
    """Frames to emit: the requested count, or one pass over the source, capped."""
    target = available if requested is None else requested
    return max(1, min(target, cap))


class AnimatedRun:
    """Progress of one ``render`` call; never shared between calls."""

    def __init__(self) -> None:
        self.state = AnimatedState.IDLE
        self.frames_written = 0

    def transition(self, state: AnimatedState) -> None:
        if state != self.state:
            _animated_logger.debug("Animated welcome %s -> %s", self.state.value, state.value)
        self.state = state


class AnimatedWelcomeComposer(Composer[AnimatedWelcomeOptions]):
    options_type = AnimatedWelcomeOptions

    def __init__(
        self,
        *,
        loader: Optional[AssetLoader] = None,
        masks: Optional[MaskCache] = None,
        fonts: Optional[FontRegistry] = None,
        frame_source: Optional[FrameSource] = None,
        encoder_factory: Optional[EncoderFactory] = None,
        temp_dir: Optional[Path] = TEMP_DIR,
        max_frames: int = GIF_MAX_FRAMES,
    ) -> None:
        super().__init__(loader=loader, masks=masks, fonts=fonts)
        self.frame_source = frame_source or default_frame_source()
        self.encoder_factory = encoder_factory or GifEncoder
        self.temp_dir = temp_dir
        self.max_frames = max(1, int(max_frames))

    async def render(self, options: object = None, *, run: Optional[AnimatedRun] = None, **kwargs) -> bytes:
        run = run if run is not None else AnimatedRun()
        try:
            opts = self.prepare(options, kwargs)
            return await self.guarded(opts, lambda o: self._compose_run(o, run))
        except BaseException:
            run.transition(AnimatedState.FAILED)
            raise

    async def compose(self, opts: AnimatedWelcomeOptions) -> bytes:
        return await self._compose_run(opts, AnimatedRun())

    async def _compose_run(self, opts: AnimatedWelcomeOptions, run: AnimatedRun) -> bytes:
        background = opts.background_config()
        run.transition(AnimatedState.FETCHING)
        present = [source for source in (opts.avatar_url, background.image) if source is not None]
        async with self.loader.session(*present) as session:
            avatar, backdrop = await asyncio.gather(
                self._load(opts.avatar_url, session=session),
                self._load(background.image, session=session, validate=False),
            )
        if not backdrop.ok:
            raise backdrop.error  # type: ignore[misc]
        avatar_image = self.prepare_avatar(avatar, opts.avatar_size, subject=opts.subject)

        run.transition(AnimatedState.DECODING)
        size = (opts.width, opts.height)
        requested_cap = self.max_frames if opts.frames is None else min(opts.frames, self.max_frames)
        has_image = backdrop.value is not None
        if has_image:
            raw_frames = await asyncio.to_thread(
                self.frame_source.frames_of, backdrop.value, limit=requested_cap
            )
        else:
            raw_frames = [Image.new("RGBA", size, parse_color(background.color))]
        count = plan_frame_count(opts.frames, len(raw_frames), self.max_frames)
        fitted = [cover_fit(frame, size) for frame in raw_frames[:count]]
        _animated_logger.info(
            "Animated welcome for %s: %s frames from %s source frames", opts.subject, count, len(raw_frames)
        )

        with tempfile.TemporaryDirectory(prefix="cwkgen-gif-", dir=self.temp_dir) as workdir:
            encoder = self.encoder_factory(opts.width, opts.height, workdir=Path(workdir), delay=opts.delay)
            try:
                for idx in range(count):
                    run.transition(AnimatedState.COMPOSING)
                    frame = self._compose_frame(
                        opts, background, fitted[idx % len(fitted)], avatar_image, has_image=has_image
                    )
                    run.transition(AnimatedState.ENCODING)
                    encoder.add_frame(frame)
                    run.frames_written += 1
                run.transition(AnimatedState.FINALIZING)
                data = encoder.finish()
            except EncodingError as exc:
                if exc.subject is not None:
                    raise
                raise EncodingError(
                    f"Failed to encode {opts.card_name} for {opts.subject}: {exc}", subject=opts.subject
                ) from exc
        run.transition(AnimatedState.DONE)
        return data

    def _compose_frame(
        self,
        opts: AnimatedWelcomeOptions,
        background: BackgroundConfig,
        source: Image.Image,
        avatar: Image.Image,
        *,
        has_image: bool = True,
    ) -> Image.Image:
        surface = Surface(opts.width, opts.height, background.color)
        if has_image:
            surface.draw_image(source, 0, 0, opacity=background.opacity)
            if background.overlay_color:
                surface.fill(background.overlay_color)

        radius = opts.avatar_size / 2
        surface.draw_image(avatar, AVATAR_CENTER_X - radius, opts.height / 2 - radius)

        shadow = self.text_shadow(opts)
        if opts.title:
            surface.draw_text(
                opts.title,
                TEXT_LEFT,
                TITLE_BASELINE,
                self.font(opts, TITLE_SIZE, bold=True),
                opts.text_color,
                shadow=shadow,
            )
        surface.draw_text(
            opts.username,
            TEXT_LEFT,
            USERNAME_BASELINE,
            self.font(opts, USERNAME_SIZE, bold=True),
            opts.text_color,
            shadow=shadow,
        )
        message_font = self.font(opts, MESSAGE_SIZE)
        lines: List[str] = wrap_text(
            opts.rendered_message(),
            opts.width - MESSAGE_RIGHT_RESERVE,
            lambda text: surface.measure(text, message_font),
        )
        draw_lines(
            surface,
            lines,
            TEXT_LEFT,
            MESSAGE_TOP,
            MESSAGE_LINE_HEIGHT,
            message_font,
            opts.text_color,
            shadow=shadow,
        )
        return surface.image


async def generate_animated_welcome(options: object = None, **kwargs) -> bytes:
    return await AnimatedWelcomeComposer().render(options, **kwargs)
