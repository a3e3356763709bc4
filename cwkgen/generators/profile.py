from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from PIL import Image

from cwkgen.assets import open_image
from cwkgen.composer import Composer, StageResult
from cwkgen.errors import AssetLoadError
from cwkgen.options import Badge, ProfileOptions, Stat
from cwkgen.surface import Surface, cover_fit
from cwkgen.text import NO_SHADOW, draw_centered, draw_lines, wrap_text

_render_logger = logging.getLogger("cwkgen.render")

AVATAR_LEFT = 30
AVATAR_TOP = 30
TEXT_GAP = 20
RIGHT_MARGIN = 30

BIO_SIZE = 18
BIO_TOP = 100
BIO_LINE_HEIGHT = 25

STAT_PANEL_HEIGHT = 80
STAT_PANEL_BOTTOM = 30
STAT_PANEL_RADIUS = 10
STAT_PANEL_COLOR = "rgba(0, 0, 0, 0.3)"
MAX_STAT_COLUMNS = 5

BADGES_PER_ROW = 5
BADGE_SPACING = 10
BADGE_TOP = 150
BADGE_TOP_WITHOUT_BIO = 100
BADGE_BACKDROP = "rgba(255, 255, 255, 0.2)"
BADGE_PLACEHOLDER = "#808080"
BADGE_PLACEHOLDER_STROKE = "#FFFFFF"
BADGE_LABEL_SIZE = 12
BADGE_LABEL_HEIGHT = 16


def badge_origin(index: int, start_x: float, start_y: float, badge_size: int) -> Tuple[float, float]:
    row, col = divmod(index, BADGES_PER_ROW)
    x = start_x + col * (badge_size + BADGE_SPACING)
    y = start_y + row * (badge_size + BADGE_SPACING + BADGE_LABEL_HEIGHT)
    return x, y


def stat_columns(stats: Sequence[Stat], panel_width: float) -> List[Tuple[Stat, float, float]]:
    shown = list(stats[:MAX_STAT_COLUMNS])
    if not shown:
        return []
    column = panel_width / len(shown)
    return [(stat, idx * column, column) for idx, stat in enumerate(shown)]


class ProfileComposer(Composer[ProfileOptions]):
    options_type = ProfileOptions

    async def compose(self, opts: ProfileOptions) -> bytes:
        background = opts.background_config()
        badges: List[Badge] = list(opts.badges)
        fetched = await self.load_all(
            [opts.avatar_url, background.image] + [badge.icon for badge in badges]
        )
        avatar, backdrop, icons = fetched[0], fetched[1], fetched[2:]

        width, height = opts.width, opts.height
        surface = Surface(width, height)
        self.paint_background(
            surface, background, backdrop, subject=opts.subject, card=opts.card_name
        )

        size = opts.avatar_size
        self.paint_avatar(
            surface,
            avatar,
            x=AVATAR_LEFT,
            y=AVATAR_TOP,
            size=size,
            border_width=opts.border_width,
            border_color=opts.avatar_border_color,
            subject=opts.subject,
        )

        text_x = AVATAR_LEFT + size + TEXT_GAP
        surface.draw_text(
            opts.username,
            text_x,
            60,
            self.font(opts, 30, bold=True),
            opts.text_color,
            shadow=self.text_shadow(opts),
        )

        if opts.bio:
            bio_font = self.font(opts, BIO_SIZE)
            lines = wrap_text(
                opts.bio,
                width - text_x - RIGHT_MARGIN,
                lambda text: surface.measure(text, bio_font),
            )
            draw_lines(
                surface, lines, text_x, BIO_TOP, BIO_LINE_HEIGHT, bio_font, opts.text_color, shadow=NO_SHADOW
            )

        if opts.stats:
            self._paint_stats(surface, opts)
        if badges:
            start_y = BADGE_TOP if opts.bio else BADGE_TOP_WITHOUT_BIO
            self._paint_badges(surface, opts, badges, icons, text_x, start_y)
        return self.serialize(surface, opts)

    def _paint_stats(self, surface: Surface, opts: ProfileOptions) -> None:
        if len(opts.stats) > MAX_STAT_COLUMNS:
            _render_logger.info(
                "%s for %s: showing %s of %s stats",
                opts.card_name,
                opts.subject,
                MAX_STAT_COLUMNS,
                len(opts.stats),
            )
        panel_x = AVATAR_LEFT
        panel_y = opts.height - STAT_PANEL_HEIGHT - STAT_PANEL_BOTTOM
        panel_width = opts.width - 2 * AVATAR_LEFT
        surface.fill_rect(
            panel_x, panel_y, panel_width, STAT_PANEL_HEIGHT, STAT_PANEL_COLOR, radius=STAT_PANEL_RADIUS
        )
        shadow = self.text_shadow(opts)
        name_font = self.font(opts, 16, bold=True)
        value_font = self.font(opts, 20)
        for stat, offset, column in stat_columns(opts.stats, panel_width):
            center_x = panel_x + offset + column / 2
            draw_centered(surface, stat.name, center_x, panel_y + 30, name_font, opts.text_color, shadow=shadow)
            draw_centered(surface, stat.value, center_x, panel_y + 60, value_font, opts.text_color, shadow=shadow)

    def _badge_icon(self, opts: ProfileOptions, fetched: StageResult[bytes]) -> StageResult[Image.Image]:
        if not fetched.ok:
            return StageResult(error=fetched.error)
        if fetched.value is None:
            return StageResult()
        try:
            icon = cover_fit(open_image(fetched.value), (opts.badge_size, opts.badge_size))
        except AssetLoadError as exc:
            return StageResult(error=exc)
        except (OSError, ValueError) as exc:
            return StageResult(error=AssetLoadError(f"Badge icon processing failed: {exc}"))
        return StageResult(value=icon)

    def _paint_badges(
        self,
        surface: Surface,
        opts: ProfileOptions,
        badges: Sequence[Badge],
        icons: Sequence[StageResult[bytes]],
        start_x: float,
        start_y: float,
    ) -> None:
        size = opts.badge_size
        label_font = self.font(opts, BADGE_LABEL_SIZE)
        for idx, (badge, fetched) in enumerate(zip(badges, icons)):
            x, y = badge_origin(idx, start_x, start_y, size)
            surface.fill_circle(x + size / 2, y + size / 2, size / 2, BADGE_BACKDROP)
            result = self._badge_icon(opts, fetched)
            icon: Optional[Image.Image] = result.fold(None)
            if icon is not None:
                surface.draw_image(icon, x, y)
            elif not result.ok:
                _render_logger.warning(
                    "%s for %s: badge '%s' icon unavailable, drawing placeholder: %s",
                    opts.card_name,
                    opts.subject,
                    badge.name,
                    result.error,
                )
                surface.fill_rect(x, y, size, size, BADGE_PLACEHOLDER)
                surface.stroke_rect(x, y, size, size, BADGE_PLACEHOLDER_STROKE, line_width=1)
            if badge.name:
                draw_centered(
                    surface,
                    badge.name,
                    x + size / 2,
                    y + size + BADGE_LABEL_SIZE,
                    label_font,
                    opts.text_color,
                    shadow=NO_SHADOW,
                )


async def generate_profile_card(options: object = None, **kwargs) -> bytes:
    return await ProfileComposer().render(options, **kwargs)
