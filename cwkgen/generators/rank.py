from __future__ import annotations

import math

from cwkgen.composer import Composer
from cwkgen.options import RankOptions
from cwkgen.surface import Surface
from cwkgen.text import NO_SHADOW, draw_centered

AVATAR_LEFT = 30
TEXT_GAP = 20
BAR_HEIGHT = 20
BAR_BOTTOM_OFFSET = 50
BAR_RIGHT_MARGIN = 30
BAR_TRACK_COLOR = "rgba(0, 0, 0, 0.5)"
BAR_OUTLINE_WIDTH = 2
STATS_RIGHT_OFFSET = 150


def progress_ratio(xp: float, required_xp: float) -> float:
    if required_xp <= 0:
        raise ValueError("required_xp must be positive")
    return max(0.0, min(1.0, xp / required_xp))


def progress_fill_width(bar_width: float, xp: float, required_xp: float) -> float:
    return bar_width * progress_ratio(xp, required_xp)


def progress_label(xp: float, required_xp: float) -> str:
    # Half-up rounding, so 62.5 reads as 63.
    percent = math.floor(progress_ratio(xp, required_xp) * 100 + 0.5)
    return f"{percent}%"


def format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class RankComposer(Composer[RankOptions]):
    options_type = RankOptions

    async def compose(self, opts: RankOptions) -> bytes:
        background = opts.background_config()
        avatar, backdrop = await self.load_all([opts.avatar_url, background.image])

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
            y=(height - size) / 2,
            size=size,
            border_width=opts.border_width,
            border_color=opts.avatar_border_color,
            subject=opts.subject,
        )

        shadow = self.text_shadow(opts)
        text_x = AVATAR_LEFT + size + TEXT_GAP
        stats_x = width - STATS_RIGHT_OFFSET
        surface.draw_text(
            opts.username, text_x, 50, self.font(opts, 25, bold=True), opts.text_color, shadow=shadow
        )
        surface.draw_text(f"#{opts.rank}", text_x, 80, self.font(opts, 20), opts.text_color, shadow=shadow)
        surface.draw_text(
            f"Level: {opts.level}", stats_x, 50, self.font(opts, 20, bold=True), opts.text_color, shadow=shadow
        )
        surface.draw_text(
            f"{format_number(opts.xp)} / {format_number(opts.required_xp)} XP",
            stats_x,
            80,
            self.font(opts, 20),
            opts.text_color,
            shadow=shadow,
        )

        bar_x = text_x
        bar_y = height - BAR_BOTTOM_OFFSET
        bar_width = width - bar_x - BAR_RIGHT_MARGIN
        surface.fill_rect(bar_x, bar_y, bar_width, BAR_HEIGHT, BAR_TRACK_COLOR)
        surface.fill_rect(
            bar_x,
            bar_y,
            progress_fill_width(bar_width, opts.xp, opts.required_xp),
            BAR_HEIGHT,
            opts.progress_color,
        )
        surface.stroke_rect(
            bar_x, bar_y, bar_width, BAR_HEIGHT, opts.text_color, line_width=BAR_OUTLINE_WIDTH
        )
        draw_centered(
            surface,
            progress_label(opts.xp, opts.required_xp),
            bar_x + bar_width / 2,
            bar_y + BAR_HEIGHT / 2 + 6,
            self.font(opts, 16, bold=True),
            opts.text_color,
            shadow=NO_SHADOW,
        )
        return self.serialize(surface, opts)


async def generate_rank_card(options: object = None, **kwargs) -> bytes:
    return await RankComposer().render(options, **kwargs)
