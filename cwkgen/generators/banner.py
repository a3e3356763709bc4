from __future__ import annotations

from cwkgen.composer import Composer
from cwkgen.options import BannerOptions
from cwkgen.surface import Surface
from cwkgen.text import draw_centered

OVERLAY_COLOR = "rgba(0, 0, 0, 0.5)"
NAME_SIZE = 60
MEMBERS_SIZE = 30


def members_label(count: int) -> str:
    return f"{count:,} Members"


class BannerComposer(Composer[BannerOptions]):
    options_type = BannerOptions

    async def compose(self, opts: BannerOptions) -> bytes:
        background = opts.background_config()
        (backdrop,) = await self.load_all([background.image])

        width, height = opts.width, opts.height
        surface = Surface(width, height)
        self.paint_background(
            surface, background, backdrop, subject=opts.subject, card=opts.card_name
        )
        surface.fill(OVERLAY_COLOR)

        shadow = self.text_shadow(opts, blur=10, offset_x=5, offset_y=5)
        draw_centered(
            surface,
            opts.server_name,
            width / 2,
            height / 2 - 30,
            self.font(opts, NAME_SIZE, bold=True),
            opts.text_color,
            shadow=shadow,
        )
        draw_centered(
            surface,
            members_label(opts.member_count),
            width / 2,
            height / 2 + 40,
            self.font(opts, MEMBERS_SIZE),
            opts.text_color,
            shadow=shadow,
        )
        return self.serialize(surface, opts)


async def generate_server_banner(options: object = None, **kwargs) -> bytes:
    return await BannerComposer().render(options, **kwargs)
