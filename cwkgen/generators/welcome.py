from __future__ import annotations

from cwkgen.composer import Composer
from cwkgen.options import WelcomeOptions
from cwkgen.surface import ShadowSpec, Surface
from cwkgen.text import NO_SHADOW, draw_centered, draw_lines, wrap_text

AVATAR_TOP = 80
AVATAR_SHADOW = ShadowSpec(color="rgba(0, 0, 0, 0.3)", blur=15, offset_x=0, offset_y=5)

TITLE_SIZE = 42
USERNAME_SIZE = 36
MESSAGE_SIZE = 28
MESSAGE_LINE_HEIGHT = 34
MESSAGE_WIDTH_RATIO = 0.8


class WelcomeComposer(Composer[WelcomeOptions]):
    options_type = WelcomeOptions

    async def compose(self, opts: WelcomeOptions) -> bytes:
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
            x=(width - size) / 2,
            y=AVATAR_TOP,
            size=size,
            border_width=opts.border_width,
            border_color=opts.avatar_border_color,
            shadow=AVATAR_SHADOW if opts.shadow else NO_SHADOW,
            subject=opts.subject,
        )

        center_x = width / 2
        draw_centered(
            surface,
            opts.title,
            center_x,
            height - 120,
            self.font(opts, TITLE_SIZE, bold=True),
            opts.text_color,
            shadow=self.text_shadow(opts, color="rgba(0, 0, 0, 0.7)", blur=8, offset_x=0, offset_y=3),
        )
        draw_centered(
            surface,
            opts.username,
            center_x,
            height - 70,
            self.font(opts, USERNAME_SIZE, bold=True),
            opts.text_color,
            shadow=self.text_shadow(opts, color="rgba(0, 0, 0, 0.7)", blur=6, offset_x=0, offset_y=3),
        )

        message_font = self.font(opts, MESSAGE_SIZE)
        lines = wrap_text(
            opts.message,
            width * MESSAGE_WIDTH_RATIO,
            lambda text: surface.measure(text, message_font),
        )
        draw_lines(
            surface,
            lines,
            center_x,
            height - 180,
            MESSAGE_LINE_HEIGHT,
            message_font,
            opts.text_color,
            center=True,
            shadow=NO_SHADOW,
        )
        return self.serialize(surface, opts)


async def generate_welcome_image(options: object = None, **kwargs) -> bytes:
    return await WelcomeComposer().render(options, **kwargs)
