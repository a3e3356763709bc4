from cwkgen.assets import AssetLoader
from cwkgen.errors import (
    AssetLoadError,
    AvatarProcessingError,
    CardError,
    EncodingError,
    ErrorKind,
    RenderError,
    ValidationError,
)
from cwkgen.fonts import FontRegistry, load_font, register_fonts
from cwkgen.generators import (
    AnimatedWelcomeComposer,
    BannerComposer,
    ProfileComposer,
    RankComposer,
    WelcomeComposer,
    generate_animated_welcome,
    generate_profile_card,
    generate_rank_card,
    generate_server_banner,
    generate_welcome_image,
)
from cwkgen.logging_setup import setup_logging
from cwkgen.masks import MaskCache, apply_circular_crop
from cwkgen.options import (
    AnimatedWelcomeOptions,
    BannerOptions,
    ProfileOptions,
    RankOptions,
    WelcomeOptions,
)
from cwkgen.text import wrap_text

__version__ = "1.0.0"

__all__ = [
    "AnimatedWelcomeComposer",
    "AnimatedWelcomeOptions",
    "AssetLoadError",
    "AssetLoader",
    "AvatarProcessingError",
    "BannerComposer",
    "BannerOptions",
    "CardError",
    "EncodingError",
    "ErrorKind",
    "FontRegistry",
    "MaskCache",
    "ProfileComposer",
    "ProfileOptions",
    "RankComposer",
    "RankOptions",
    "RenderError",
    "ValidationError",
    "WelcomeComposer",
    "WelcomeOptions",
    "apply_circular_crop",
    "generate_animated_welcome",
    "generate_profile_card",
    "generate_rank_card",
    "generate_server_banner",
    "generate_welcome_image",
    "load_font",
    "register_fonts",
    "setup_logging",
    "wrap_text",
]
