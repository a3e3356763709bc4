from cwkgen.generators.animated import AnimatedWelcomeComposer, generate_animated_welcome
from cwkgen.generators.banner import BannerComposer, generate_server_banner
from cwkgen.generators.profile import ProfileComposer, generate_profile_card
from cwkgen.generators.rank import RankComposer, generate_rank_card
from cwkgen.generators.welcome import WelcomeComposer, generate_welcome_image

__all__ = [
    "AnimatedWelcomeComposer",
    "BannerComposer",
    "ProfileComposer",
    "RankComposer",
    "WelcomeComposer",
    "generate_animated_welcome",
    "generate_profile_card",
    "generate_rank_card",
    "generate_server_banner",
    "generate_welcome_image",
]
