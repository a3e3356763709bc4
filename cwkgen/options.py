from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from cwkgen.config import GIF_FRAME_DELAY_MS
from cwkgen.errors import ValidationError
from cwkgen.surface import parse_color

T = TypeVar("T", bound="CardOptions")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

_ALIASES = {
    "avatar": "avatar_url",
    "overlay_opacity": "opacity",
    "overlay": "overlay_color",
    "required_x_p": "required_xp",
}

DEFAULT_OVERLAY = "rgba(0, 0, 0, 0.5)"


def snake_case(key: str) -> str:
    name = _CAMEL_BOUNDARY.sub("_", key.strip()).lower()
    return _ALIASES.get(name, name)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def require_text(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(name, "must be a non-empty string")
    return value


def optional_text(value: object, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(name, "must be a string")
    return value


def require_source(value: object, name: str) -> object:
    if isinstance(value, (bytes, bytearray, memoryview)):
        if not len(value):
            raise ValidationError(name, "must not be an empty buffer")
        return bytes(value)
    if isinstance(value, Path):
        return value
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise ValidationError(name, "must be a non-empty URL, path or byte buffer")


def require_number(
    value: object,
    name: str,
    *,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    exclusive_minimum: bool = False,
) -> float:
    if not _is_number(value):
        raise ValidationError(name, "must be a number")
    if minimum is not None:
        if exclusive_minimum and value <= minimum:
            raise ValidationError(name, f"must be greater than {minimum:g}")
        if not exclusive_minimum and value < minimum:
            raise ValidationError(name, f"must be at least {minimum:g}")
    if maximum is not None and value > maximum:
        raise ValidationError(name, f"must be at most {maximum:g}")
    return value  # type: ignore[return-value]


def require_int(value: object, name: str, *, minimum: int = 0) -> int:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(name, "must be an integer")
    if value < minimum:
        raise ValidationError(name, f"must be at least {minimum}")
    return value


def require_color(value: object, name: str) -> str:
    try:
        parse_color(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError(name, f"is not a valid color ({value!r})") from exc
    return value  # type: ignore[return-value]


def require_bool(value: object, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(name, "must be true or false")
    return value


@dataclass(frozen=True)
class BackgroundConfig:
    image: Optional[object] = None
    color: str = "#7289DA"
    blur: float = 0
    opacity: float = 1.0
    overlay_color: Optional[str] = None

    @classmethod
    def from_option(
        cls,
        value: object,
        *,
        color: str,
        defaults: Optional[Mapping[str, Any]] = None,
        name: str = "background",
    ) -> "BackgroundConfig":
        layered: Dict[str, Any] = {"color": color}
        layered.update(defaults or {})
        if isinstance(value, BackgroundConfig):
            value.validate(name)
            return value
        if isinstance(value, Mapping):
            for key, item in value.items():
                key_name = snake_case(str(key))
                if key_name not in {"image", "color", "blur", "opacity", "overlay_color"}:
                    raise ValidationError(f"{name}.{key_name}", "unknown background option")
                if item is not None:
                    layered[key_name] = item
        elif value is not None:
            layered["image"] = value
        config = cls(**layered)
        config.validate(name)
        return config

    def validate(self, name: str = "background") -> None:
        if self.image is not None:
            require_source(self.image, f"{name}.image")
        require_color(self.color, f"{name}.color")
        require_number(self.blur, f"{name}.blur", minimum=0)
        require_number(self.opacity, f"{name}.opacity", minimum=0, maximum=1)
        if self.overlay_color is not None:
            require_color(self.overlay_color, f"{name}.overlay_color")


@dataclass(frozen=True)
class Stat:
    name: str
    value: str

    @classmethod
    def coerce(cls, item: object, index: int) -> "Stat":
        if isinstance(item, Stat):
            return item
        if not isinstance(item, Mapping):
            raise ValidationError(f"stats[{index}]", "must be a mapping with name and value")
        name = optional_text(item.get("name"), f"stats[{index}].name")
        value = item.get("value", "")
        if value is None:
            value = ""
        return cls(name=name, value=str(value))


@dataclass(frozen=True)
class Badge:
    name: str
    icon: Optional[object] = None

    @classmethod
    def coerce(cls, item: object, index: int) -> "Badge":
        if isinstance(item, Badge):
            return item
        if not isinstance(item, Mapping):
            raise ValidationError(f"badges[{index}]", "must be a mapping with name and icon")
        name = optional_text(item.get("name"), f"badges[{index}].name")
        icon = item.get("icon")
        if icon is not None:
            icon = require_source(icon, f"badges[{index}].icon")
        return cls(name=name, icon=icon)


@dataclass
class CardOptions:
    background: Optional[object] = None
    color: str = "#7289DA"
    text_color: str = "#FFFFFF"
    font: str = "sans-serif"
    shadow: bool = True

    card_name = "card"
    background_defaults: Mapping[str, Any] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    @classmethod
    def coerce(cls: Type[T], options: object = None, overrides: Optional[Mapping[str, Any]] = None) -> T:
        if isinstance(options, cls):
            data: Dict[str, Any] = {
                f.name: getattr(options, f.name) for f in dataclasses.fields(cls) if f.init
            }
        elif options is None:
            data = {}
        elif isinstance(options, Mapping):
            data = dict(options)
        else:
            raise ValidationError("options", f"must be a mapping or {cls.__name__}")
        data.update(overrides or {})
        known = {f.name for f in dataclasses.fields(cls) if f.init}
        normalized: Dict[str, Any] = {}
        for key, value in data.items():
            name = snake_case(str(key))
            if name not in known:
                raise ValidationError(name, "unknown option")
            normalized[name] = value
        return cls(**normalized)

    @property
    def subject(self) -> str:
        raise NotImplementedError

    def validate(self) -> None:
        require_color(self.color, "color")
        require_color(self.text_color, "text_color")
        require_text(self.font, "font")
        require_bool(self.shadow, "shadow")
        self.background_config()

    def background_config(self) -> BackgroundConfig:
        return BackgroundConfig.from_option(
            self.background, color=self.color, defaults=self.background_defaults
        )


def _canvas(options: CardOptions) -> None:
    options.width = require_int(options.width, "width", minimum=1)  # type: ignore[attr-defined]
    options.height = require_int(options.height, "height", minimum=1)  # type: ignore[attr-defined]


@dataclass
class WelcomeOptions(CardOptions):
    username: str = ""
    avatar_url: Optional[object] = None
    title: str = "WELCOME"
    message: str = "Welcome to the server!"
    width: int = 1200
    height: int = 400
    avatar_size: int = 200
    avatar_border_color: str = "#FFFFFF"
    border_width: int = 8

    card_name = "welcome image"
    background_defaults: Mapping[str, Any] = field(
        default_factory=lambda: {"opacity": 0.85, "overlay_color": DEFAULT_OVERLAY},
        init=False,
        repr=False,
        compare=False,
    )

    @property
    def subject(self) -> str:
        return self.username

    def validate(self) -> None:
        require_text(self.username, "username")
        require_source(self.avatar_url, "avatar_url")
        self.title = optional_text(self.title, "title")
        self.message = optional_text(self.message, "message")
        _canvas(self)
        self.avatar_size = require_int(self.avatar_size, "avatar_size", minimum=1)
        self.border_width = require_int(self.border_width, "border_width", minimum=0)
        require_color(self.avatar_border_color, "avatar_border_color")
        super().validate()


@dataclass
class RankOptions(CardOptions):
    username: str = ""
    avatar_url: Optional[object] = None
    level: Optional[int] = None
    xp: Optional[float] = None
    required_xp: Optional[float] = None
    rank: Optional[int] = None
    progress_color: str = "#FFFFFF"
    width: int = 800
    height: int = 200
    avatar_size: int = 100
    avatar_border_color: str = "#FFFFFF"
    border_width: int = 3

    card_name = "rank card"
    background_defaults: Mapping[str, Any] = field(
        default_factory=lambda: {"opacity": 0.7, "overlay_color": DEFAULT_OVERLAY},
        init=False,
        repr=False,
        compare=False,
    )

    @property
    def subject(self) -> str:
        return self.username

    def validate(self) -> None:
        require_text(self.username, "username")
        require_source(self.avatar_url, "avatar_url")
        self.level = require_int(self.level, "level", minimum=0)
        require_number(self.xp, "xp", minimum=0)
        require_number(self.required_xp, "required_xp", minimum=0, exclusive_minimum=True)
        self.rank = require_int(self.rank, "rank", minimum=0)
        require_color(self.progress_color, "progress_color")
        _canvas(self)
        self.avatar_size = require_int(self.avatar_size, "avatar_size", minimum=1)
        self.border_width = require_int(self.border_width, "border_width", minimum=0)
        require_color(self.avatar_border_color, "avatar_border_color")
        super().validate()


@dataclass
class ProfileOptions(CardOptions):
    username: str = ""
    avatar_url: Optional[object] = None
    bio: str = ""
    stats: List[Any] = field(default_factory=list)
    badges: List[Any] = field(default_factory=list)
    width: int = 600
    height: int = 400
    avatar_size: int = 150
    badge_size: int = 40
    avatar_border_color: str = "#FFFFFF"
    border_width: int = 5

    card_name = "profile card"
    background_defaults: Mapping[str, Any] = field(
        default_factory=lambda: {"opacity": 0.7, "overlay_color": DEFAULT_OVERLAY},
        init=False,
        repr=False,
        compare=False,
    )

    @property
    def subject(self) -> str:
        return self.username

    def validate(self) -> None:
        require_text(self.username, "username")
        require_source(self.avatar_url, "avatar_url")
        self.bio = optional_text(self.bio, "bio")
        if not isinstance(self.stats, (list, tuple)):
            raise ValidationError("stats", "must be a list")
        if not isinstance(self.badges, (list, tuple)):
            raise ValidationError("badges", "must be a list")
        self.stats = [Stat.coerce(item, idx) for idx, item in enumerate(self.stats)]
        self.badges = [Badge.coerce(item, idx) for idx, item in enumerate(self.badges)]
        _canvas(self)
        self.avatar_size = require_int(self.avatar_size, "avatar_size", minimum=1)
        self.badge_size = require_int(self.badge_size, "badge_size", minimum=1)
        self.border_width = require_int(self.border_width, "border_width", minimum=0)
        require_color(self.avatar_border_color, "avatar_border_color")
        super().validate()


@dataclass
class BannerOptions(CardOptions):
    server_name: str = ""
    member_count: Optional[int] = None
    width: int = 800
    height: int = 300

    card_name = "server banner"
    background_defaults: Mapping[str, Any] = field(
        default_factory=lambda: {"opacity": 1.0},
        init=False,
        repr=False,
        compare=False,
    )

    @property
    def subject(self) -> str:
        return self.server_name

    def validate(self) -> None:
        require_text(self.server_name, "server_name")
        self.member_count = require_int(self.member_count, "member_count", minimum=0)
        _canvas(self)
        super().validate()


@dataclass
class AnimatedWelcomeOptions(CardOptions):
    username: str = ""
    avatar_url: Optional[object] = None
    server_name: str = ""
    title: str = "WELCOME"
    message: str = "Welcome {user} to {server}!"
    width: int = 700
    height: int = 250
    avatar_size: int = 100
    frames: Optional[int] = None
    delay: int = GIF_FRAME_DELAY_MS

    card_name = "animated welcome"
    background_defaults: Mapping[str, Any] = field(
        default_factory=lambda: {"opacity": 1.0, "overlay_color": "rgba(0, 0, 0, 0.4)"},
        init=False,
        repr=False,
        compare=False,
    )

    @property
    def subject(self) -> str:
        return self.username

    def validate(self) -> None:
        require_text(self.username, "username")
        require_source(self.avatar_url, "avatar_url")
        self.server_name = optional_text(self.server_name, "server_name")
        self.title = optional_text(self.title, "title")
        self.message = optional_text(self.message, "message")
        _canvas(self)
        self.avatar_size = require_int(self.avatar_size, "avatar_size", minimum=1)
        if self.frames is not None:
            self.frames = require_int(self.frames, "frames", minimum=1)
        self.delay = require_int(self.delay, "delay", minimum=1)
        super().validate()

    def rendered_message(self) -> str:
        return self.message.replace("{user}", self.username).replace("{server}", self.server_name)
