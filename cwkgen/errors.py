from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    ASSET_LOAD = "asset_load"
    AVATAR = "avatar"
    ENCODING = "encoding"
    RENDER = "render"


RECOVERABLE_KINDS = frozenset({ErrorKind.ASSET_LOAD})


class CardError(Exception):
    kind = ErrorKind.RENDER

    def __init__(self, message: str, *, subject: Optional[str] = None) -> None:
        super().__init__(message)
        self.subject = subject

    @property
    def recoverable(self) -> bool:
        return self.kind in RECOVERABLE_KINDS


class ValidationError(CardError, ValueError):
    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class AssetLoadError(CardError):
    kind = ErrorKind.ASSET_LOAD

    def __init__(self, message: str, *, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class AvatarProcessingError(CardError):
    kind = ErrorKind.AVATAR


class EncodingError(CardError):
    kind = ErrorKind.ENCODING


class RenderError(CardError):
    kind = ErrorKind.RENDER


def describe_source(source: object) -> str:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return f"<{len(source)} bytes>"
    text = str(source)
    if len(text) > 120:
        return text[:117] + "..."
    return text
