from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from io import BytesIO
from pathlib import Path
from typing import AsyncIterator, Optional, Union

import aiohttp
from PIL import Image, UnidentifiedImageError

from cwkgen.config import FETCH_ATTEMPTS, FETCH_TIMEOUT_SEC, USER_AGENT
from cwkgen.errors import AssetLoadError, describe_source

ImageSource = Union[str, Path, bytes, bytearray, memoryview]

_assets_logger = logging.getLogger("cwkgen.assets")

_DECODE_ERRORS = (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError)


def is_remote(source: object) -> bool:
    return isinstance(source, str) and source.strip().lower().startswith(("http://", "https://"))


def validate_image_bytes(data: bytes, *, source: object = None) -> bytes:
    if not data:
        raise AssetLoadError(
            f"Empty image data from {describe_source(source)}", source=describe_source(source)
        )
    try:
        with Image.open(BytesIO(data)) as image:
            image.verify()
    except _DECODE_ERRORS as exc:
        raise AssetLoadError(
            f"Not a recognizable image: {describe_source(source)} ({exc})",
            source=describe_source(source),
        ) from exc
    return data


def open_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except _DECODE_ERRORS as exc:
        raise AssetLoadError(f"Image decode failed: {exc}") from exc
    return image


class AssetLoader:
    """Resolves URLs, local paths and raw buffers into image bytes.

    Remote sources are fetched with aiohttp under a total timeout and retried
    on transport errors or undecodable payloads. ``load`` always validates the
    result with an attempted Pillow decode; ``fetch`` skips that step for
    callers that decode the bytes themselves.

    The loader holds no per-render state: a render opens ``session()`` and
    passes the yielded ``ClientSession`` to each ``load``/``fetch`` call. A
    ``session`` given to the constructor is owned by the caller
    and is never closed here.
    """

    def __init__(
        self,
        *,
        timeout: float = FETCH_TIMEOUT_SEC,
        attempts: int = FETCH_ATTEMPTS,
        session: Optional[aiohttp.ClientSession] = None,
        user_agent: str = USER_AGENT,
    ) -> None:
        self.timeout = max(0.1, float(timeout))
        self.attempts = max(1, int(attempts))
        self.user_agent = user_agent
        self._shared_session = session

    async def load(self, source: ImageSource, *, session: Optional[aiohttp.ClientSession] = None) -> bytes:
        if is_remote(source):
            return await self._fetch_remote(str(source).strip(), validate=True, session=session)
        data = await self._read_local(source)
        return validate_image_bytes(data, source=source)

    async def fetch(self, source: ImageSource, *, session: Optional[aiohttp.ClientSession] = None) -> bytes:
        if is_remote(source):
            return await self._fetch_remote(str(source).strip(), validate=False, session=session)
        return await self._read_local(source)

    @asynccontextmanager
    async def session(self, *sources: object) -> AsyncIterator[Optional[aiohttp.ClientSession]]:
        # One ClientSession for the concurrent loads of a single render call.
        if self._shared_session is not None:
            yield self._shared_session
            return
        if sources and not any(is_remote(s) for s in sources):
            yield None
            return
        async with aiohttp.ClientSession(headers={"User-Agent": self.user_agent}) as session:
            yield session

    @asynccontextmanager
    async def _session_scope(
        self, session: Optional[aiohttp.ClientSession]
    ) -> AsyncIterator[aiohttp.ClientSession]:
        if session is not None:
            yield session
            return
        async with self.session() as scoped:
            yield scoped  # type: ignore[misc]

    async def _read_local(self, source: ImageSource) -> bytes:
        if isinstance(source, (bytes, bytearray, memoryview)):
            return bytes(source)
        if not isinstance(source, (str, Path)):
            raise AssetLoadError(
                f"Invalid image source type: {type(source).__name__}",
                source=describe_source(source),
            )
        path = Path(source)
        if not str(source).strip() or not path.is_file():
            raise AssetLoadError(f"Image file not found: {path}", source=str(path))
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise AssetLoadError(f"Image file unreadable: {path} ({exc})", source=str(path)) from exc

    async def _fetch_remote(
        self, url: str, *, validate: bool, session: Optional[aiohttp.ClientSession] = None
    ) -> bytes:
        last_error: Optional[BaseException] = None
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with self._session_scope(session) as http:
            for attempt in range(1, self.attempts + 1):
                try:
                    async with http.get(url, timeout=timeout) as resp:
                        if resp.status != 200:
                            raise AssetLoadError(
                                f"Fetch failed with HTTP {resp.status}: {describe_source(url)}",
                                source=url,
                            )
                        data = await resp.read()
                except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                    last_error = exc
                    _assets_logger.warning(
                        "Fetch attempt %s/%s failed url=%s error=%r",
                        attempt,
                        self.attempts,
                        describe_source(url),
                        exc,
                    )
                    continue
                if not validate:
                    return data
                try:
                    return validate_image_bytes(data, source=url)
                except AssetLoadError as exc:
                    last_error = exc
                    _assets_logger.warning(
                        "Fetched bytes failed validation attempt=%s/%s url=%s",
                        attempt,
                        self.attempts,
                        describe_source(url),
                    )
        if isinstance(last_error, asyncio.TimeoutError):
            message = f"Fetch timed out after {self.timeout:g}s: {describe_source(url)}"
        else:
            message = f"Fetch failed: {describe_source(url)} ({last_error})"
        raise AssetLoadError(message, source=url) from last_error
