from __future__ import annotations

from contextlib import ExitStack
from io import BytesIO
from pathlib import Path
from typing import List

from PIL import Image

from cwkgen.config import GIF_FRAME_DELAY_MS
from cwkgen.errors import EncodingError

MIN_GIF_BYTES = 100


class GifEncoder:
    """Spools frames as PNG files under ``workdir`` and writes one looping GIF.

    Nothing is encoded until ``finish``; the caller owns ``workdir`` and its
    cleanup.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        workdir: Path,
        delay: int = GIF_FRAME_DELAY_MS,
        loop: int = 0,
    ) -> None:
        self.size = (int(width), int(height))
        self.workdir = Path(workdir)
        self.delay = int(delay)
        self.loop = loop
        self._paths: List[Path] = []
        self._finished = False

    @property
    def frame_count(self) -> int:
        return len(self._paths)

    def add_frame(self, frame: Image.Image) -> None:
        if self._finished:
            raise EncodingError("Cannot add frames after finish()")
        if frame.size != self.size:
            raise EncodingError(f"Frame size {frame.size} does not match encoder size {self.size}")
        path = self.workdir / f"frame_{len(self._paths):04d}.png"
        try:
            frame.save(path, format="PNG")
        except OSError as exc:
            raise EncodingError(f"Failed to spool frame {len(self._paths)}: {exc}") from exc
        self._paths.append(path)

    def finish(self) -> bytes:
        if self._finished:
            raise EncodingError("finish() already called")
        self._finished = True
        if not self._paths:
            raise EncodingError("No frames were added")
        output = BytesIO()
        try:
            with ExitStack() as stack:
                frames = [stack.enter_context(Image.open(path)).convert("RGB") for path in self._paths]
                frames[0].save(
                    output,
                    format="GIF",
                    save_all=True,
                    append_images=frames[1:],
                    loop=self.loop,
                    duration=self.delay,
                    disposal=2,
                    optimize=False,
                )
        except (OSError, ValueError) as exc:
            raise EncodingError(f"GIF encoding failed: {exc}") from exc
        data = output.getvalue()
        if len(data) < MIN_GIF_BYTES:
            raise EncodingError(f"Generated GIF is too small ({len(data)} bytes)")
        return data
