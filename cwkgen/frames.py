from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence

from PIL import Image, ImageSequence, UnidentifiedImageError

from cwkgen.config import GIF_FRAME_DELAY_MS, GIF_MAX_FRAMES, TEMP_DIR
from cwkgen.errors import AssetLoadError

_frames_logger = logging.getLogger("cwkgen.animated")


class FrameSource:
    """Decodes an image or video payload into RGBA frames."""

    def frames_of(self, data: bytes, *, limit: int = GIF_MAX_FRAMES) -> List[Image.Image]:
        raise NotImplementedError


class PillowFrameSource(FrameSource):
    """GIF, APNG, animated WebP and still images via ``ImageSequence``."""

    def frames_of(self, data: bytes, *, limit: int = GIF_MAX_FRAMES) -> List[Image.Image]:
        frames: List[Image.Image] = []
        try:
            with Image.open(BytesIO(data)) as image:
                for frame in ImageSequence.Iterator(image):
                    frames.append(frame.convert("RGBA"))
                    if len(frames) >= limit:
                        break
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError, EOFError) as exc:
            raise AssetLoadError(f"Background frames could not be decoded: {exc}") from exc
        if not frames:
            raise AssetLoadError("Background contains no frames")
        return frames


class FfmpegFrameSource(FrameSource):
    """Video backgrounds (mp4, webm) sampled to PNG frames by ``ffmpeg``."""

    def __init__(
        self,
        ffmpeg: Optional[str] = None,
        *,
        fps: float = 1000 / GIF_FRAME_DELAY_MS,
        temp_dir: Optional[Path] = TEMP_DIR,
    ) -> None:
        self.ffmpeg = ffmpeg
        self.fps = fps
        self.temp_dir = temp_dir

    def frames_of(self, data: bytes, *, limit: int = GIF_MAX_FRAMES) -> List[Image.Image]:
        ffmpeg = self.ffmpeg or shutil.which("ffmpeg")
        if not ffmpeg:
            raise AssetLoadError("ffmpeg binary not found; cannot decode video background")
        with tempfile.TemporaryDirectory(prefix="cwkgen-video-", dir=self.temp_dir) as tmp_dir:
            tmp_dir_path = Path(tmp_dir)
            source_path = tmp_dir_path / "source"
            source_path.write_bytes(data)
            try:
                subprocess.run(
                    [
                        ffmpeg,
                        "-y",
                        "-i",
                        str(source_path),
                        "-vf",
                        f"fps={self.fps:g}",
                        "-frames:v",
                        str(limit),
                        str(tmp_dir_path / "frame_%04d.png"),
                    ],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    check=True,
                )
            except (subprocess.CalledProcessError, OSError) as exc:
                raise AssetLoadError(f"ffmpeg failed to decode background: {exc}") from exc
            frames = []
            for path in sorted(tmp_dir_path.glob("frame_*.png")):
                with Image.open(path) as frame:
                    frames.append(frame.convert("RGBA"))
        if not frames:
            raise AssetLoadError("ffmpeg produced no frames")
        return frames


class ChainFrameSource(FrameSource):
    """Tries each source in turn; the last failure propagates."""

    def __init__(self, sources: Sequence[FrameSource]) -> None:
        if not sources:
            raise ValueError("ChainFrameSource needs at least one source")
        self.sources = list(sources)

    def frames_of(self, data: bytes, *, limit: int = GIF_MAX_FRAMES) -> List[Image.Image]:
        last_error: Optional[AssetLoadError] = None
        for source in self.sources:
            try:
                return source.frames_of(data, limit=limit)
            except AssetLoadError as exc:
                _frames_logger.debug("%s could not decode background: %s", type(source).__name__, exc)
                last_error = exc
        assert last_error is not None
        raise last_error


def default_frame_source() -> FrameSource:
    return ChainFrameSource([PillowFrameSource(), FfmpegFrameSource()])
