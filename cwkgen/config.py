import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
ENV_PATH = Path(os.getenv("CWKGEN_ENV_PATH", Path.cwd() / ".env"))
load_dotenv(ENV_PATH, override=False)


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _parse_float(value: Optional[str], default: float) -> float:
    try:
        return float(str(value).strip().replace(",", "."))
    except (TypeError, ValueError):
        return default


def _parse_csv(value: Optional[str], default: List[str]) -> List[str]:
    if not value:
        return list(default)
    parts = [item.strip() for item in value.replace(";", ",").split(",")]
    return [item for item in parts if item]


def _resolve_optional_path(raw: Optional[str]) -> Optional[Path]:
    if not raw:
        return None
    path = Path(raw)
    if path.is_absolute() or (len(raw) >= 2 and raw[1] == ":"):
        return path
    return Path.cwd() / path


FETCH_TIMEOUT_SEC = max(0.1, _parse_float(os.getenv("CWKGEN_FETCH_TIMEOUT"), 5.0))
FETCH_ATTEMPTS = max(1, _parse_int(os.getenv("CWKGEN_FETCH_ATTEMPTS"), 2))
USER_AGENT = os.getenv("CWKGEN_USER_AGENT", "cwk-gen/1.0 (+https://github.com/Khanmanan/cwk-gen)").strip()

LOG_LEVEL = os.getenv("CWKGEN_LOG_LEVEL", "INFO").strip()
LOG_FILE = _resolve_optional_path(os.getenv("CWKGEN_LOG_FILE"))

GIF_MAX_FRAMES = max(1, _parse_int(os.getenv("CWKGEN_GIF_MAX_FRAMES"), 60))
GIF_FRAME_DELAY_MS = max(20, _parse_int(os.getenv("CWKGEN_GIF_FRAME_DELAY"), 80))
TEMP_DIR = _resolve_optional_path(os.getenv("CWKGEN_TEMP_DIR"))

FONT_PATH = os.getenv("CWKGEN_FONT_PATH", "").strip()
FONT_PATHS = os.getenv("CWKGEN_FONT_PATHS", "").strip()

DEFAULT_FONT_CANDIDATES = [
    BASE_DIR / "fonts" / "NotoSans-Regular.ttf",
    BASE_DIR / "fonts" / "DejaVuSans.ttf",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    Path("/usr/share/fonts/truetype/noto/NotoSans-Regular.ttf"),
    Path("/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf"),
    Path("/usr/share/fonts/truetype/freefont/FreeSans.ttf"),
    Path("/Library/Fonts/Arial.ttf"),
    Path("/System/Library/Fonts/Supplemental/Arial.ttf"),
    Path("C:/Windows/Fonts/segoeui.ttf"),
    Path("C:/Windows/Fonts/arial.ttf"),
]
DEFAULT_BOLD_FONT_CANDIDATES = [
    BASE_DIR / "fonts" / "NotoSans-Bold.ttf",
    BASE_DIR / "fonts" / "DejaVuSans-Bold.ttf",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    Path("/usr/share/fonts/truetype/noto/NotoSans-Bold.ttf"),
    Path("/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf"),
    Path("/usr/share/fonts/truetype/freefont/FreeSansBold.ttf"),
    Path("/Library/Fonts/Arial Bold.ttf"),
    Path("/System/Library/Fonts/Supplemental/Arial Bold.ttf"),
    Path("C:/Windows/Fonts/segoeuib.ttf"),
    Path("C:/Windows/Fonts/arialbd.ttf"),
]
DEFAULT_SERIF_FONT_CANDIDATES = [
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSerif.ttf"),
    Path("/usr/share/fonts/truetype/liberation/LiberationSerif-Regular.ttf"),
    Path("/usr/share/fonts/truetype/freefont/FreeSerif.ttf"),
    Path("/Library/Fonts/Times New Roman.ttf"),
    Path("C:/Windows/Fonts/times.ttf"),
]
DEFAULT_MONO_FONT_CANDIDATES = [
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf"),
    Path("/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf"),
    Path("/usr/share/fonts/truetype/freefont/FreeMono.ttf"),
    Path("/Library/Fonts/Courier New.ttf"),
    Path("C:/Windows/Fonts/consola.ttf"),
]


def _candidate_list(env_name: str, default: List[Path]) -> List[Path]:
    raw = os.getenv(env_name)
    if not raw:
        return default
    return [Path(item) for item in _parse_csv(raw, [])]


FONT_CANDIDATES = _candidate_list("CWKGEN_FONT_CANDIDATES", DEFAULT_FONT_CANDIDATES)
BOLD_FONT_CANDIDATES = _candidate_list("CWKGEN_BOLD_FONT_CANDIDATES", DEFAULT_BOLD_FONT_CANDIDATES)
SERIF_FONT_CANDIDATES = _candidate_list("CWKGEN_SERIF_FONT_CANDIDATES", DEFAULT_SERIF_FONT_CANDIDATES)
MONO_FONT_CANDIDATES = _candidate_list("CWKGEN_MONO_FONT_CANDIDATES", DEFAULT_MONO_FONT_CANDIDATES)

__all__ = [
    "BASE_DIR",
    "ENV_PATH",
    "FETCH_TIMEOUT_SEC",
    "FETCH_ATTEMPTS",
    "USER_AGENT",
    "LOG_LEVEL",
    "LOG_FILE",
    "GIF_MAX_FRAMES",
    "GIF_FRAME_DELAY_MS",
    "TEMP_DIR",
    "FONT_PATH",
    "FONT_PATHS",
    "FONT_CANDIDATES",
    "BOLD_FONT_CANDIDATES",
    "SERIF_FONT_CANDIDATES",
    "MONO_FONT_CANDIDATES",
]
