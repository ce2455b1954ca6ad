import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BASE_DIR = Path(__file__).resolve().parent


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        self.CANVAS_SIZE: int = _as_int(os.getenv("COMPOSER_CANVAS_SIZE"), 1080)
        self.FONT_DIR: Path = Path(os.getenv("COMPOSER_FONT_DIR", str(BASE_DIR / "assets" / "fonts")))
        self.ANALYSIS_MAX_DIM: int = _as_int(os.getenv("COMPOSER_ANALYSIS_MAX_DIM"), 100)
        self.DEBUG_LAYERS: bool = _as_bool(os.getenv("COMPOSER_DEBUG_LAYERS"), False)
        self.DEBUG_DIR: Path = Path(os.getenv("COMPOSER_DEBUG_DIR", str(BASE_DIR / "debug")))


settings = Settings()
