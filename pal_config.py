"""Run configuration, environment settings and logging setup."""

from dataclasses import dataclass
from enum import IntEnum
from functools import lru_cache
from pathlib import Path
import logging
import os


# =============================================================================
# Constants
# =============================================================================

MAX_ACCENTS = 16
MIN_SATURATION = 0.0
MAX_SATURATION = 5.0
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class ConfigOutOfRange(ValueError):
    """A configuration value lies outside its documented bounds."""


class Method(IntEnum):
    AREA_AVERAGE = 0
    KMEANS = 1


class Format(IntEnum):
    RGB = 0
    HEX = 1


# =============================================================================
# Per-run configuration
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Palette options for one run.

    accent_count, saturation, method and format affect the palette and are
    part of the cache key. show_bg_fg and silent only affect printing.
    """
    accent_count: int = MAX_ACCENTS
    saturation: float = 1.0
    method: Method = Method.KMEANS
    format: Format = Format.HEX
    show_bg_fg: bool = True
    silent: bool = False

    def __post_init__(self):
        if not 1 <= self.accent_count <= MAX_ACCENTS:
            raise ConfigOutOfRange(
                f"Accent count {self.accent_count} outside 1..{MAX_ACCENTS}"
            )
        if not MIN_SATURATION <= self.saturation <= MAX_SATURATION:
            raise ConfigOutOfRange(
                f"Saturation {self.saturation} outside {MIN_SATURATION}..{MAX_SATURATION}"
            )
        try:
            object.__setattr__(self, 'method', Method(self.method))
        except ValueError:
            raise ConfigOutOfRange(f"Unknown method {self.method!r} (0 - Area Average, 1 - K-Means)") from None
        try:
            object.__setattr__(self, 'format', Format(self.format))
        except ValueError:
            raise ConfigOutOfRange(f"Unknown format {self.format!r} (0 - rgb, 1 - hex)") from None


# =============================================================================
# Environment settings
# =============================================================================

@dataclass(frozen=True)
class Settings:
    """Filesystem locations and log level, read from the environment."""
    cache_dir: Path
    template_dir: Path
    log_level: str = "WARNING"

    @property
    def palette_dir(self) -> Path:
        """Directory holding binary palette records."""
        return self.cache_dir / "other"


def build_settings(environ: dict | None = None) -> Settings:
    env = os.environ if environ is None else environ
    home = Path(env.get("HOME") or Path.home())
    cache_dir = env.get("PAL_CACHE_DIR") or home / ".cache" / "pal"
    template_dir = env.get("PAL_TEMPLATE_DIR") or home / ".config" / "pal"
    return Settings(
        cache_dir=Path(cache_dir),
        template_dir=Path(template_dir),
        log_level=env.get("PAL_LOG_LEVEL", "WARNING"),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings so the environment is read once per process."""
    return build_settings()


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger on stderr."""
    level = level or get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
    )
