"""
Color value type and the small set of metrics the palette engine relies on.

Luminance is the BT.709 weighted channel sum normalized to [0, 1], vibrancy is
the max-minus-min channel spread.
"""

from dataclasses import dataclass
import math

import numpy as np


# =============================================================================
# Constants
# =============================================================================

LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)


# =============================================================================
# Metrics
# =============================================================================

def compute_luminance(r: int, g: int, b: int) -> float:
    """Relative luminance in [0, 1], rounded to single precision."""
    wr, wg, wb = (np.float32(w) for w in LUMA_WEIGHTS)
    lum = (wr * np.float32(r) + wg * np.float32(g) + wb * np.float32(b)) / np.float32(255.0)
    return float(np.clip(np.float32(lum), np.float32(0.0), np.float32(1.0)))


def compute_vibrancy(r: int, g: int, b: int) -> int:
    """Channel spread, a cheap saturation proxy."""
    return max(r, g, b) - min(r, g, b)


@dataclass(frozen=True)
class Color:
    """An 8-bit RGB color with its derived luminance and vibrancy."""
    r: int
    g: int
    b: int
    vibrancy: int
    luminance: float

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int) -> 'Color':
        r, g, b = int(r), int(g), int(b)
        for channel in (r, g, b):
            if not 0 <= channel <= 255:
                raise ValueError(f"Channel value out of range: {channel}")
        return cls(r, g, b, compute_vibrancy(r, g, b), compute_luminance(r, g, b))

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)


# Sentinels used when no sample qualifies as background/foreground
WHITE = Color(255, 255, 255, 0, 1.0)
BLACK = Color(0, 0, 0, 0, 0.0)


@dataclass(frozen=True)
class Palette:
    """Background, foreground and accents in selection order."""
    background: Color
    foreground: Color
    accents: tuple[Color, ...]

    def colors(self) -> list[Color]:
        """Background, foreground, then accents."""
        return [self.background, self.foreground, *self.accents]


def color_distance(a: Color, b: Color) -> float:
    """Euclidean distance in RGB space."""
    return math.sqrt((a.r - b.r) ** 2 + (a.g - b.g) ** 2 + (a.b - b.b) ** 2)


def manhattan_distance(a: Color, b: Color) -> int:
    """Sum of absolute channel differences."""
    return abs(a.r - b.r) + abs(a.g - b.g) + abs(a.b - b.b)


# =============================================================================
# Saturation
# =============================================================================

def apply_saturation(color: Color, saturation: float) -> Color:
    """
    Push each channel away from (or toward) the color's gray level.

    A factor of exactly 1.0 returns the color untouched. Other factors remap
    each channel as gray + s * (channel - gray), clamped to [0, 255] and
    truncated. Derived fields are recomputed from the new channels.
    """
    if saturation == 1.0:
        return color

    s = np.float32(saturation)
    gray = np.float32(color.luminance) * np.float32(255.0)
    channels = np.array(color.rgb, dtype=np.float32)
    remapped = np.clip(gray + s * (channels - gray), 0, 255).astype(np.uint8)
    return Color.from_rgb(*remapped.tolist())
