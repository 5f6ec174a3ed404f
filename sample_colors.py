"""
Grid sampling of a decoded RGBA image.

The image is walked on a 32x32-ish grid (step = dimension // 32, at least 1)
and at most SAMPLE_COUNT colors are collected. Two modes:

    block: truncated mean of the 4x4 block anchored at each grid point,
           clipped to the image bounds (cheap denoise for area-average)
    point: the raw pixel at each grid point (used by k-means)

While walking, the darkest sample above DARK_THRESHOLD and the lightest
sample below LIGHT_THRESHOLD are tracked as background/foreground candidates.
"""

from dataclasses import dataclass
from typing import Union

import numpy as np

from color_metrics import Color, WHITE, BLACK


# =============================================================================
# Constants
# =============================================================================

SAMPLE_COUNT = 1024  # Hard cap on collected samples; large images are undersampled
GRID_DIVISOR = 32
BLOCK_SIZE = 4
DARK_THRESHOLD = 0.05  # Background must be strictly brighter than this
LIGHT_THRESHOLD = 0.95  # Foreground must be strictly darker than this

PixelBuffer = Union[bytes, bytearray, memoryview, np.ndarray]


@dataclass(frozen=True)
class SampleSet:
    """Sampled colors plus the background/foreground candidates."""
    colors: tuple[Color, ...]  # walk order
    darkest: Color
    lightest: Color

    def __len__(self) -> int:
        return len(self.colors)

    def rgb_array(self) -> np.ndarray:
        """Samples as an (n, 3) int64 array."""
        if not self.colors:
            return np.zeros((0, 3), dtype=np.int64)
        return np.array([c.rgb for c in self.colors], dtype=np.int64)


# =============================================================================
# Helpers
# =============================================================================

def grid_steps(width: int, height: int) -> tuple[int, int]:
    """Return (step_x, step_y) for the sampling grid."""
    return max(1, width // GRID_DIVISOR), max(1, height // GRID_DIVISOR)


def as_rgba_array(pixels: PixelBuffer, width: int, height: int) -> np.ndarray:
    """View an interleaved RGBA8 buffer as an (height, width, 4) uint8 array."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image dimensions {width}x{height}")

    if isinstance(pixels, np.ndarray):
        arr = np.asarray(pixels, dtype=np.uint8)
    else:
        arr = np.frombuffer(pixels, dtype=np.uint8)
    expected = width * height * 4
    if arr.size != expected:
        raise ValueError(
            f"Pixel buffer has {arr.size} bytes, expected {expected} for {width}x{height} RGBA"
        )
    return arr.reshape(height, width, 4)


def grid_points(width: int, height: int) -> list[tuple[int, int]]:
    """Row-major (y, x) grid coordinates, capped at SAMPLE_COUNT."""
    step_x, step_y = grid_steps(width, height)
    points = []
    for y in range(0, height, step_y):
        for x in range(0, width, step_x):
            points.append((y, x))
            if len(points) == SAMPLE_COUNT:
                return points
    return points


def _collect(colors: list[Color]) -> SampleSet:
    darkest = WHITE
    lightest = BLACK
    for c in colors:
        if darkest.luminance > c.luminance > DARK_THRESHOLD:
            darkest = c
        if lightest.luminance < c.luminance < LIGHT_THRESHOLD:
            lightest = c
    return SampleSet(colors=tuple(colors), darkest=darkest, lightest=lightest)


# =============================================================================
# Sampling modes
# =============================================================================

def sample_blocks(pixels: PixelBuffer, width: int, height: int) -> SampleSet:
    """
    Sample the 4x4 block mean at each grid point.

    Blocks near the right/bottom edge are clipped to the image, so they
    average fewer than 16 pixels rather than reading out of bounds.
    """
    img = as_rgba_array(pixels, width, height)
    colors = []
    for y, x in grid_points(width, height):
        block = img[y:y + BLOCK_SIZE, x:x + BLOCK_SIZE, :3].reshape(-1, 3).astype(np.int64)
        mean = block.sum(axis=0) // block.shape[0]
        colors.append(Color.from_rgb(*mean.tolist()))
    return _collect(colors)


def sample_points(pixels: PixelBuffer, width: int, height: int) -> SampleSet:
    """Sample the single pixel at each grid point."""
    img = as_rgba_array(pixels, width, height)
    points = grid_points(width, height)
    ys = np.array([p[0] for p in points], dtype=np.intp)
    xs = np.array([p[1] for p in points], dtype=np.intp)
    rgb = img[ys, xs, :3]
    return _collect([Color.from_rgb(*px) for px in rgb.tolist()])
