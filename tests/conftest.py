"""Shared fixtures: synthetic pixel buffers and image files."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image


def solid_rgba(width: int, height: int, rgb: tuple[int, int, int]) -> bytes:
    """Interleaved RGBA8 buffer filled with one opaque color."""
    arr = np.empty((height, width, 4), dtype=np.uint8)
    arr[..., :3] = rgb
    arr[..., 3] = 255
    return arr.tobytes()


def random_rgba(width: int, height: int, seed: int = 0) -> bytes:
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    arr[..., 3] = 255
    return arr.tobytes()


@pytest.fixture
def make_image(tmp_path: Path):
    """Write a solid-color PNG and return its path as a string."""

    def _make(name: str, rgb: tuple[int, int, int], size: tuple[int, int] = (64, 64)) -> str:
        path = tmp_path / name
        Image.new("RGB", size, rgb).save(path)
        return str(path)

    return _make


@pytest.fixture
def noisy_image(tmp_path: Path) -> str:
    """A 96x64 PNG of random opaque pixels."""
    path = tmp_path / "noise.png"
    rng = np.random.default_rng(7)
    arr = rng.integers(0, 256, size=(64, 96, 3), dtype=np.uint8)
    Image.fromarray(arr).save(path)
    return str(path)
