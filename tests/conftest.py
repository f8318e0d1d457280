"""
Pytest fixtures for watermark manager tests
"""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image as PILImage

from watermark_manager.models.image import Image


@pytest.fixture
def write_image(tmp_path):
    """
    Factory writing a pixel array to tmp_path/<name> with Pillow.
    :return: callable(name, pixels) -> Path
    """
    def _write(name: str, pixels: np.ndarray) -> Path:
        path = tmp_path / name
        PILImage.fromarray(pixels).save(path)
        return path
    return _write


@pytest.fixture
def rgb_pixels() -> np.ndarray:
    """200x200 RGB gradient."""
    pixels = np.zeros((200, 200, 3), dtype=np.uint8)
    pixels[..., 0] = np.arange(200, dtype=np.uint8)[None, :]
    pixels[..., 1] = np.arange(200, dtype=np.uint8)[:, None]
    pixels[..., 2] = 90
    return pixels


@pytest.fixture
def random_rgba() -> Image:
    rng = np.random.default_rng(7)
    return Image(rng.integers(0, 256, size=(32, 48, 4), dtype=np.uint8))


def solid(width: int, height: int, color) -> Image:
    pixels = np.empty((height, width, len(color)), dtype=np.uint8)
    pixels[...] = color
    return Image(pixels)
