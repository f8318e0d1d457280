from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np


@dataclass
class Image:
    """
    Simple data object: RGB or RGBA pixels (+ optional source path for bookkeeping).
    No OpenCV logic outside the repository.
    """
    pixels: np.ndarray # Shape (H, W, 3) RGB or (H, W, 4) RGBA, dtype uint8.
    path: Path | None = None # Source of the image.

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def has_alpha(self) -> bool:
        return self.pixels.shape[2] == 4
