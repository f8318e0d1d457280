from pathlib import Path
from typing import Set, Union
import logging
import os
import tempfile

import cv2
import numpy as np
from PIL import ExifTags, Image as PILImage

from watermark_manager.models.errors import (
    ImageDecodeError,
    ImageNotFoundError,
    ImageWriteError,
)
from watermark_manager.models.image import Image

logger = logging.getLogger(__name__)

# Lossless / highest-quality encoder settings per Pillow format name
_SAVE_PARAMS = {
    "JPEG": {"quality": 100, "subsampling": 0},
    "PNG": {"compress_level": 6},
    "WEBP": {"lossless": True, "quality": 100},
    "TIFF": {"compression": "tiff_lzw"},
}
# Formats that cannot carry an alpha channel
_NO_ALPHA = {"JPEG", "BMP"}


class ImageRepository:
    """
    Handles file I/O for Image entities.
    Decoding goes through OpenCV, encoding through Pillow.
    """

    @staticmethod
    def create_image(pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        if path is None:
            return Image(pixels)
        return Image(pixels=pixels, path=Path(path))

    @staticmethod
    def check_exists(path: Union[str, Path]) -> Path:
        path = Path(path)
        if not path.is_file():
            raise ImageNotFoundError(f"{path} does not exist")
        return path

    @staticmethod
    def _to_rgb(arr: np.ndarray) -> np.ndarray:
        # 16-bit PNG/TIFF → 8-bit
        if arr.dtype == np.uint16:
            arr = (arr // 257).astype(np.uint8)
        elif arr.dtype != np.uint8:
            arr = cv2.normalize(arr, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)

        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGB)
        if arr.shape[2] == 4:
            return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
        return cv2.cvtColor(arr, cv2.COLOR_BGR2RGB)

    @staticmethod
    def _exif_orientation(path: Path) -> int:
        """EXIF Orientation tag (1-8) of *path*; 1 when there is none."""
        try:
            with PILImage.open(path) as pil_img:
                return int(pil_img.getexif().get(ExifTags.Base.Orientation, 1))
        except PILImage.UnidentifiedImageError:
            # Pillow cannot parse this container, so there is no EXIF to honour
            return 1

    @staticmethod
    def _apply_orientation(pixels: np.ndarray, orientation: int) -> np.ndarray:
        """Turn stored pixels into display orientation (same mapping as ImageOps.exif_transpose)."""
        if orientation == 2:
            pixels = pixels[:, ::-1]
        elif orientation == 3:
            pixels = pixels[::-1, ::-1]
        elif orientation == 4:
            pixels = pixels[::-1]
        elif orientation == 5:
            pixels = pixels.swapaxes(0, 1)
        elif orientation == 6:
            pixels = np.rot90(pixels, k=-1)
        elif orientation == 7:
            pixels = pixels[::-1, ::-1].swapaxes(0, 1)
        elif orientation == 8:
            pixels = np.rot90(pixels, k=1)
        return np.ascontiguousarray(pixels)

    def load(self, path: Union[str, Path]) -> Image:
        path = self.check_exists(path)

        arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise ImageDecodeError(f"Unsupported or corrupt image: {path}")

        # IMREAD_UNCHANGED skips EXIF rotation, so apply it here
        orientation = self._exif_orientation(path)
        pixels = self._apply_orientation(self._to_rgb(arr), orientation)
        logger.debug(f"Loaded {path} ({pixels.shape[1]}x{pixels.shape[0]}, "
                     f"{pixels.shape[2]} channels, orientation {orientation})")
        return Image(pixels=pixels, path=path)

    @staticmethod
    def encoder_format(path: Union[str, Path]) -> str:
        """Pillow format name used to write *path*; ImageWriteError if none can."""
        path = Path(path)
        fmt = PILImage.registered_extensions().get(path.suffix.lower())
        if fmt is None or fmt not in PILImage.SAVE:
            raise ImageWriteError(f"No encoder for extension '{path.suffix}': {path}")
        return fmt

    @staticmethod
    def _new_file_mode() -> int:
        """Permission bits a plain open() would give a new file under the current umask."""
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask

    def save(self, image: Image, path: Union[str, Path]) -> Path:
        """
        Encode at maximum quality into a temp file next to *path*, then
        move it into place so a failed write never leaves a partial file.
        """
        path = Path(path)
        fmt = self.encoder_format(path)

        pil_img = PILImage.fromarray(np.ascontiguousarray(image.pixels))
        if fmt in _NO_ALPHA and pil_img.mode == "RGBA":
            pil_img = pil_img.convert("RGB")

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                pil_img.save(tmp, format=fmt, **_SAVE_PARAMS.get(fmt, {}))
            # NamedTemporaryFile is created 0600
            os.chmod(tmp_name, self._new_file_mode())
            os.replace(tmp_name, path)
        except (OSError, ValueError) as err:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise ImageWriteError(f"Could not write {path}: {err}") from err

        logger.debug(f"Saved {path} as {fmt}")
        return path

    @staticmethod
    def list_names(folder: Union[str, Path]) -> Set[str]:
        """Names of all entries currently in *folder*."""
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)
        return {p.name for p in folder.iterdir()}
