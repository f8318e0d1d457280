from pathlib import Path
from typing import Set, Union
import numpy as np

from watermark_manager.models.image import Image
from watermark_manager.repositories.image_repository import ImageRepository


class ImageService:
    """I/O helpers.  No pixel math here."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def create_image(self, pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        return self.image_repository.create_image(pixels, path)

    def check_exists(self, path: Union[str, Path]) -> Path:
        """Raise ImageNotFoundError unless *path* is an existing file."""
        return self.image_repository.check_exists(path)

    def load(self, path: Union[str, Path]) -> Image:
        """Load a single image from disk into an Image object."""
        return self.image_repository.load(path)

    def save(self, image: Image, path: Union[str, Path]) -> Path:
        """
        Business-level method to save the image to a specific path.
        """
        return self.image_repository.save(image, path)

    def existing_names(self, folder: Union[str, Path]) -> Set[str]:
        return self.image_repository.list_names(folder)

    def check_encodable(self, path: Union[str, Path]) -> str:
        """Raise ImageWriteError unless *path*'s extension has an encoder."""
        return self.image_repository.encoder_format(path)
