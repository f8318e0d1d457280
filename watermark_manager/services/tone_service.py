import logging

from watermark_manager.models.image import Image
from watermark_manager.models.tone_adjustment import ToneAdjustment
from watermark_manager.services.image_service import ImageService

logger = logging.getLogger(__name__)


class ToneService:
    """
    Whole-image tone transforms (brighten, contrast, greyscale, invert).
    *   No I/O here; works only with Image objects.
    """

    def __init__(self):
        self.img_svc = ImageService()

    def apply(self, img: Image, adjustment: ToneAdjustment) -> Image:
        """
        Apply *adjustment* and return a *new* Image with the same path and size.
        """
        logger.info(f"Applying {adjustment.kind.value} (intensity={adjustment.intensity:+.2f})")
        new_pixels = adjustment.apply_to_array(img.pixels)
        return self.img_svc.create_image(new_pixels, img.path)
