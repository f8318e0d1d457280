"""
Watermark Pipeline
Load → optional tone adjustment → watermark → save under a fresh name.
Any error aborts the run; nothing is retried here.
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union
import logging

from watermark_manager.models.tone_adjustment import ToneAdjustment
from watermark_manager.models.watermark import WatermarkSpec
from watermark_manager.services.image_service import ImageService
from watermark_manager.services.output_name_service import OutputNameService
from watermark_manager.services.tone_service import ToneService
from watermark_manager.services.watermark_service import WatermarkService

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    LOADED = "loaded"
    ADJUSTED = "adjusted"
    WATERMARKED = "watermarked"
    SAVED = "saved"


def run(
    input_path: Union[str, Path],
    watermark: WatermarkSpec,
    adjustment: Optional[ToneAdjustment] = None,
    *,
    image_service: ImageService = None,
    tone_service: ToneService = None,
    watermark_service: WatermarkService = None,
    output_name_service: OutputNameService = None,
) -> Path:
    """
    Watermark one image and write the result next to it.

    Args:
        input_path: Image to mark (existence already checked by the caller)
        watermark: TextMark or ImageMark
        adjustment: Tone adjustment applied before the watermark, if any
        image_service: Service for image I/O
        tone_service: Service for tone adjustments
        watermark_service: Service for text/image overlays
        output_name_service: Service choosing the output filename

    Returns:
        Path: The file that was written

    Raises:
        WatermarkError: the first failure met, from any stage
    """
    image_service = image_service or ImageService()
    tone_service = tone_service or ToneService()
    watermark_service = watermark_service or WatermarkService()
    output_name_service = output_name_service or OutputNameService()

    input_path = Path(input_path)

    img = image_service.load(input_path)
    logger.info(f"[{PipelineStage.LOADED.value}] {input_path} ({img.width}x{img.height})")

    # Fail before any pixel work if the result could not be named or written
    output_name_service.split_filename(input_path.name)
    image_service.check_encodable(input_path)

    if adjustment is not None:
        img = tone_service.apply(img, adjustment)
    logger.info(f"[{PipelineStage.ADJUSTED.value}] {adjustment.kind.value if adjustment else 'no adjustment'}")

    img = watermark_service.apply(img, watermark)
    logger.info(f"[{PipelineStage.WATERMARKED.value}] {type(watermark).__name__}")

    output_dir = input_path.parent
    output_name = output_name_service.resolve(input_path.name, image_service.existing_names(output_dir))
    output_path = image_service.save(img, output_dir / output_name)
    logger.info(f"[{PipelineStage.SAVED.value}] {output_path}")

    return output_path
