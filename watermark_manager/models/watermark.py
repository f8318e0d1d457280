from __future__ import annotations
from dataclasses import dataclass
from typing import Union

from watermark_manager.models.image import Image


@dataclass
class TextMark:
    """Text rendered on top of the base image."""
    content: str


@dataclass
class ImageMark:
    """Second image blended over the base image."""
    image: Image


WatermarkSpec = Union[TextMark, ImageMark]
