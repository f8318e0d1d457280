from typing import List, Tuple
import logging
import os

import numpy as np
from dotenv import load_dotenv
from PIL import Image as PILImage, ImageDraw, ImageFont

from watermark_manager.models.image import Image
from watermark_manager.models.watermark import ImageMark, TextMark, WatermarkSpec
from watermark_manager.services.image_service import ImageService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def parse_color(value: str) -> Tuple[int, int, int]:
    """'R,G,B' → (R, G, B), each in [0, 255]."""
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 3:
        raise ValueError(f"Colour must be 'R,G,B', got '{value}'")
    rgb = tuple(int(p) for p in parts)
    if any(c < 0 or c > 255 for c in rgb):
        raise ValueError(f"Colour components must be in [0, 255], got '{value}'")
    return rgb


class WatermarkService:
    """
    Overlays text or a second image onto a base Image, centred.
    *   No I/O here; works only with Image objects (RGB/RGBA numpy arrays).
    *   Uses environment variables for configuration.
    """

    def __init__(self,
                 font_path: str = None,
                 font_size: int = None,
                 text_color: Tuple[int, int, int] = None,
                 opacity: float = None):
        """
        Args:
            font_path: TrueType font file (defaults to env var, else Pillow's built-in font)
            font_size: Font size in pixels (defaults to env var, 32)
            text_color: RGB fill for text (defaults to env var, black)
            opacity: Factor applied to the watermark image's own alpha (defaults to env var, 0.5)
        """
        self.font_path = font_path or os.getenv("WATERMARK_FONT_PATH") or None
        self.font_size = int(font_size or os.getenv("WATERMARK_FONT_SIZE", "32"))
        self.text_color = tuple(text_color) if text_color else parse_color(os.getenv("WATERMARK_TEXT_COLOR", "0,0,0"))
        self.opacity = float(opacity if opacity is not None else os.getenv("WATERMARK_OPACITY", "0.5"))
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"opacity must be in [0, 1], got {self.opacity}")

        self.font = self._load_font()
        self.img_svc = ImageService()

    def _load_font(self) -> ImageFont.ImageFont:
        if self.font_path:
            try:
                return ImageFont.truetype(self.font_path, self.font_size)
            except OSError as err:
                raise ValueError(f"Could not load font {self.font_path}: {err}") from err
        return ImageFont.load_default(size=self.font_size)

    # ─── Public API ────────────────────────────────────────────────
    def apply(self, img: Image, mark: WatermarkSpec) -> Image:
        if isinstance(mark, TextMark):
            return self.apply_text(img, mark.content)
        if isinstance(mark, ImageMark):
            return self.apply_image(img, mark.image)
        raise TypeError(f"Unsupported watermark: {type(mark).__name__}")

    def apply_text(self, img: Image, text: str) -> Image:
        """
        Draw *text* opaquely, centred on the image, wrapped to the image width.
        Blank text is allowed and leaves the pixels unchanged.
        """
        if not text.strip():
            logger.info("Watermark text is blank, nothing to draw")
            return self.img_svc.create_image(img.pixels.copy(), img.path)

        pil_img = PILImage.fromarray(np.ascontiguousarray(img.pixels))
        draw = ImageDraw.Draw(pil_img)
        block = "\n".join(self._wrap_text(draw, text, img.width))

        left, top, right, bottom = draw.multiline_textbbox((0, 0), block, font=self.font, align="center")
        # bbox centre → image centre
        x = (img.width - (left + right)) / 2
        y = (img.height - (top + bottom)) / 2

        fill = self.text_color + (255,) if img.has_alpha else self.text_color
        draw.multiline_text((x, y), block, font=self.font, fill=fill, align="center")
        logger.info(f"Text watermark drawn at ({x:.1f}, {y:.1f})")

        return self.img_svc.create_image(np.array(pil_img), img.path)

    def apply_image(self, img: Image, watermark: Image) -> Image:
        """
        Source-over blend of *watermark* centred on *img*, with the watermark's
        alpha scaled by ``self.opacity``. Parts falling outside the base are clipped;
        the base is never resized.
        """
        x, y = self.center_offset((img.width, img.height), (watermark.width, watermark.height))
        out = img.pixels.copy()

        # Visible window in base coordinates
        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + watermark.width, img.width), min(y + watermark.height, img.height)
        if x0 >= x1 or y0 >= y1:
            logger.info("Watermark does not overlap the image, nothing to blend")
            return self.img_svc.create_image(out, img.path)

        mark = watermark.pixels[y0 - y:y1 - y, x0 - x:x1 - x].astype(np.float32)
        region = out[y0:y1, x0:x1].astype(np.float32)

        if watermark.has_alpha:
            alpha = mark[..., 3:4] / 255.0
        else:
            alpha = np.ones(mark.shape[:2] + (1,), dtype=np.float32)
        a = alpha * self.opacity

        region[..., :3] = region[..., :3] * (1.0 - a) + mark[..., :3] * a
        if img.has_alpha:
            region[..., 3:4] = region[..., 3:4] * (1.0 - a) + 255.0 * a

        out[y0:y1, x0:x1] = np.clip(np.rint(region), 0, 255).astype(np.uint8)
        logger.info(f"Image watermark {watermark.width}x{watermark.height} blended at ({x}, {y})")
        return self.img_svc.create_image(out, img.path)

    # ─── Internal helpers ──────────────────────────────────────────
    @staticmethod
    def center_offset(base_size: Tuple[int, int], mark_size: Tuple[int, int]) -> Tuple[int, int]:
        """Top-left corner that puts the mark's centre on the base's centre (may be negative)."""
        (bw, bh), (mw, mh) = base_size, mark_size
        return (bw - mw) // 2, (bh - mh) // 2

    def _wrap_text(self, draw: ImageDraw.ImageDraw, text: str, max_width: int) -> List[str]:
        """Greedy word wrap; a single word wider than the image keeps its own line."""
        lines = []
        for paragraph in text.splitlines():
            line = ""
            for word in paragraph.split():
                trial = f"{line} {word}" if line else word
                if line and draw.textlength(trial, font=self.font) > max_width:
                    lines.append(line)
                    line = word
                else:
                    line = trial
            lines.append(line)
        return lines
