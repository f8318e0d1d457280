from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import numpy as np

CHANNEL_MAX = 255.0
CHANNEL_MID = CHANNEL_MAX / 2
# Rec. 709 luma weights (R, G, B)
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)


class ToneKind(Enum):
    BRIGHTEN = "brighten"
    CONTRAST = "contrast"
    GREYSCALE = "greyscale"
    INVERT = "invert"

    @classmethod
    def parse(cls, name: str) -> "ToneKind":
        """Case-insensitive lookup; accepts 'grayscale' as well."""
        key = name.strip().lower()
        if key == "grayscale":
            key = "greyscale"
        try:
            return cls(key)
        except ValueError:
            choices = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown tone adjustment '{name}' (choose from: {choices})") from None

    @property
    def uses_intensity(self) -> bool:
        return self in (ToneKind.BRIGHTEN, ToneKind.CONTRAST)


@dataclass(frozen=True)
class ToneAdjustment:
    """
    Value-object holding one whole-image tone transform.
    intensity is in [-1.0, +1.0] and only meaningful for BRIGHTEN / CONTRAST.
    """
    kind: ToneKind
    intensity: float = 0.0

    def __post_init__(self):
        if not -1.0 <= self.intensity <= 1.0:
            raise ValueError(f"intensity must be in [-1, 1], got {self.intensity}")

    # ── Convenience constructors ─────────────────────────────────────
    @classmethod
    def brighten(cls, intensity: float) -> "ToneAdjustment":
        return cls(ToneKind.BRIGHTEN, intensity)

    @classmethod
    def contrast(cls, intensity: float) -> "ToneAdjustment":
        return cls(ToneKind.CONTRAST, intensity)

    @classmethod
    def greyscale(cls) -> "ToneAdjustment":
        return cls(ToneKind.GREYSCALE)

    @classmethod
    def invert(cls) -> "ToneAdjustment":
        return cls(ToneKind.INVERT)

    # ── Core math ────────────────────────────────────────────────────
    def apply_to_array(self, pixels: np.ndarray) -> np.ndarray:
        """
        Return a new uint8 array with the transform applied to the colour
        channels. The alpha channel (if any) is copied through untouched.
        """
        out = pixels.copy()
        rgb = pixels[..., :3].astype(np.float32)

        if self.kind is ToneKind.BRIGHTEN:
            rgb = rgb + self.intensity * CHANNEL_MAX
        elif self.kind is ToneKind.CONTRAST:
            rgb = (rgb - CHANNEL_MID) * (1.0 + self.intensity) + CHANNEL_MID
        elif self.kind is ToneKind.GREYSCALE:
            luma = rgb @ LUMA_WEIGHTS
            rgb = np.repeat(luma[..., None], 3, axis=-1)
        elif self.kind is ToneKind.INVERT:
            rgb = CHANNEL_MAX - rgb

        out[..., :3] = np.clip(np.rint(rgb), 0, CHANNEL_MAX).astype(np.uint8)
        return out
