"""Error kinds raised by the watermarking core."""


class WatermarkError(Exception):
    """Base class for every failure the core reports to its caller."""


class ImageNotFoundError(WatermarkError, FileNotFoundError):
    """Input or watermark file does not exist."""


class ImageDecodeError(WatermarkError, ValueError):
    """File exists but its bytes are not a supported image."""


class InvalidFilenameError(WatermarkError, ValueError):
    """Filename has no usable name/extension split."""


class ImageWriteError(WatermarkError, OSError):
    """Encoding or writing the output file failed."""
