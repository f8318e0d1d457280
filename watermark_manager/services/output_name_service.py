from pathlib import Path
from typing import AbstractSet, Union
import itertools
import logging
import os

from dotenv import load_dotenv

from watermark_manager.models.errors import InvalidFilenameError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class OutputNameService:
    """
    Picks a destination filename that never collides with what is already
    in the output folder: ``{name}{suffix}-{n}.{ext}`` for the first free n.
    """

    def __init__(self, suffix: str = None):
        self.suffix = suffix if suffix is not None else os.getenv("WATERMARK_OUTPUT_SUFFIX", "-with-watermark")

    @staticmethod
    def split_filename(filename: Union[str, Path]):
        """Split the base name at its last '.' into (name, extension)."""
        base = Path(filename).name
        name, sep, ext = base.rpartition(".")
        if not sep or not name or not ext:
            raise InvalidFilenameError(f"Filename has no extension: '{base}'")
        return name, ext

    def resolve(self, input_filename: Union[str, Path], existing_names: AbstractSet[str]) -> str:
        name, ext = self.split_filename(input_filename)
        for n in itertools.count(1):
            candidate = f"{name}{self.suffix}-{n}.{ext}"
            if candidate not in existing_names:
                logger.debug(f"Output name for {input_filename}: {candidate}")
                return candidate
