#!/usr/bin/env python3
"""
Watermark Manager CLI
Interactive question/answer flow around the watermark pipeline, or a
single non-interactive run when --input is given.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from watermark_manager.models.errors import WatermarkError
from watermark_manager.models.tone_adjustment import ToneAdjustment, ToneKind
from watermark_manager.models.watermark import ImageMark, TextMark, WatermarkSpec
from watermark_manager.pipeline import watermark_pipeline
from watermark_manager.services.image_service import ImageService
from watermark_manager.services.output_name_service import OutputNameService
from watermark_manager.services.tone_service import ToneService
from watermark_manager.services.watermark_service import WatermarkService

# Load environment variables first
load_dotenv()

logger = logging.getLogger(__name__)

TEXT_WATERMARK = "Text watermark"
IMAGE_WATERMARK = "Image watermark"
NO_ADJUSTMENT = "No adjustment"
ADJUSTMENT_CHOICES = {
    NO_ADJUSTMENT: None,
    "Make image brighter": ToneKind.BRIGHTEN,
    "Change contrast": ToneKind.CONTRAST,
    "Make image black & white": ToneKind.GREYSCALE,
    "Invert image": ToneKind.INVERT,
}


class WatermarkManager:
    """
    Prompt sequence + explicit retry loop.
    A failed run reports its error and goes back to the start prompt.
    """

    def __init__(self,
                 img_dir: str | Path = None,
                 ask: Callable[[str], str] = input,
                 image_service: ImageService = None):
        self.img_dir = Path(img_dir or os.getenv("WATERMARK_IMG_DIR", "img"))
        self.ask = ask
        self.default_input = os.getenv("WATERMARK_DEFAULT_INPUT", "photo.jpg")
        self.default_logo = os.getenv("WATERMARK_DEFAULT_LOGO", "logo.png")
        self.default_intensity = float(os.getenv("WATERMARK_DEFAULT_INTENSITY", "0.2"))

        self.image_service = image_service or ImageService()
        self.tone_service = ToneService()
        self.watermark_service = WatermarkService()
        self.output_name_service = OutputNameService()

    # ─── Prompt helpers ────────────────────────────────────────────
    def confirm(self, message: str) -> bool:
        answer = self.ask(f"{message} (Y/n) ").strip().lower()
        return answer in ("", "y", "yes")

    def text(self, message: str, default: str = None) -> str:
        suffix = f" ({default})" if default else ""
        answer = self.ask(f"{message}{suffix} ").strip()
        return answer or (default or "")

    def choose(self, message: str, choices: List[str]) -> str:
        menu = "\n".join(f"  {i}) {c}" for i, c in enumerate(choices, 1))
        while True:
            answer = self.ask(f"{message}\n{menu}\n> ").strip()
            if answer.isdigit() and 1 <= int(answer) <= len(choices):
                return choices[int(answer) - 1]
            print(f"Please pick a number between 1 and {len(choices)}.")

    def intensity(self) -> float:
        while True:
            answer = self.text("Intensity between -1 and 1?", str(self.default_intensity))
            try:
                value = float(answer)
            except ValueError:
                print(f"'{answer}' is not a number.")
                continue
            if -1.0 <= value <= 1.0:
                return value
            print("Intensity must be between -1 and 1.")

    # ─── Flow ──────────────────────────────────────────────────────
    def collect(self) -> Tuple[Path, WatermarkSpec, Optional[ToneAdjustment]]:
        input_name = self.text("What file do you want to mark?", self.default_input)
        input_path = self.image_service.check_exists(self.img_dir / input_name)

        kind = ADJUSTMENT_CHOICES[self.choose("Do you want to edit the image first?", list(ADJUSTMENT_CHOICES))]
        adjustment = None
        if kind is not None:
            adjustment = ToneAdjustment(kind, self.intensity() if kind.uses_intensity else 0.0)

        watermark_type = self.choose("Which watermark?", [TEXT_WATERMARK, IMAGE_WATERMARK])
        if watermark_type == IMAGE_WATERMARK:
            logo_name = self.text("Type your watermark name:", self.default_logo)
            watermark = ImageMark(self.image_service.load(self.img_dir / logo_name))
        else:
            watermark = TextMark(self.text("Type your watermark text:"))

        return input_path, watermark, adjustment

    def run_once(self) -> Path:
        input_path, watermark, adjustment = self.collect()
        return watermark_pipeline.run(
            input_path,
            watermark,
            adjustment,
            image_service=self.image_service,
            tone_service=self.tone_service,
            watermark_service=self.watermark_service,
            output_name_service=self.output_name_service,
        )

    def start(self) -> int:
        while True:
            try:
                ready = self.confirm(
                    'Hi! Welcome to "Watermark manager". '
                    f"Copy your image files to `{self.img_dir}` folder. "
                    "Then you'll be able to use them in the app. Are you ready?"
                )
                if not ready:
                    return 0
                output_path = self.run_once()
                print(f"Watermark added successfully: {output_path}")
            except WatermarkError as err:
                logger.error(f"Run failed: {err}")
                print(f"Something went wrong... Try again. ({err})")
            except (EOFError, KeyboardInterrupt):
                print()
                return 0


# ─── CLI ────────────────────────────────────────────────────
def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="watermark-manager",
        description="Add a text or image watermark to a picture, optionally after a tone adjustment.",
    )
    ap.add_argument("--img-dir", default=None,
                    help="folder the interactive prompts read files from (default: $WATERMARK_IMG_DIR or img)")
    ap.add_argument("--log-level", default="WARNING",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    once = ap.add_argument_group("non-interactive run")
    once.add_argument("--input", type=Path, help="image to mark; skips the prompts")
    mark = once.add_mutually_exclusive_group()
    mark.add_argument("--text", help="watermark text")
    mark.add_argument("--watermark", type=Path, help="watermark image file")
    once.add_argument("--adjust", type=ToneKind.parse, default=None,
                      help="tone adjustment before marking: brighten, contrast, greyscale, invert")
    once.add_argument("--intensity", type=float, default=0.0,
                      help="brighten/contrast intensity in [-1, 1]")
    return ap


def run_from_args(args: argparse.Namespace) -> int:
    if args.text is None and args.watermark is None:
        print("--input needs either --text or --watermark", file=sys.stderr)
        return 2

    image_service = ImageService()
    try:
        adjustment = ToneAdjustment(args.adjust, args.intensity) if args.adjust else None
        watermark_service = WatermarkService()
    except ValueError as err:
        print(err, file=sys.stderr)
        return 2

    try:
        input_path = image_service.check_exists(args.input)
        if args.watermark is not None:
            watermark = ImageMark(image_service.load(args.watermark))
        else:
            watermark = TextMark(args.text)
        output_path = watermark_pipeline.run(
            input_path, watermark, adjustment,
            image_service=image_service,
            watermark_service=watermark_service,
        )
    except WatermarkError as err:
        logger.error(f"Run failed: {err}")
        print(f"Something went wrong: {err}", file=sys.stderr)
        return 1

    print(output_path)
    return 0


def main(argv: Sequence[str] = None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.input is not None:
        return run_from_args(args)
    try:
        manager = WatermarkManager(args.img_dir)
    except ValueError as err:
        print(f"Invalid configuration: {err}", file=sys.stderr)
        return 2
    return manager.start()


if __name__ == "__main__":
    sys.exit(main())
