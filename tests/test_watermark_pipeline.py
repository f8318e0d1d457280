"""End-to-end tests for the load → adjust → watermark → save pipeline."""

import numpy as np
import pytest
from PIL import Image as PILImage

from watermark_manager.models.errors import (
    ImageDecodeError,
    ImageNotFoundError,
    ImageWriteError,
    InvalidFilenameError,
)
from watermark_manager.models.image import Image
from watermark_manager.models.tone_adjustment import ToneAdjustment
from watermark_manager.models.watermark import ImageMark, TextMark
from watermark_manager.pipeline import watermark_pipeline
from watermark_manager.repositories.image_repository import ImageRepository
from watermark_manager.services.watermark_service import WatermarkService
from tests.conftest import solid


@pytest.fixture
def base_2x2(write_image):
    pixels = np.array([
        [[10, 20, 30, 255], [40, 50, 60, 255]],
        [[70, 80, 90, 255], [200, 210, 220, 255]],
    ], dtype=np.uint8)
    return write_image("base.png", pixels), pixels


class TestRun:

    def test_invert_then_image_mark(self, base_2x2):
        path, pixels = base_2x2
        mark = solid(1, 1, (100, 150, 250, 255))

        out = watermark_pipeline.run(
            path, ImageMark(mark), ToneAdjustment.invert(),
            watermark_service=WatermarkService(opacity=0.5),
        )

        assert out == path.parent / "base-with-watermark-1.png"
        result = ImageRepository().load(out).pixels
        assert result.shape == (2, 2, 4)

        x, y = WatermarkService.center_offset((2, 2), (1, 1))
        inverted = 255 - pixels[y, x, :3].astype(float)
        expected = inverted * 0.5 + np.array([100, 150, 250]) * 0.5
        assert np.abs(result[y, x, :3] - expected).max() <= 1
        assert result[y, x, 3] == 255
        # untouched pixel is just inverted
        assert result[1, 1, :3].tolist() == [55, 45, 35]

    def test_second_run_does_not_overwrite(self, base_2x2):
        path, _ = base_2x2
        mark = TextMark("")

        first = watermark_pipeline.run(path, mark)
        second = watermark_pipeline.run(path, mark)

        assert first.name == "base-with-watermark-1.png"
        assert second.name == "base-with-watermark-2.png"
        assert first.exists() and second.exists()

    def test_text_mark_on_jpeg(self, write_image, rgb_pixels):
        path = write_image("photo.jpg", rgb_pixels)

        out = watermark_pipeline.run(path, TextMark("© me"), ToneAdjustment.brighten(0.1))

        assert out.name == "photo-with-watermark-1.jpg"
        loaded = ImageRepository().load(out)
        assert (loaded.width, loaded.height) == (200, 200)

    def test_missing_input(self, tmp_path):
        with pytest.raises(ImageNotFoundError):
            watermark_pipeline.run(tmp_path / "missing.jpg", TextMark("x"))

        assert list(tmp_path.iterdir()) == []

    def test_corrupt_input(self, tmp_path):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"\xff\xd8 definitely not a jpeg")

        with pytest.raises(ImageDecodeError):
            watermark_pipeline.run(path, TextMark("x"))

        assert [p.name for p in tmp_path.iterdir()] == ["broken.jpg"]

    def test_input_without_extension(self, tmp_path):
        path = tmp_path / "noext"
        ImageRepository().save(Image(np.zeros((4, 4, 3), dtype=np.uint8)), tmp_path / "seed.png")
        (tmp_path / "seed.png").rename(path)

        with pytest.raises(InvalidFilenameError):
            watermark_pipeline.run(path, TextMark("x"))

        assert [p.name for p in tmp_path.iterdir()] == ["noext"]

    def test_rotated_phone_photo_is_written_upright(self, tmp_path):
        exif = PILImage.Exif()
        exif[0x0112] = 6
        path = tmp_path / "phone.jpg"
        PILImage.fromarray(np.zeros((20, 40, 3), dtype=np.uint8)).save(path, exif=exif)

        out = watermark_pipeline.run(path, TextMark(""))

        with PILImage.open(out) as result:
            assert result.size == (20, 40)
            assert result.getexif().get(0x0112, 1) == 1

    def test_unwritable_format_fails_before_processing(self, tmp_path):
        # PNG bytes under an extension no encoder handles
        seed = ImageRepository().save(Image(np.zeros((4, 4, 3), dtype=np.uint8)), tmp_path / "seed.png")
        path = seed.rename(tmp_path / "photo.unknownext")

        class RecordingToneService:
            def __init__(self):
                self.calls = []

            def apply(self, img, adjustment):
                self.calls.append(adjustment)
                return img

        tone_service = RecordingToneService()
        with pytest.raises(ImageWriteError):
            watermark_pipeline.run(path, TextMark("x"), ToneAdjustment.invert(), tone_service=tone_service)

        assert tone_service.calls == []
        assert [p.name for p in tmp_path.iterdir()] == ["photo.unknownext"]
