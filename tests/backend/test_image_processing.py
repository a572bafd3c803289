import io

import pytest
from PIL import Image

from designcase_api.image_processing import generate_thumbnail, optimize_image
from conftest import make_gradient_png, make_image_bytes


@pytest.mark.unit
class TestImageOptimizer:
    """Re-encoding keeps the smaller payload and never fails the caller."""

    def test_uncompressed_png_gets_smaller(self):
        original = make_gradient_png(size=(600, 600), compress_level=0)

        result = optimize_image(original, ".png")

        assert result.optimized
        assert not result.degraded
        assert len(result.data) < len(original)
        assert (result.metadata.width, result.metadata.height, result.metadata.format) == (600, 600, "png")
        with Image.open(io.BytesIO(result.data)) as img:
            assert img.format == "PNG"
            assert img.size == (600, 600)

    def test_keeps_original_when_reencoding_is_not_smaller(self):
        original = make_image_bytes("PNG", size=(64, 64), optimize=True)

        result = optimize_image(original, ".png")

        assert result.data is original
        assert not result.optimized
        assert result.metadata.width == 64
        assert result.diagnostic is None

    def test_jpeg_metadata(self):
        original = make_image_bytes("JPEG", size=(320, 200), quality=100)

        result = optimize_image(original, ".jpg")

        assert result.metadata.format == "jpeg"
        assert (result.metadata.width, result.metadata.height) == (320, 200)
        assert len(result.data) <= len(original)

    def test_webp_metadata(self):
        original = make_image_bytes("WEBP", size=(300, 150), lossless=True)

        result = optimize_image(original, ".webp")

        assert result.metadata.format == "webp"
        assert len(result.data) <= len(original)

    def test_multi_picture_jpeg_reports_jpeg(self):
        primary = Image.new("RGB", (320, 240), color=(30, 120, 200))
        secondary = Image.new("RGB", (160, 120), color=(200, 120, 30))
        buffer = io.BytesIO()
        primary.save(buffer, format="MPO", save_all=True, append_images=[secondary])
        with Image.open(io.BytesIO(buffer.getvalue())) as img:
            assert img.format == "MPO"

        result = optimize_image(buffer.getvalue(), ".jpg")

        assert result.metadata.format == "jpeg"
        assert (result.metadata.width, result.metadata.height) == (320, 240)

    def test_corrupt_image_degrades_to_original(self):
        corrupt = b"\x89PNG\r\n\x1a\n" + b"garbage" * 50

        result = optimize_image(corrupt, ".png")

        assert result.data is corrupt
        assert result.metadata is None
        assert result.degraded
        assert "optimization failed" in result.diagnostic

    @pytest.mark.parametrize("extension", [".svg", ".pdf"])
    def test_non_raster_passes_through(self, extension):
        payload = b"<svg xmlns='http://www.w3.org/2000/svg'/>"

        result = optimize_image(payload, extension)

        assert result.data is payload
        assert result.metadata is None
        assert not result.degraded


@pytest.mark.unit
class TestThumbnailGenerator:
    def test_thumbnail_is_fixed_size_jpeg(self):
        result = generate_thumbnail(make_image_bytes("PNG", size=(2000, 1000)))

        assert not result.degraded
        with Image.open(io.BytesIO(result.data)) as img:
            assert img.format == "JPEG"
            assert img.size == (400, 400)

    def test_thumbnail_is_center_cropped(self):
        img = Image.new("RGB", (1200, 400), color=(255, 0, 0))
        img.paste((0, 0, 255), (600, 0, 1200, 400))
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")

        result = generate_thumbnail(buffer.getvalue())

        with Image.open(io.BytesIO(result.data)) as thumb:
            left = thumb.getpixel((20, 200))
            right = thumb.getpixel((380, 200))
        assert left[0] > 200 and left[2] < 60
        assert right[2] > 200 and right[0] < 60

    def test_transparent_image_is_flattened(self):
        data = make_image_bytes("PNG", size=(500, 500), color=(10, 20, 30, 0), mode="RGBA")

        result = generate_thumbnail(data)

        with Image.open(io.BytesIO(result.data)) as thumb:
            assert thumb.mode == "RGB"

    def test_custom_size(self):
        result = generate_thumbnail(make_image_bytes("JPEG", size=(300, 300)), size=120)

        with Image.open(io.BytesIO(result.data)) as thumb:
            assert thumb.size == (120, 120)

    def test_failure_is_reported_not_raised(self):
        result = generate_thumbnail(b"not an image")

        assert result.degraded
        assert result.data is None
        assert "Thumbnail generation failed" in result.diagnostic
