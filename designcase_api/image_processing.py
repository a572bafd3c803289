"""Raster image optimization and thumbnail generation.

Both steps are optional parts of the upload pipeline. Instead of raising,
they return a result object whose ``diagnostic`` is set when the step could
not be completed, so the caller decides how to continue.
"""
from dataclasses import dataclass
from typing import Optional
import io

from PIL import Image, ImageOps
import structlog

from designcase_api.config import settings
from designcase_api.validation import RASTER_EXTENSIONS

logger = structlog.get_logger(__name__)

# Pillow format names reported in the API vocabulary; multi-picture JPEGs open as MPO
FORMAT_NAMES = {
    "PNG": "png",
    "JPEG": "jpeg",
    "MPO": "jpeg",
    "WEBP": "webp",
}

EXTENSION_FORMATS = {".png": "png", ".jpg": "jpeg", ".jpeg": "jpeg", ".webp": "webp"}


@dataclass(frozen=True)
class ImageMetadata:
    width: int
    height: int
    format: str


@dataclass
class OptimizationResult:
    data: bytes
    metadata: Optional[ImageMetadata] = None
    optimized: bool = False
    diagnostic: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.diagnostic is not None


@dataclass
class ThumbnailResult:
    data: Optional[bytes] = None
    diagnostic: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.data is None


def _encode(image: Image.Image, extension: str, quality: int, compression_level: int) -> bytes:
    buffer = io.BytesIO()
    if extension == ".png":
        image.save(buffer, format="PNG", optimize=True, compress_level=compression_level)
    elif extension in (".jpg", ".jpeg"):
        image.save(buffer, format="JPEG", quality=quality, progressive=True, optimize=True)
    else:
        image.save(buffer, format="WEBP", quality=quality)
    return buffer.getvalue()


def optimize_image(data: bytes, extension: str, quality: Optional[int] = None,
                   compression_level: Optional[int] = None) -> OptimizationResult:
    """Re-encode a raster image, keeping the result only if it is smaller.

    Non-raster formats are returned untouched. On decode or encode failure
    the original bytes are returned without metadata.
    """
    extension = extension.lower()
    if extension not in RASTER_EXTENSIONS:
        return OptimizationResult(data=data)

    quality = settings.optimize_quality if quality is None else quality
    compression_level = settings.png_compression_level if compression_level is None else compression_level

    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            metadata = ImageMetadata(
                width=image.width,
                height=image.height,
                format=FORMAT_NAMES.get(image.format, EXTENSION_FORMATS[extension]),
            )
            encoded = _encode(image, extension, quality, compression_level)
    except Exception as e:
        return OptimizationResult(data=data, diagnostic=f"Image optimization failed: {e}")

    if len(encoded) < len(data):
        logger.debug("Image optimized", original_size=len(data), optimized_size=len(encoded))
        return OptimizationResult(data=encoded, metadata=metadata, optimized=True)

    return OptimizationResult(data=data, metadata=metadata)


def generate_thumbnail(data: bytes, size: Optional[int] = None, quality: Optional[int] = None) -> ThumbnailResult:
    """Center-crop ``data`` to a ``size`` x ``size`` JPEG"""
    size = settings.thumbnail_size if size is None else size
    quality = settings.thumbnail_quality if quality is None else quality

    try:
        with Image.open(io.BytesIO(data)) as image:
            if image.mode != "RGB":
                image = image.convert("RGB")
            thumbnail = ImageOps.fit(
                image,
                (size, size),
                method=Image.Resampling.LANCZOS,
                centering=(0.5, 0.5),
            )
            buffer = io.BytesIO()
            thumbnail.save(buffer, format="JPEG", quality=quality)
    except Exception as e:
        return ThumbnailResult(diagnostic=f"Thumbnail generation failed: {e}")

    return ThumbnailResult(data=buffer.getvalue())
