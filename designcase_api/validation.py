from dataclasses import dataclass
from typing import List, Optional
import os

from designcase_api.config import settings
from designcase_api.errors import FileTooLargeError, UnsupportedFileTypeError

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".pdf": "application/pdf",
}

# Formats that go through optimization and thumbnailing
RASTER_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}


@dataclass(frozen=True)
class ValidatedFile:
    extension: str
    content_type: str
    size: int

    @property
    def is_raster(self) -> bool:
        return self.extension in RASTER_EXTENSIONS


def allowed_extensions() -> List[str]:
    return list(MIME_TYPES)


def allowed_mime_types() -> List[str]:
    return sorted(set(MIME_TYPES.values()))


def get_mime_type(extension: str) -> Optional[str]:
    return MIME_TYPES.get(extension.lower())


def validate_upload(filename: str, size: int, declared_type: Optional[str] = None,
                    max_size: Optional[int] = None) -> ValidatedFile:
    """Check an upload against the size limit and the type allow-list.

    Size is checked first so that oversized payloads are reported as such
    whatever their type. The declared MIME type is only checked when the
    client supplied one; the extension always decides the stored content type.
    """
    limit = settings.max_file_size if max_size is None else max_size
    if size > limit:
        raise FileTooLargeError(f"File size exceeds {limit / 1024 / 1024:g}MB limit")

    extension = os.path.splitext(filename or "")[1].lower()
    content_type = get_mime_type(extension)
    if content_type is None:
        raise UnsupportedFileTypeError(f"Unsupported file type: {extension or filename}")

    if declared_type:
        mime = declared_type.split(";")[0].strip().lower()
        if mime not in MIME_TYPES.values():
            raise UnsupportedFileTypeError(f"Unsupported file type: {mime}")

    return ValidatedFile(extension=extension, content_type=content_type, size=size)
