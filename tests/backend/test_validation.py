import pytest

from designcase_api.errors import FileTooLargeError, UnsupportedFileTypeError
from designcase_api.validation import (
    allowed_extensions, allowed_mime_types, get_mime_type, validate_upload,
)

MB = 1024 * 1024


@pytest.mark.unit
class TestFileValidation:
    """Allow-list and size checks applied before any storage access."""

    @pytest.mark.parametrize("filename,content_type", [
        ("logo.png", "image/png"),
        ("photo.jpg", "image/jpeg"),
        ("photo.jpeg", "image/jpeg"),
        ("banner.webp", "image/webp"),
        ("icon.svg", "image/svg+xml"),
        ("deck.pdf", "application/pdf"),
    ])
    def test_accepts_allowed_types(self, filename, content_type):
        validated = validate_upload(filename, 1024, content_type)

        assert validated.content_type == content_type
        assert validated.size == 1024

    def test_extension_is_case_insensitive(self):
        validated = validate_upload("SCREEN.PNG", 10)

        assert validated.extension == ".png"
        assert validated.is_raster

    def test_vector_and_document_formats_are_not_raster(self):
        assert not validate_upload("icon.svg", 10).is_raster
        assert not validate_upload("deck.pdf", 10).is_raster

    def test_rejects_executable(self):
        with pytest.raises(UnsupportedFileTypeError) as exc_info:
            validate_upload("setup.exe", 2048, "application/octet-stream")

        assert exc_info.value.code == "UNSUPPORTED_FILE_TYPE"
        assert exc_info.value.status_code == 415

    def test_rejects_missing_extension(self):
        with pytest.raises(UnsupportedFileTypeError):
            validate_upload("README", 10)

    def test_rejects_disallowed_declared_type(self):
        with pytest.raises(UnsupportedFileTypeError):
            validate_upload("notes.png", 10, "text/plain")

    def test_declared_type_parameters_are_ignored(self):
        validated = validate_upload("logo.png", 10, "image/png; charset=binary")

        assert validated.content_type == "image/png"

    def test_rejects_oversized_file(self):
        with pytest.raises(FileTooLargeError) as exc_info:
            validate_upload("huge.png", 50 * MB + 1)

        assert exc_info.value.code == "FILE_TOO_LARGE"
        assert exc_info.value.status_code == 413
        assert "50MB" in exc_info.value.message

    def test_size_is_checked_before_type(self):
        with pytest.raises(FileTooLargeError):
            validate_upload("malware.exe", 50 * MB + 1, "application/x-msdownload")

    def test_file_at_exact_limit_is_accepted(self):
        assert validate_upload("big.pdf", 50 * MB).size == 50 * MB

    def test_custom_limit(self):
        with pytest.raises(FileTooLargeError):
            validate_upload("small.png", 11, max_size=10)

    def test_allow_lists(self):
        assert set(allowed_extensions()) == {".png", ".jpg", ".jpeg", ".webp", ".svg", ".pdf"}
        assert set(allowed_mime_types()) == {
            "image/png", "image/jpeg", "image/webp", "image/svg+xml", "application/pdf",
        }
        assert get_mime_type(".JPG") == "image/jpeg"
        assert get_mime_type(".gif") is None
