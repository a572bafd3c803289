class UploadServiceError(Exception):
    """Base class for errors reported to API clients.

    Every error carries an HTTP status and a stable machine-readable ``code``
    alongside the human-readable message.
    """

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str = None, status_code: int = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class ValidationError(UploadServiceError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NoFileError(ValidationError):
    code = "NO_FILE"


class FileTooLargeError(ValidationError):
    status_code = 413
    code = "FILE_TOO_LARGE"


class UnsupportedFileTypeError(ValidationError):
    status_code = 415
    code = "UNSUPPORTED_FILE_TYPE"


class AuthenticationError(UploadServiceError):
    status_code = 401
    code = "UNAUTHENTICATED"


class NotFoundError(UploadServiceError):
    status_code = 404
    code = "NOT_FOUND"


class AuthorizationError(UploadServiceError):
    status_code = 403
    code = "UNAUTHORIZED"


class UpstreamError(UploadServiceError):
    status_code = 500
    code = "UPSTREAM_ERROR"


class StorageError(UpstreamError):
    code = "STORAGE_ERROR"
