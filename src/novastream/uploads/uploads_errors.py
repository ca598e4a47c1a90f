"""Domain-specific exceptions for the upload path."""


class UploadError(Exception):
    """Base class for upload-related errors."""


class PayloadTooLargeError(UploadError):
    """Raised when the body or the file part exceeds configured limits."""


class MalformedUploadError(UploadError):
    """Raised when the body is not a parseable multipart form."""


class UploadAbortedError(UploadError):
    """Raised when the client disconnects before the upload completes."""
