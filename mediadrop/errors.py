"""Commit error types."""
from typing import Optional


class UploadError(Exception):
    """Generic commit failure, carries the underlying cause."""

    def __init__(self, message: str, cause: Optional[BaseException] = None, staged_file=None):
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.cause = cause
        self.staged_file = staged_file


class BlobUploadError(UploadError):
    """Blob store rejected or failed a transfer."""


class MetadataInsertError(UploadError):
    """Metadata store rejected an upload record."""


class LinkCreationError(UploadError):
    """Download link insert failed after every file succeeded."""


class APIError(RuntimeError):
    """HTTP error response from the storage API."""

    def __init__(self, status_code: int, method: str, endpoint: str, detail=None):
        super().__init__(f"API error {status_code} on {method} {endpoint}: {detail}")
        self.status_code = status_code
        self.method = method
        self.endpoint = endpoint
        self.detail = detail
