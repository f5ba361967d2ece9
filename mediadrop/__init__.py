"""
Mediadrop - stage media files, upload them and share a download link.

Usage:
    from mediadrop import UploadOrchestrator, LocalFile

    async with UploadOrchestrator(api_url=url, api_key=key) as uploader:
        uploader.add_files([LocalFile.from_path(p) for p in paths])
        link = await uploader.commit(date.today())
        print(link.share_path)  # /download/<token>

Rejected files (not image/* or video/*, or over 100 MiB) never reach the
staged list. A failed commit raises UploadError and keeps the batch staged.
"""
from .errors import (
    APIError,
    BlobUploadError,
    LinkCreationError,
    MetadataInsertError,
    UploadError,
)
from .models import (
    DownloadLinkRecord,
    LocalFile,
    StagedFile,
    UploadConfig,
    UploadMetadataRecord,
    UploadSession,
)
from .orchestrator import UploadOrchestrator
from .services import (
    HTTPBlobStore,
    HTTPMetadataStore,
    InMemoryBlobStore,
    InMemoryMetadataStore,
    MetadataRepository,
    SecureTokenGenerator,
)
from .staging import FileStagingManager

__version__ = "0.1.0"
__all__ = [
    # Main
    "UploadOrchestrator",
    "FileStagingManager",
    # Models
    "DownloadLinkRecord",
    "LocalFile",
    "StagedFile",
    "UploadConfig",
    "UploadMetadataRecord",
    "UploadSession",
    # Errors
    "APIError",
    "BlobUploadError",
    "LinkCreationError",
    "MetadataInsertError",
    "UploadError",
    # Services
    "HTTPBlobStore",
    "HTTPMetadataStore",
    "InMemoryBlobStore",
    "InMemoryMetadataStore",
    "MetadataRepository",
    "SecureTokenGenerator",
]
