"""Services for mediadrop module."""
from .api_client import HTTPAPIClient
from .repository import HTTPMetadataStore, InMemoryMetadataStore, MetadataRepository
from .storage import HTTPBlobStore, InMemoryBlobStore
from .tokens import SecureTokenGenerator, build_storage_path

__all__ = [
    "HTTPAPIClient",
    "HTTPBlobStore",
    "HTTPMetadataStore",
    "InMemoryBlobStore",
    "InMemoryMetadataStore",
    "MetadataRepository",
    "SecureTokenGenerator",
    "build_storage_path",
]
