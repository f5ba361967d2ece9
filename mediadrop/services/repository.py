"""
Metadata Repository - Single Responsibility: persist records.

Implements Repository Pattern over an insert-only record sink.
"""
from typing import Any, Dict, List, Tuple
import logging

from ..models import DownloadLinkRecord, UploadConfig, UploadMetadataRecord
from ..protocols import IMetadataStore
from .api_client import HTTPAPIClient

logger = logging.getLogger(__name__)


class HTTPMetadataStore:
    """
    Record sink over a PostgREST-style endpoint (POST /rest/v1/{table}).

    Implements IMetadataStore protocol.
    """

    def __init__(self, api_client: HTTPAPIClient):
        self._api = api_client

    async def insert(self, table: str, record: Dict[str, Any]) -> Any:
        logger.debug(f"[repository] insert into {table}")
        return await self._api.post(f"/rest/v1/{table}", json=record)


class InMemoryMetadataStore:
    """Record sink kept in memory, for dry runs and tests."""

    def __init__(self):
        self.rows: List[Tuple[str, Dict[str, Any]]] = []

    async def insert(self, table: str, record: Dict[str, Any]) -> Any:
        self.rows.append((table, dict(record)))
        return None

    def table(self, name: str) -> List[Dict[str, Any]]:
        return [row for table, row in self.rows if table == name]


class MetadataRepository:
    """
    Repository for upload metadata and download links.

    Knows which logical table each record belongs to.
    """

    def __init__(self, store: IMetadataStore, config: UploadConfig = None):
        """
        Initialize repository.

        Args:
            store: Insert-only record sink
            config: Table names
        """
        self._store = store
        self._config = config if config is not None else UploadConfig()

    async def save_upload(self, record: UploadMetadataRecord) -> None:
        await self._store.insert(self._config.uploads_table, record.to_row())

    async def save_download_link(self, record: DownloadLinkRecord) -> None:
        await self._store.insert(self._config.links_table, record.to_row())
