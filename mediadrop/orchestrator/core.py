"""Core orchestrator - wires staging, storage and the commit workflow."""
from typing import Any, Iterable, List, Optional

from ..models import ContextDate, DownloadLinkRecord, StagedFile, UploadConfig, UploadSession
from ..protocols import IBlobStore, IMetadataStore, ITokenGenerator
from ..services.api_client import HTTPAPIClient
from ..services.repository import HTTPMetadataStore, MetadataRepository
from ..services.storage import HTTPBlobStore
from ..services.tokens import SecureTokenGenerator
from ..staging import FileStagingManager
from ..utils.events import EventEmitter
from .commit import CommitHandler


class UploadOrchestrator:
    """
    Orchestrates staged media uploads using injected services.

    Usage:
        # Against the HTTP storage API
        async with UploadOrchestrator(api_url=url, api_key=key) as orchestrator:
            orchestrator.add_files(candidates)
            link = await orchestrator.commit(date.today())

        # With injected collaborators (tests, dry runs)
        orchestrator = UploadOrchestrator(blob_store=blobs, metadata_store=records)
    """

    def __init__(
        self,
        blob_store: Optional[IBlobStore] = None,
        metadata_store: Optional[IMetadataStore] = None,
        token_generator: Optional[ITokenGenerator] = None,
        config: Optional[UploadConfig] = None,
        session: Optional[UploadSession] = None,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            blob_store: Object storage; built from api_url when omitted
            metadata_store: Record sink; built from api_url when omitted
            token_generator: Random names and link tokens
            config: Upload configuration
            session: Shared session state (a fresh one by default)
            api_url: Storage API URL used for the HTTP adapters
            api_key: Optional API key sent with every request
        """
        self._config = config if config is not None else UploadConfig()
        self._session = session if session is not None else UploadSession()
        self._blob_store = blob_store
        self._metadata_store = metadata_store
        self._tokens = token_generator if token_generator is not None else SecureTokenGenerator()
        self._api_url = api_url
        self._api_key = api_key
        self._api_client: Optional[HTTPAPIClient] = None

        self.events = EventEmitter()
        self._staging = FileStagingManager(self._session, self._config)
        self._commit_handler: Optional[CommitHandler] = None
        if blob_store is not None and metadata_store is not None:
            self._build_handler()

    def _build_handler(self) -> None:
        repository = MetadataRepository(self._metadata_store, self._config)
        self._commit_handler = CommitHandler(
            self._session,
            self._blob_store,
            repository,
            self._tokens,
            self._config,
            self.events,
        )

    async def __aenter__(self):
        """Build HTTP adapters for any collaborator not injected."""
        if self._blob_store is None or self._metadata_store is None:
            if not self._api_url:
                raise ValueError("Either api_url or both blob_store and metadata_store must be provided")
            self._api_client = HTTPAPIClient(self._api_url, api_key=self._api_key)
            await self._api_client.__aenter__()
            if self._blob_store is None:
                self._blob_store = HTTPBlobStore(self._api_client)
            if self._metadata_store is None:
                self._metadata_store = HTTPMetadataStore(self._api_client)
            self._build_handler()
        return self

    async def __aexit__(self, *args):
        """Cleanup resources."""
        if self._api_client:
            await self._api_client.__aexit__(*args)
            self._api_client = None

    @property
    def session(self) -> UploadSession:
        return self._session

    @property
    def config(self) -> UploadConfig:
        return self._config

    @property
    def staged_files(self) -> List[StagedFile]:
        return self._session.staged_files

    @property
    def is_uploading(self) -> bool:
        return self._session.is_uploading

    @property
    def upload_complete(self) -> bool:
        return self._session.upload_complete

    def add_files(self, candidates: Iterable[Any]) -> List[StagedFile]:
        """Stage admissible candidates."""
        return self._staging.add_files(candidates)

    def remove_file(self, index: int) -> StagedFile:
        """Drop a staged file by position."""
        return self._staging.remove_file(index)

    async def commit(self, context_date: ContextDate) -> Optional[DownloadLinkRecord]:
        """Upload the staged batch and issue its download link."""
        if self._commit_handler is None:
            raise RuntimeError("UploadOrchestrator not initialized. Use 'async with' context.")
        return await self._commit_handler.commit(context_date)
