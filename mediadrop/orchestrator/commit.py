"""Batch commit handler."""
from typing import Optional
import logging

from ..errors import BlobUploadError, LinkCreationError, MetadataInsertError, UploadError
from ..models import (
    ContextDate,
    DownloadLinkRecord,
    StagedFile,
    UploadConfig,
    UploadMetadataRecord,
    UploadSession,
    to_utc_datetime,
)
from ..protocols import IBlobStore, ITokenGenerator
from ..services.repository import MetadataRepository
from ..services.tokens import build_storage_path
from ..utils.events import EventEmitter

logger = logging.getLogger(__name__)


class CommitHandler:
    """
    Uploads a staged batch sequentially and issues its download link.

    Files are processed in staging order; each blob upload is followed by its
    metadata insert before the next file starts. Nothing is rolled back on
    failure, so a retry re-uploads files that already made it.
    """

    def __init__(
        self,
        session: UploadSession,
        blob_store: IBlobStore,
        repository: MetadataRepository,
        token_generator: ITokenGenerator,
        config: UploadConfig,
        events: EventEmitter,
    ):
        self._session = session
        self._blob_store = blob_store
        self._repository = repository
        self._tokens = token_generator
        self._config = config
        self._events = events

    async def commit(self, context_date: ContextDate) -> Optional[DownloadLinkRecord]:
        """
        Commit every staged file, then create one download link.

        Returns None without side effects when a commit is already running or
        nothing is staged.

        Raises:
            UploadError: first failing step, with the underlying cause attached
        """
        session = self._session
        if session.is_uploading or not session.staged_files:
            return None

        session.is_uploading = True
        session.upload_complete = False
        try:
            prefix = to_utc_datetime(context_date).date().isoformat()
            logger.info(f"Committing {len(session.staged_files)} file(s) under {prefix}/")
            await self._events.emit("commit_start", session)

            for staged in list(session.staged_files):
                await self._upload_one(staged, prefix)

            link = await self._create_link(context_date)

            session.upload_complete = True
            session.staged_files = []
            logger.info(f"Commit complete, link expires {link.expires_at.isoformat()}")
            await self._events.emit("commit_complete", link)
            return link
        except UploadError as e:
            logger.error(f"Upload error: {e}")
            await self._events.emit("commit_failed", e)
            raise
        finally:
            session.is_uploading = False

    async def _upload_one(self, staged: StagedFile, prefix: str) -> UploadMetadataRecord:
        await self._events.emit("file_start", staged)
        try:
            path = build_storage_path(prefix, self._tokens.file_suffix(), staged.extension)
            logger.debug(f"Uploading {staged.name} -> {self._config.bucket}/{path}")
            await self._blob_store.upload(
                self._config.bucket, path, staged.payload, content_type=staged.mime_type
            )
        except Exception as e:
            raise BlobUploadError(f"Upload of {staged.name} failed", e, staged) from e

        record = UploadMetadataRecord(
            file_name=staged.name,
            file_path=path,
            file_type=staged.mime_type,
            file_size=staged.size_bytes,
        )
        try:
            await self._repository.save_upload(record)
        except Exception as e:
            raise MetadataInsertError(f"Saving metadata for {staged.name} failed", e, staged) from e

        staged.progress_percent = 100
        await self._events.emit("file_complete", staged, record)
        return record

    async def _create_link(self, context_date: ContextDate) -> DownloadLinkRecord:
        try:
            link = DownloadLinkRecord(
                token=self._tokens.link_token(),
                expires_at=self._config.expires_at(context_date),
            )
            await self._repository.save_download_link(link)
        except Exception as e:
            raise LinkCreationError("Creating download link failed", e) from e

        await self._events.emit("link_created", link)
        return link
