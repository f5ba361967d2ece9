"""File staging - holds the pending selection before commit."""
from typing import Any, Iterable, List, Optional
import logging

from .models import StagedFile, UploadConfig, UploadSession

logger = logging.getLogger(__name__)


def _candidate_type(candidate: Any) -> str:
    mime_type = getattr(candidate, "type", None) or getattr(candidate, "mime_type", None)
    return mime_type or ""


class FileStagingManager:
    """
    Maintains the ordered set of files pending upload.

    Never touches session.is_uploading.
    """

    def __init__(self, session: UploadSession, config: Optional[UploadConfig] = None):
        self._session = session
        self._config = config if config is not None else UploadConfig()

    @property
    def session(self) -> UploadSession:
        return self._session

    @property
    def staged_files(self) -> List[StagedFile]:
        return self._session.staged_files

    def add_files(self, candidates: Iterable[Any]) -> List[StagedFile]:
        """
        Admit candidates that are images or videos within the size ceiling.

        Rejected candidates are dropped silently. Admitted files are appended
        in input order with zero progress.

        Args:
            candidates: File-like objects exposing name, type and size

        Returns:
            The newly staged files
        """
        admitted = []
        for candidate in candidates:
            name = getattr(candidate, "name", None) if candidate is not None else None
            if not name:
                logger.debug("Rejected candidate without a name")
                continue

            mime_type = _candidate_type(candidate)
            size = getattr(candidate, "size", None)
            if not isinstance(size, int) or isinstance(size, bool):
                logger.debug(f"Rejected {name} (unknown size)")
                continue
            if not self._config.admits(mime_type, size):
                logger.debug(f"Rejected {name} ({mime_type}, {size} bytes)")
                continue

            admitted.append(StagedFile(
                name=name,
                mime_type=mime_type,
                size_bytes=size,
                payload=getattr(candidate, "payload", candidate),
            ))

        self._session.staged_files = [*self._session.staged_files, *admitted]
        return admitted

    def remove_file(self, index: int) -> StagedFile:
        """
        Remove the staged file at index.

        Raises:
            IndexError: index outside [0, len(staged_files))
        """
        files = self._session.staged_files
        if not 0 <= index < len(files):
            raise IndexError(f"staged file index out of range: {index}")
        return files.pop(index)
