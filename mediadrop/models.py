"""
Models for mediadrop module.

Staged files and the session are mutable (progress is tracked in place);
records written to the metadata store are immutable dataclasses.
"""
import mimetypes
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union


MAX_FILE_SIZE = 100 * 1024 * 1024  # 100 MiB

ContextDate = Union[date, datetime]


def to_utc_datetime(value: ContextDate) -> datetime:
    """Normalize a context date to an aware UTC datetime (bare dates are midnight)."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for commit operations."""
    bucket: str = "wedding-files"
    uploads_table: str = "uploads"
    links_table: str = "download_links"
    max_file_size: int = MAX_FILE_SIZE
    allowed_type_prefixes: Tuple[str, ...] = ("image/", "video/")
    retention_days: int = 7

    @property
    def retention_window(self) -> timedelta:
        return timedelta(days=self.retention_days)

    def expires_at(self, context_date: ContextDate) -> datetime:
        """Expiry of a link issued for context_date."""
        return to_utc_datetime(context_date) + self.retention_window

    def admits(self, mime_type: str, size: int) -> bool:
        """Admission predicate for staging: media type and size ceiling."""
        if not mime_type or not mime_type.startswith(self.allowed_type_prefixes):
            return False
        return 0 <= size <= self.max_file_size


@dataclass(frozen=True)
class LocalFile:
    """File-like candidate backed by a path on disk."""
    name: str
    type: str
    size: int
    payload: Any = None

    @classmethod
    def from_path(cls, path: Path) -> "LocalFile":
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            type=mime_type or "application/octet-stream",
            size=path.stat().st_size,
            payload=path,
        )


@dataclass
class StagedFile:
    """One file queued for transfer."""
    name: str
    mime_type: str
    size_bytes: int
    payload: Any = None
    progress_percent: int = 0

    @property
    def extension(self) -> str:
        """Text after the last dot, or empty when the name has none."""
        if "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[1]

    @property
    def is_uploaded(self) -> bool:
        return self.progress_percent >= 100


@dataclass
class UploadSession:
    """State of the current batch: staged files plus busy/complete flags."""
    staged_files: List[StagedFile] = field(default_factory=list)
    is_uploading: bool = False
    upload_complete: bool = False

    def __len__(self) -> int:
        return len(self.staged_files)

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.staged_files)


@dataclass(frozen=True)
class UploadMetadataRecord:
    """Metadata persisted after each successful blob upload."""
    file_name: str
    file_path: str
    file_type: str
    file_size: int

    def to_row(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "file_path": self.file_path,
            "file_type": self.file_type,
            "file_size": self.file_size,
        }


@dataclass(frozen=True)
class DownloadLinkRecord:
    """Shareable token issued once per committed batch."""
    token: str
    expires_at: datetime

    @property
    def share_path(self) -> str:
        return f"/download/{self.token}"

    def share_url(self, base_url: Optional[str] = None) -> str:
        if not base_url:
            return self.share_path
        return base_url.rstrip("/") + self.share_path

    def to_row(self) -> Dict[str, Any]:
        return {
            "link_token": self.token,
            "expires_at": self.expires_at.isoformat(),
        }
