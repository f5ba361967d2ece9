"""
Protocols (Interfaces) for Dependency Inversion.

Collaborators signal failure by raising; the orchestrator never inspects
return values for errors.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class IBlobStore(Protocol):
    """Interface for remote object storage."""

    async def upload(
        self,
        bucket: str,
        path: str,
        payload: Any,
        content_type: Optional[str] = None,
    ) -> Any:
        """Store payload under bucket/path."""
        ...


@runtime_checkable
class IMetadataStore(Protocol):
    """Interface for the insert-only record sink."""

    async def insert(self, table: str, record: Dict[str, Any]) -> Any:
        """Insert one record into table."""
        ...


class ITokenGenerator(ABC):
    """Interface for random identifiers (one call per upload / per link)."""

    @abstractmethod
    def file_suffix(self) -> str:
        """Unique-ish suffix for a storage object name."""
        pass

    @abstractmethod
    def link_token(self) -> str:
        """Token for a shareable download link."""
        pass
