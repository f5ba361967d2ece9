"""
Storage Service - Single Responsibility: put blobs into object storage.

HTTPBlobStore targets a Supabase-style storage endpoint
(POST /storage/v1/object/{bucket}/{path}).
"""
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote
import asyncio
import logging

from .api_client import HTTPAPIClient

logger = logging.getLogger(__name__)


def read_payload(payload: Any) -> bytes:
    """Materialize a payload handle (bytes, Path or binary file object)."""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    if isinstance(payload, (str, Path)):
        return Path(payload).read_bytes()
    read = getattr(payload, "read", None)
    if callable(read):
        return read()
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


class HTTPBlobStore:
    """
    Blob store over HTTP.

    Implements IBlobStore protocol.
    """

    def __init__(self, api_client: HTTPAPIClient):
        self._api = api_client

    async def upload(
        self,
        bucket: str,
        path: str,
        payload: Any,
        content_type: Optional[str] = None,
    ) -> Any:
        body = await asyncio.to_thread(read_payload, payload)
        headers = {"Content-Type": content_type or "application/octet-stream"}
        endpoint = f"/storage/v1/object/{quote(bucket, safe='')}/{quote(path.lstrip('/'))}"
        logger.debug(f"[storage] POST {endpoint} ({len(body)} bytes)")
        return await self._api.post(endpoint, content=body, headers=headers)


class InMemoryBlobStore:
    """Blob store kept in a dict, for dry runs and tests."""

    def __init__(self):
        self.objects: Dict[Tuple[str, str], Tuple[bytes, Optional[str]]] = {}

    async def upload(
        self,
        bucket: str,
        path: str,
        payload: Any,
        content_type: Optional[str] = None,
    ) -> Any:
        key = (bucket, path)
        if key in self.objects:
            raise FileExistsError(f"Object already exists: {bucket}/{path}")
        self.objects[key] = (read_payload(payload), content_type)
        return {"Key": f"{bucket}/{path}"}
