"""Token Service - Single Responsibility: random names and link tokens."""
import secrets
import time
from typing import Callable, Optional

from ..protocols import ITokenGenerator


class SecureTokenGenerator(ITokenGenerator):
    """
    Token generator backed by the secrets module.

    Suffixes are "{epoch_ms}-{hex}"; collisions are improbable but unchecked.
    """

    def __init__(
        self,
        fragment_bytes: int = 4,
        token_bytes: int = 24,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._fragment_bytes = fragment_bytes
        self._token_bytes = token_bytes
        self._clock = clock if clock is not None else time.time

    def file_suffix(self) -> str:
        millis = int(self._clock() * 1000)
        return f"{millis}-{secrets.token_hex(self._fragment_bytes)}"

    def link_token(self) -> str:
        return secrets.token_urlsafe(self._token_bytes)


def build_storage_path(prefix: str, suffix: str, extension: str) -> str:
    """Join prefix/suffix.ext, omitting the dot when there is no extension."""
    name = f"{suffix}.{extension}" if extension else suffix
    return f"{prefix}/{name}" if prefix else name
