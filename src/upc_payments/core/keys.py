"""
Key material sources.

Keys are loaded on every call and never cached, so rotating a key file on
disk takes effect immediately.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from .errors import KeyUnavailable

__all__ = [
    "KeySource",
    "FileKeySource",
    "MemoryKeySource",
    "as_key_source",
]


@runtime_checkable
class KeySource(Protocol):
    def load(self) -> bytes:
        """Return the PEM (or DER) encoded key bytes."""
        ...


class FileKeySource:
    """Reads a key from the filesystem each time :meth:`load` is called."""

    def __init__(self, path: Optional[Union[str, Path]]) -> None:
        self.path = str(path) if path else ""

    def load(self) -> bytes:
        if not self.path.strip():
            raise KeyUnavailable("Key path is not configured")
        try:
            data = Path(self.path).read_bytes()
        except OSError as exc:
            raise KeyUnavailable(f"Unable to read key file {self.path}: {exc}") from exc
        if not data.strip():
            raise KeyUnavailable(f"Key file {self.path} is empty")
        return data

    def __repr__(self) -> str:
        return f"FileKeySource({self.path!r})"


class MemoryKeySource:
    """Serves key bytes held in memory. Mostly useful for tests."""

    def __init__(self, data: Optional[Union[str, bytes]]) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._data = data or b""

    def load(self) -> bytes:
        if not self._data.strip():
            raise KeyUnavailable("In-memory key is empty")
        return self._data

    def __repr__(self) -> str:
        return "MemoryKeySource(<redacted>)"


def as_key_source(value: Union[KeySource, str, Path, None]) -> KeySource:
    """
    Coerce a path (or ``None``) into a :class:`FileKeySource`.

    Objects already implementing :class:`KeySource` are returned unchanged.
    """
    if isinstance(value, KeySource):
        return value
    return FileKeySource(value)
