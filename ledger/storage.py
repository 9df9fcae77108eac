"""Key-value persistence adapters for the consumption ledger."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Protocol

from .exceptions import PersistenceError


class Storage(Protocol):
    """Raw text blobs by key; the ledger's only I/O boundary."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, text: str) -> None: ...


class MemoryStorage:
    """In-process storage; handy for tests and embedding."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._blobs: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def set(self, key: str, text: str) -> None:
        self._blobs[key] = text


class FileStorage:
    """Simple file-based storage with crash-safe writes, one file per key."""

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Unable to create data directory {self._base_path}") from exc

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

    def set(self, key: str, text: str) -> None:
        path = self._path_for(key)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
            # Use replace for atomic move on POSIX; ensures crash-safe persistence.
            temp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise PersistenceError(f"Invalid storage key {key!r}")
        return self._base_path / f"{key}.json"

    @property
    def base_path(self) -> Path:
        return self._base_path
