"""Write-through cache over one persisted collection."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, Optional, TypeVar

from .codec import Loaded, LoadStatus
from .exceptions import PersistenceError
from .storage import Storage

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class Repository(Generic[T]):
    """Holds the latest snapshot of a collection and persists whole snapshots.

    The cached value is only replaced after the storage write succeeded, so
    memory never runs ahead of what is on disk. ``mutate`` runs the
    read-modify-write cycle under ``lock``; pass the same lock to every
    repository that takes part in a multi-collection operation.
    """

    def __init__(
        self,
        storage: Storage,
        key: str,
        encode: Callable[[T], str],
        decode: Callable[[Optional[str]], Loaded[T]],
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self._storage = storage
        self._key = key
        self._encode = encode
        self._decode = decode
        self._lock = lock or threading.RLock()
        self._loaded: Loaded[T] = self.load()

    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> T:
        return self._loaded.value

    @property
    def status(self) -> LoadStatus:
        return self._loaded.status

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def load(self) -> Loaded[T]:
        """Read the stored blob; unreadable storage falls back like corrupt data."""
        with self._lock:
            try:
                raw = self._storage.get(self._key)
            except PersistenceError as exc:
                LOGGER.warning("Reading %s failed, using default: %s", self._key, exc)
                loaded = self._decode(None)
                loaded = Loaded(loaded.value, LoadStatus.CORRUPT, str(exc))
            else:
                loaded = self._decode(raw)
            self._loaded = loaded
            return loaded

    def save(self, value: T) -> None:
        with self._lock:
            self._storage.set(self._key, self._encode(value))
            self._loaded = Loaded(value)

    def mutate(self, change: Callable[[T], T]) -> T:
        with self._lock:
            updated = change(self.value)
            self.save(updated)
            return updated
