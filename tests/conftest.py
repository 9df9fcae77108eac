"""Shared fixtures: in-memory storage, a deterministic clock and id factory."""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from ledger.exceptions import PersistenceError
from ledger.services import LedgerService
from ledger.storage import MemoryStorage

START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FlakyStorage(MemoryStorage):
    """Memory storage whose writes to selected keys can be made to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.failing_keys = set()

    def set(self, key: str, text: str) -> None:
        if key in self.failing_keys:
            raise PersistenceError(f"simulated write failure for {key}")
        super().set(key, text)


class Clock:
    def __init__(self) -> None:
        self._ticks = itertools.count()

    def __call__(self) -> datetime:
        return START + timedelta(minutes=next(self._ticks))


@pytest.fixture
def storage():
    return FlakyStorage()


@pytest.fixture
def ledger(storage):
    counter = itertools.count(1)
    return LedgerService(storage, clock=Clock(), id_factory=lambda: f"id-{next(counter)}")
