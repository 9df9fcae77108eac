"""JSON encoding of the three persisted collections.

Decoding never raises on bad data. Each ``decode_*`` returns a :class:`Loaded`
that carries the value together with how it was obtained, so callers can tell
an empty ledger apart from one that was recovered from a corrupt blob.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar

from .models import DEFAULT_SETTINGS, Item, PaymentBatch, Settings

LOGGER = logging.getLogger(__name__)

ITEMS_KEY = "ct.items.v1"
SETTINGS_KEY = "ct.settings.v1"
PAYMENTS_KEY = "ct.payments.v1"

T = TypeVar("T")


class LoadStatus(str, Enum):
    OK = "ok"
    MISSING = "missing"
    CORRUPT = "corrupt"


@dataclass(frozen=True)
class Loaded(Generic[T]):
    value: T
    status: LoadStatus = LoadStatus.OK
    reason: Optional[str] = None

    @property
    def used_default(self) -> bool:
        return self.status is not LoadStatus.OK


def _dump(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def encode_items(items: List[Item]) -> str:
    return _dump([item.to_dict() for item in items])


def encode_batches(batches: List[PaymentBatch]) -> str:
    return _dump([batch.to_dict() for batch in batches])


def encode_settings(settings: Settings) -> str:
    return _dump(settings.to_dict())


def _decode(
    text: Optional[str],
    what: str,
    build: Callable[[Any], T],
    default: Callable[[], T],
) -> Loaded[T]:
    if text is None:
        return Loaded(default(), LoadStatus.MISSING, f"no stored {what}")
    try:
        payload = json.loads(text)
        value = build(payload)
    except (ValueError, KeyError, TypeError, AttributeError, RecursionError) as exc:
        # json.JSONDecodeError is a ValueError subclass.
        reason = f"unreadable {what}: {exc}"
        LOGGER.warning("Falling back to default %s (%s)", what, reason)
        return Loaded(default(), LoadStatus.CORRUPT, reason)
    return Loaded(value)


def _build_list(payload: Any, factory: Callable[[Any], T]) -> List[T]:
    if not isinstance(payload, list):
        raise TypeError(f"expected a list, got {type(payload).__name__}")
    return [factory(entry) for entry in payload]


def decode_items(text: Optional[str]) -> Loaded[List[Item]]:
    return _decode(text, "items", lambda p: _build_list(p, Item.from_dict), list)


def decode_batches(text: Optional[str]) -> Loaded[List[PaymentBatch]]:
    return _decode(text, "payment batches", lambda p: _build_list(p, PaymentBatch.from_dict), list)


def decode_settings(text: Optional[str]) -> Loaded[Settings]:
    def build(payload: Any) -> Settings:
        if not isinstance(payload, dict):
            raise TypeError(f"expected an object, got {type(payload).__name__}")
        return Settings.from_dict(payload)

    return _decode(text, "settings", build, lambda: DEFAULT_SETTINGS)
