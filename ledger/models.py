"""Data models for the consumption ledger domain."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

__all__ = [
    "DEFAULT_SETTINGS",
    "Item",
    "ItemType",
    "PaymentBatch",
    "Settings",
    "isoformat_utc",
    "parse_datetime",
    "utcnow",
]


def utcnow() -> datetime:
    """Current UTC time truncated to the millisecond precision we persist."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with milliseconds and trailing Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="milliseconds")
    # datetime.isoformat renders +00:00 for UTC; replace with the shorter Z form.
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Treat naive datetimes as UTC to avoid accidental timezone drift.
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _require_str(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{field} must be a non-empty string")
    return value


def _optional_str(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    return value


class ItemType(str, Enum):
    """The closed set of things that can be put on the tab."""

    BEER = "Beer"
    SODA = "Soda"
    CANDY = "Candy"

    @classmethod
    def from_str(cls, value: str) -> "ItemType":
        """Coerce arbitrary casing (and the Dutch names) into an item type."""
        try:
            canonical = value.strip().lower()
        except AttributeError as error:
            raise ValueError(f"Unsupported item type: {value!r}") from error
        for member in cls:
            if member.value.lower() == canonical:
                return member
        try:
            return _ALIASES[canonical]
        except KeyError as error:
            raise ValueError(f"Unsupported item type: {value!r}") from error


_ALIASES = {
    "bier": ItemType.BEER,
    "fris": ItemType.SODA,
    "snoep": ItemType.CANDY,
}


@dataclass(frozen=True)
class Settings:
    base_price_cents: int
    currency_code: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_price_cents": self.base_price_cents,
            "currency_code": self.currency_code,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        base = data["base_price_cents"]
        if isinstance(base, bool) or not isinstance(base, int) or base <= 0:
            raise ValueError("base_price_cents must be a positive integer")
        currency = data["currency_code"]
        if not isinstance(currency, str):
            raise ValueError("currency_code must be a string")
        return cls(base_price_cents=base, currency_code=currency)


DEFAULT_SETTINGS = Settings(base_price_cents=70, currency_code="EUR")


@dataclass(frozen=True)
class Item:
    id: str
    item_type: ItemType
    created_at: datetime
    price_cents: int
    label: Optional[str] = None
    paid_at: Optional[datetime] = None
    payment_batch_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.price_cents < 0:
            raise ValueError("price_cents must not be negative")
        # The two paid fields move together.
        if (self.paid_at is None) != (self.payment_batch_id is None):
            raise ValueError("paid_at and payment_batch_id must be set together")

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None

    def settled(self, batch_id: str, paid_at: datetime) -> "Item":
        return replace(self, paid_at=paid_at, payment_batch_id=batch_id)

    def unsettled(self) -> "Item":
        return replace(self, paid_at=None, payment_batch_id=None)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the item to JSON-friendly natives."""
        return {
            "id": self.id,
            "item_type": self.item_type.value,
            "created_at": isoformat_utc(self.created_at),
            "price_cents": self.price_cents,
            "label": self.label,
            "paid_at": isoformat_utc(self.paid_at) if self.paid_at else None,
            "payment_batch_id": self.payment_batch_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        """Hydrate an Item from JSON-native data."""
        price = data["price_cents"]
        if isinstance(price, bool) or not isinstance(price, int):
            raise ValueError("price_cents must be an integer")
        paid_at = data.get("paid_at")
        return cls(
            id=_require_str(data["id"], "id"),
            item_type=ItemType(data["item_type"]),
            created_at=parse_datetime(data["created_at"]),
            price_cents=price,
            label=_optional_str(data.get("label"), "label"),
            paid_at=parse_datetime(paid_at) if paid_at else None,
            payment_batch_id=_optional_str(data.get("payment_batch_id"), "payment_batch_id"),
        )


@dataclass(frozen=True)
class PaymentBatch:
    id: str
    created_at: datetime
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": isoformat_utc(self.created_at),
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentBatch":
        return cls(
            id=_require_str(data["id"], "id"),
            created_at=parse_datetime(data["created_at"]),
            note=_optional_str(data.get("note"), "note"),
        )
