"""Validation helpers shared across the ledger services and adapters."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, List, Optional

from .exceptions import ValidationError
from .models import ItemType

CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")

LABEL_MAX_LENGTH = 50
NOTE_MAX_LENGTH = 200


def parse_price_cents(raw: object, field: str = "base_price") -> int:
    """Convert a user-entered price in major units ("0,70", "1.5", 2) to positive cents."""
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value")
    text = str(raw).strip().replace(",", ".")
    try:
        amount = Decimal(text)
        if not amount.is_finite():
            raise InvalidOperation(text)
        cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation as exc:
        raise ValidationError(f"{field} must be a numeric value") from exc
    if cents <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return cents


def validate_cents(raw: object, field: str = "base_price_cents") -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValidationError(f"{field} must be an integer")
    if raw <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return raw


def validate_currency(code: object, default: str = "EUR") -> str:
    """Blank input falls back to ``default``; anything else must be an ISO 4217 code."""
    if code is None:
        return default
    if not isinstance(code, str):
        raise ValidationError("currency_code must be a 3-letter ISO 4217 code")
    canonical = code.strip().upper()
    if not canonical:
        return default
    if not CURRENCY_PATTERN.fullmatch(canonical):
        raise ValidationError("currency_code must be a 3-letter ISO 4217 code")
    return canonical


def validate_optional_text(value: object, field: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        return None
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_label(value: object) -> Optional[str]:
    return validate_optional_text(value, "label", LABEL_MAX_LENGTH)


def validate_note(value: object) -> Optional[str]:
    return validate_optional_text(value, "note", NOTE_MAX_LENGTH)


def validate_item_type(value: object) -> ItemType:
    if isinstance(value, ItemType):
        return value
    if not isinstance(value, str):
        raise ValidationError("item_type must be a string")
    try:
        return ItemType.from_str(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in ItemType)
        raise ValidationError(f"item_type must be one of: {allowed}") from exc


def validate_item_ids(raw_ids: Optional[Iterable[object]]) -> List[str]:
    """Return the distinct ids in selection order; an empty selection is rejected."""
    if raw_ids is None or isinstance(raw_ids, (str, bytes)):
        raise ValidationError("item_ids must be a list of item ids")
    ids: List[str] = []
    seen = set()
    for raw in raw_ids:
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError("item_ids must contain non-empty strings")
        item_id = raw.strip()
        if item_id in seen:
            continue
        seen.add(item_id)
        ids.append(item_id)
    if not ids:
        raise ValidationError("Select at least one item to settle")
    return ids
