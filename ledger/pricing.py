"""Price derivation for new items."""

from __future__ import annotations

from .models import ItemType, Settings

BEER_MULTIPLIER = 2


def price_for(item_type: ItemType, settings: Settings) -> int:
    """Soda and candy cost the base price; beer costs double."""
    if item_type is ItemType.BEER:
        return BEER_MULTIPLIER * settings.base_price_cents
    return settings.base_price_cents
