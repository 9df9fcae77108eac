"""Pure transforms over the item collection.

Nothing in here touches storage: every function takes a snapshot and returns
a new one (or a derived value). ``ItemService`` persists the results.
"""

from __future__ import annotations

from datetime import datetime
from typing import Collection, Iterable, List

from .models import Item


def filter_items(
    items: Iterable[Item], only_unpaid: bool = False, search_text: str = ""
) -> List[Item]:
    """Keep items that are unpaid (when asked) and match the search text.

    The search is a case-insensitive substring match against the label or the
    item type name; an empty search matches everything.
    """
    needle = (search_text or "").lower()

    def matches(item: Item) -> bool:
        if only_unpaid and item.is_paid:
            return False
        if not needle:
            return True
        return needle in (item.label or "").lower() or needle in item.item_type.value.lower()

    return [item for item in items if matches(item)]


def mark_paid(
    items: Iterable[Item], ids: Collection[str], batch_id: str, paid_at: datetime
) -> List[Item]:
    selected = set(ids)
    return [item.settled(batch_id, paid_at) if item.id in selected else item for item in items]


def clear_paid(items: Iterable[Item], batch_id: str) -> List[Item]:
    return [item.unsettled() if item.payment_batch_id == batch_id else item for item in items]


def newest_first(items: Iterable[Item]) -> List[Item]:
    return sorted(items, key=lambda item: item.created_at, reverse=True)


def total_cents(items: Iterable[Item]) -> int:
    return sum(item.price_cents for item in items)
