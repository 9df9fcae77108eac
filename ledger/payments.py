"""Pure transforms over payment batches and the items they settle."""

from __future__ import annotations

from typing import Iterable, List, Tuple

from .items import clear_paid, total_cents
from .models import Item, PaymentBatch


def items_for(batch: PaymentBatch, items: Iterable[Item]) -> List[Item]:
    return [item for item in items if item.payment_batch_id == batch.id]


def total_for(batch: PaymentBatch, items: Iterable[Item]) -> int:
    return total_cents(items_for(batch, items))


def reverse(
    batch: PaymentBatch, items: List[Item], batches: List[PaymentBatch]
) -> Tuple[List[Item], List[PaymentBatch]]:
    """Unsettle the batch's items and drop the batch.

    Reversing a batch that is no longer in ``batches`` returns both
    collections unchanged.
    """
    if not any(existing.id == batch.id for existing in batches):
        return list(items), list(batches)
    return clear_paid(items, batch.id), [b for b in batches if b.id != batch.id]
