"""CSV export of payment batches and display formatting of amounts."""

from __future__ import annotations

import csv
import io
from decimal import Decimal
from typing import Iterable

from .models import Item, PaymentBatch, isoformat_utc
from .payments import items_for

CSV_HEADER = ("type", "price_cents", "date", "user", "paid_at", "batch_id")


def to_csv(batch: PaymentBatch, items: Iterable[Item]) -> str:
    """Render the items settled by ``batch`` as CSV text, header first.

    Fields are quoted per RFC 4180 when needed, so labels containing commas,
    quotes or line breaks survive a round trip through any CSV reader.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for item in items_for(batch, items):
        writer.writerow(
            [
                item.item_type.value,
                item.price_cents,
                isoformat_utc(item.created_at),
                item.label or "",
                isoformat_utc(item.paid_at) if item.paid_at else "",
                batch.id,
            ]
        )
    return buffer.getvalue()


def format_cents(cents: int, currency_code: str) -> str:
    amount = Decimal(cents) / 100
    return f"{currency_code} {amount:.2f}"
