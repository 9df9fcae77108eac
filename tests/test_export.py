from __future__ import annotations

import csv
import io
from datetime import datetime, timezone

from ledger.export import format_cents, to_csv
from ledger.models import Item, ItemType, PaymentBatch
from ledger.payments import total_for

T0 = datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc)
BATCH = PaymentBatch(id="batch-1", created_at=T0)


def _items():
    return [
        Item(id="a", item_type=ItemType.SODA, created_at=T0, price_cents=70, paid_at=T0,
             payment_batch_id="batch-1", label="Jansen, Koen"),
        Item(id="b", item_type=ItemType.BEER, created_at=T0, price_cents=140, paid_at=T0,
             payment_batch_id="batch-1"),
        Item(id="c", item_type=ItemType.CANDY, created_at=T0, price_cents=70),
    ]


def test_csv_layout() -> None:
    lines = to_csv(BATCH, _items()).splitlines()
    assert lines[0] == "type,price_cents,date,user,paid_at,batch_id"
    assert lines[2] == "Beer,140,2024-05-01T20:00:00.000Z,,2024-05-01T20:00:00.000Z,batch-1"
    assert len(lines) == 3


def test_csv_quotes_labels_with_commas() -> None:
    rows = list(csv.DictReader(io.StringIO(to_csv(BATCH, _items()))))
    assert rows[0]["user"] == "Jansen, Koen"
    assert rows[1]["user"] == ""


def test_csv_price_column_sums_to_batch_total() -> None:
    rows = csv.DictReader(io.StringIO(to_csv(BATCH, _items())))
    assert sum(int(row["price_cents"]) for row in rows) == total_for(BATCH, _items())


def test_empty_batch_exports_header_only() -> None:
    assert to_csv(PaymentBatch(id="empty", created_at=T0), _items()) == (
        "type,price_cents,date,user,paid_at,batch_id\n"
    )


def test_format_cents() -> None:
    assert format_cents(140, "EUR") == "EUR 1.40"
    assert format_cents(5, "USD") == "USD 0.05"
