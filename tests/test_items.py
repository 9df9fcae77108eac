from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ledger.items import clear_paid, filter_items, mark_paid, newest_first, total_cents
from ledger.models import Item, ItemType

T0 = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _item(item_id, item_type=ItemType.SODA, label=None, minutes=0, batch=None):
    return Item(
        id=item_id,
        item_type=item_type,
        created_at=T0 + timedelta(minutes=minutes),
        price_cents=140 if item_type is ItemType.BEER else 70,
        label=label,
        paid_at=T0 if batch else None,
        payment_batch_id=batch,
    )


def test_filter_only_unpaid_excludes_paid_items() -> None:
    items = [_item("a"), _item("b", batch="x"), _item("c")]
    result = filter_items(items, only_unpaid=True)
    assert [item.id for item in result] == ["a", "c"]
    assert not any(item.is_paid for item in result)


def test_filter_search_matches_label_or_type_case_insensitively() -> None:
    items = [
        _item("a", label="Koen"),
        _item("b", label="koenraad", batch="x"),
        _item("c", label="Anna"),
        _item("d", item_type=ItemType.BEER),
    ]
    assert [i.id for i in filter_items(items, only_unpaid=True, search_text="KOEN")] == ["a"]
    assert [i.id for i in filter_items(items, search_text="koen")] == ["a", "b"]
    assert [i.id for i in filter_items(items, search_text="beer")] == ["d"]
    assert len(filter_items(items, search_text="")) == 4


def test_mark_paid_only_touches_selected_ids() -> None:
    items = [_item("a"), _item("b"), _item("c")]
    updated = mark_paid(items, ["a", "c", "unknown"], "batch-1", T0)
    assert [item.payment_batch_id for item in updated] == ["batch-1", None, "batch-1"]
    assert updated[1] is items[1]
    assert all(item.payment_batch_id is None for item in items)


def test_clear_paid_only_touches_the_given_batch() -> None:
    items = [_item("a", batch="x"), _item("b", batch="y"), _item("c")]
    updated = clear_paid(items, "x")
    assert [item.payment_batch_id for item in updated] == [None, "y", None]
    assert updated[0].paid_at is None


def test_newest_first_and_total() -> None:
    items = [_item("old", minutes=0), _item("new", ItemType.BEER, minutes=5)]
    assert [item.id for item in newest_first(items)] == ["new", "old"]
    assert total_cents(items) == 210


def test_whitespace_search_is_not_treated_as_empty() -> None:
    items = [_item("a", label="Koen"), _item("b", label="Anna Jansen")]
    assert [item.id for item in filter_items(items, search_text=" ")] == ["b"]
