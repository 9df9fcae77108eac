from __future__ import annotations

import pytest

from ledger.exceptions import ValidationError
from ledger.models import ItemType
from ledger.validators import (
    parse_price_cents,
    validate_currency,
    validate_item_ids,
    validate_item_type,
    validate_label,
)


@pytest.mark.parametrize(
    "raw, cents",
    [("0,70", 70), ("0.7", 70), ("1", 100), (1.255, 126), (" 2,5 ", 250)],
)
def test_parse_price_cents(raw, cents) -> None:
    assert parse_price_cents(raw) == cents


@pytest.mark.parametrize("raw", ["", "abc", "0", "-1", "0,001", "nan", "inf", True, None])
def test_parse_price_cents_rejects_bad_input(raw) -> None:
    with pytest.raises(ValidationError):
        parse_price_cents(raw)


def test_currency_is_upper_cased_and_defaults_when_blank() -> None:
    assert validate_currency("usd") == "USD"
    assert validate_currency("", default="GBP") == "GBP"
    assert validate_currency(None) == "EUR"
    with pytest.raises(ValidationError):
        validate_currency("EURO")


def test_blank_label_is_stored_as_absent() -> None:
    assert validate_label("  ") is None
    assert validate_label(" Koen ") == "Koen"
    with pytest.raises(ValidationError):
        validate_label("x" * 51)


def test_item_type_validation() -> None:
    assert validate_item_type("fris") is ItemType.SODA
    with pytest.raises(ValidationError):
        validate_item_type("wine")
    with pytest.raises(ValidationError):
        validate_item_type(None)


def test_item_ids_are_deduplicated_and_required() -> None:
    assert validate_item_ids(["a", "b", "a"]) == ["a", "b"]
    with pytest.raises(ValidationError):
        validate_item_ids([])
    with pytest.raises(ValidationError):
        validate_item_ids("a")
    with pytest.raises(ValidationError):
        validate_item_ids([""])
