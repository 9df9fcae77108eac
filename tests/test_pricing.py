from __future__ import annotations

import pytest

from ledger.models import ItemType, Settings
from ledger.pricing import price_for


@pytest.mark.parametrize("base", [1, 70, 125])
def test_beer_costs_twice_soda_and_candy(base) -> None:
    settings = Settings(base_price_cents=base, currency_code="EUR")
    soda = price_for(ItemType.SODA, settings)
    candy = price_for(ItemType.CANDY, settings)
    assert soda == candy == base
    assert price_for(ItemType.BEER, settings) == 2 * soda
