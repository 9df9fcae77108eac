from __future__ import annotations

import csv
import io

from consumption_tracker.cli import main
from ledger.services import LedgerService
from ledger.storage import FileStorage


def _run(tmp_path, *argv):
    return main(["--data-dir", str(tmp_path), *argv])


def test_add_list_and_settle(tmp_path, capsys) -> None:
    assert _run(tmp_path, "item", "add", "bier", "--label", "Koen") == 0
    assert _run(tmp_path, "item", "add", "Soda") == 0
    out = capsys.readouterr().out
    assert "Beer EUR 1.40 | Koen | open" in out

    items = LedgerService(FileStorage(tmp_path)).items.list()
    assert _run(tmp_path, "payment", "settle", *[item.id for item in items], "--note", "round") == 0
    assert "EUR 2.10" in capsys.readouterr().out

    assert _run(tmp_path, "item", "list") == 0
    assert "No items found." in capsys.readouterr().out
    assert _run(tmp_path, "item", "list", "--all", "--search", "koen") == 0
    assert "Found 1 items" in capsys.readouterr().out


def test_export_and_reverse(tmp_path, capsys) -> None:
    _run(tmp_path, "item", "add", "Candy", "--label", "Anna")
    ledger = LedgerService(FileStorage(tmp_path))
    batch = ledger.payments.settle([item.id for item in ledger.items.list()])
    capsys.readouterr()

    assert _run(tmp_path, "payment", "export", batch.id) == 0
    rows = list(csv.DictReader(io.StringIO(capsys.readouterr().out)))
    assert rows[0]["user"] == "Anna"
    assert rows[0]["price_cents"] == "70"

    target = tmp_path / "out.csv"
    assert _run(tmp_path, "payment", "export", batch.id, "--output", str(target)) == 0
    assert target.read_text(encoding="utf-8").startswith("type,price_cents")

    assert _run(tmp_path, "payment", "reverse", batch.id) == 0
    assert _run(tmp_path, "payment", "reverse", batch.id) == 0
    assert "nothing to reverse" in capsys.readouterr().out


def test_settings_and_errors(tmp_path, capsys) -> None:
    assert _run(tmp_path, "settings", "set", "--base-price", "0,75", "--currency", "usd") == 0
    assert "Beer: USD 1.50" in capsys.readouterr().out
    assert _run(tmp_path, "settings", "set", "--base-price", "zero") == 1
    assert "Validation error" in capsys.readouterr().err
    assert _run(tmp_path, "payment", "show", "missing") == 1
    assert "not found" in capsys.readouterr().err
    assert _run(tmp_path, "item", "add", "Wine") == 1


def test_reconcile_reports_consistent_ledger(tmp_path, capsys) -> None:
    assert _run(tmp_path, "reconcile") == 0
    assert "Ledger is consistent." in capsys.readouterr().out
