"""Console interface for the consumption tracker."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from ledger.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from ledger.export import format_cents
from ledger.items import total_cents
from ledger.models import Item, ItemType
from ledger.services import LedgerService
from ledger.storage import FileStorage


def _load_ledger(data_dir: Path) -> LedgerService:
    return LedgerService(FileStorage(data_dir))


def _format_item(item: Item, currency: str) -> str:
    status = f"paid {item.paid_at:%Y-%m-%d %H:%M} ({item.payment_batch_id})" if item.paid_at else "open"
    label = f" | {item.label}" if item.label else ""
    return (
        f"[{item.id}] {item.created_at:%Y-%m-%d %H:%M} {item.item_type.value} "
        f"{format_cents(item.price_cents, currency)}{label} | {status}"
    )


def handle_item(args: argparse.Namespace, ledger: LedgerService) -> None:
    currency = ledger.settings.current().currency_code
    if args.command == "add":
        item = ledger.items.create(args.item_type, args.label)
        print("Item added:\n" + _format_item(item, currency))
    elif args.command == "preview":
        cents = ledger.items.preview_price(args.item_type)
        print(f"{args.item_type}: {format_cents(cents, currency)}")
    elif args.command == "list":
        items = ledger.items.overview(only_unpaid=not args.all, search_text=args.search or "")
        if not items:
            print("No items found.")
            return
        total = format_cents(total_cents(items), currency)
        print(f"Found {len(items)} items (total {total}):")
        for item in items:
            print(_format_item(item, currency))


def handle_payment(args: argparse.Namespace, ledger: LedgerService) -> None:
    currency = ledger.settings.current().currency_code
    if args.command == "settle":
        batch = ledger.payments.settle(args.item_ids, args.note)
        total = format_cents(ledger.payments.total_for(batch.id), currency)
        print(f"Payment {batch.id} created for {total}.")
    elif args.command == "list":
        summaries = ledger.payments.summaries()
        if not summaries:
            print("No payments found.")
            return
        for summary in summaries:
            note = f" | {summary.batch.note}" if summary.batch.note else ""
            print(
                f"[{summary.batch.id}] {summary.batch.created_at:%Y-%m-%d %H:%M} "
                f"{summary.item_count} items {format_cents(summary.total_cents, currency)}{note}"
            )
    elif args.command == "show":
        batch = ledger.payments.get(args.id)
        items = ledger.payments.items_for(args.id)
        print(f"Payment {batch.id} ({batch.created_at:%Y-%m-%d %H:%M}):")
        for item in items:
            print(_format_item(item, currency))
        print(f"Total: {format_cents(total_cents(items), currency)}")
    elif args.command == "export":
        text = ledger.payments.export_csv(args.id)
        if args.output:
            args.output.write_text(text, encoding="utf-8")
            print(f"Payment {args.id} exported to {args.output}.")
        else:
            sys.stdout.write(text)
    elif args.command == "reverse":
        if ledger.payments.reverse(args.id):
            print(f"Payment {args.id} reversed.")
        else:
            print(f"Payment {args.id} does not exist; nothing to reverse.")


def handle_settings(args: argparse.Namespace, ledger: LedgerService) -> None:
    if args.command == "set":
        settings = ledger.settings.update(base_price=args.base_price, currency_code=args.currency)
        print("Settings saved.")
    else:
        settings = ledger.settings.current()
    base = format_cents(settings.base_price_cents, settings.currency_code)
    beer = format_cents(2 * settings.base_price_cents, settings.currency_code)
    print(f"Soda/Candy: {base}\nBeer: {beer}")


def handle_reconcile(args: argparse.Namespace, ledger: LedgerService) -> None:
    report = ledger.payments.reconcile()
    if not report.changed:
        print("Ledger is consistent.")
        return
    print(
        f"Released {report.released_items} items and removed "
        f"{report.removed_batches} empty payments."
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Consumption Tracker CLI")
    parser.add_argument(
        "--data-dir",
        default=Path(os.getenv("CONSUMPTION_TRACKER_DATA_DIR", "data")),
        type=Path,
        help="Directory to store JSON data (default: ./data)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="entity", required=True)
    type_names = [member.value for member in ItemType]

    item_parser = subparsers.add_parser("item", help="Record and list items")
    item_sub = item_parser.add_subparsers(dest="command", required=True)

    item_add = item_sub.add_parser("add", help="Record a new item")
    item_add.add_argument("item_type", metavar="TYPE", help=f"One of: {', '.join(type_names)}")
    item_add.add_argument("--label", help="Who it was for, e.g. a name")

    item_preview = item_sub.add_parser("preview", help="Show the price a new item would get")
    item_preview.add_argument("item_type", metavar="TYPE")

    item_list = item_sub.add_parser("list", help="List items, newest first")
    item_list.add_argument("--all", action="store_true", help="Include paid items")
    item_list.add_argument("--search", help="Match label or type")

    payment_parser = subparsers.add_parser("payment", help="Manage payment batches")
    payment_sub = payment_parser.add_subparsers(dest="command", required=True)

    payment_settle = payment_sub.add_parser("settle", help="Mark items as paid in one batch")
    payment_settle.add_argument("item_ids", nargs="+")
    payment_settle.add_argument("--note")

    payment_sub.add_parser("list", help="List payment batches")

    payment_show = payment_sub.add_parser("show", help="Show a payment batch")
    payment_show.add_argument("id")

    payment_export = payment_sub.add_parser("export", help="Export a payment batch as CSV")
    payment_export.add_argument("id")
    payment_export.add_argument("--output", type=Path)

    payment_reverse = payment_sub.add_parser("reverse", help="Undo a payment batch")
    payment_reverse.add_argument("id")

    settings_parser = subparsers.add_parser("settings", help="Show or change prices")
    settings_sub = settings_parser.add_subparsers(dest="command", required=True)
    settings_sub.add_parser("show", help="Show current prices")
    settings_set = settings_sub.add_parser("set", help="Change prices")
    settings_set.add_argument("--base-price", help="Soda/Candy price, e.g. 0,70")
    settings_set.add_argument("--currency", help="3-letter currency code")

    subparsers.add_parser("reconcile", help="Repair half-applied payments")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
    )

    try:
        ledger = _load_ledger(args.data_dir)
        if args.entity == "item":
            handle_item(args, ledger)
        elif args.entity == "payment":
            handle_payment(args, ledger)
        elif args.entity == "settings":
            handle_settings(args, ledger)
        elif args.entity == "reconcile":
            handle_reconcile(args, ledger)
        else:  # pragma: no cover - argparse should prevent this
            parser.error(f"Unknown entity: {args.entity}")
            return 2
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
