"""Framework-agnostic business services for the consumption ledger."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional
from uuid import uuid4

from . import items as item_ops
from . import payments as payment_ops
from .codec import (
    ITEMS_KEY,
    PAYMENTS_KEY,
    SETTINGS_KEY,
    decode_batches,
    decode_items,
    decode_settings,
    encode_batches,
    encode_items,
    encode_settings,
)
from .exceptions import PersistenceError, RecordNotFoundError
from .export import to_csv
from .models import Item, PaymentBatch, Settings, utcnow
from .pricing import price_for
from .repository import Repository
from .storage import Storage
from .validators import (
    parse_price_cents,
    validate_cents,
    validate_currency,
    validate_item_ids,
    validate_item_type,
    validate_label,
    validate_note,
)

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def _new_id() -> str:
    return str(uuid4())


class SettingsService:
    """Holds the pricing settings singleton."""

    def __init__(self, storage: Storage, lock: Optional[threading.RLock] = None) -> None:
        self._repo: Repository[Settings] = Repository(
            storage, SETTINGS_KEY, encode_settings, decode_settings, lock
        )

    def load(self) -> Settings:
        """Reload from storage; defaults are returned when nothing usable is stored."""
        return self._repo.load().value

    def current(self) -> Settings:
        return self._repo.value

    def save(self, settings: Settings) -> None:
        """Overwrite the stored settings. Callers validate first."""
        self._repo.save(settings)
        LOGGER.info(
            "Settings saved: base price %s cents, currency %s",
            settings.base_price_cents,
            settings.currency_code,
        )

    def update(
        self,
        base_price: Optional[object] = None,
        currency_code: Optional[object] = None,
        *,
        base_price_cents: Optional[object] = None,
    ) -> Settings:
        """Validate raw user input and save it; invalid input leaves settings untouched."""
        current = self.current()
        if base_price_cents is not None:
            cents = validate_cents(base_price_cents)
        elif base_price is not None:
            cents = parse_price_cents(base_price)
        else:
            cents = current.base_price_cents
        currency = validate_currency(currency_code, default=current.currency_code)
        settings = Settings(base_price_cents=cents, currency_code=currency)
        self.save(settings)
        return settings

    @staticmethod
    def beer_price_preview(base_price: object) -> int:
        return 2 * parse_price_cents(base_price)


class ItemService:
    """Creates and lists purchase records."""

    def __init__(
        self,
        storage: Storage,
        settings: SettingsService,
        lock: Optional[threading.RLock] = None,
        *,
        clock: Clock = utcnow,
        id_factory: IdFactory = _new_id,
    ) -> None:
        self._repo: Repository[List[Item]] = Repository(
            storage, ITEMS_KEY, encode_items, decode_items, lock
        )
        self._settings = settings
        self._clock = clock
        self._id_factory = id_factory

    @property
    def repository(self) -> Repository[List[Item]]:
        return self._repo

    # Public API -----------------------------------------------------------
    def create(
        self,
        item_type: object,
        label: Optional[object] = None,
        settings: Optional[Settings] = None,
    ) -> Item:
        kind = validate_item_type(item_type)
        cleaned_label = validate_label(label)
        settings = settings or self._settings.current()
        item = Item(
            id=self._id_factory(),
            item_type=kind,
            created_at=self._clock(),
            price_cents=price_for(kind, settings),
            label=cleaned_label,
        )
        self._repo.mutate(lambda items: [*items, item])
        LOGGER.info("Added %s %s for %s cents", kind.value, item.id, item.price_cents)
        return item

    def preview_price(self, item_type: object, settings: Optional[Settings] = None) -> int:
        return price_for(validate_item_type(item_type), settings or self._settings.current())

    def list(self) -> List[Item]:
        """All items in insertion order."""
        return list(self._repo.value)

    def overview(self, only_unpaid: bool = True, search_text: str = "") -> List[Item]:
        return item_ops.filter_items(
            item_ops.newest_first(self._repo.value), only_unpaid=only_unpaid, search_text=search_text
        )

    def get(self, item_id: str) -> Item:
        for item in self._repo.value:
            if item.id == item_id:
                return item
        raise RecordNotFoundError(f"Item {item_id} not found")

    def load(self) -> None:
        self._repo.load()


@dataclass(frozen=True)
class BatchSummary:
    batch: PaymentBatch
    item_count: int
    total_cents: int


@dataclass(frozen=True)
class ReconcileReport:
    released_items: int
    removed_batches: int

    @property
    def changed(self) -> bool:
        return bool(self.released_items or self.removed_batches)


class PaymentService:
    """Settles items into payment batches and reverses settlements.

    Settle and reverse touch two collections that are stored separately. Both
    run under the shared ledger lock; when the second write fails the first
    one is rolled back and the original error is re-raised. Anything left
    half-applied after that is repaired by :meth:`reconcile`.
    """

    def __init__(
        self,
        storage: Storage,
        items: ItemService,
        lock: Optional[threading.RLock] = None,
        *,
        clock: Clock = utcnow,
        id_factory: IdFactory = _new_id,
    ) -> None:
        self._items = items.repository
        self._repo: Repository[List[PaymentBatch]] = Repository(
            storage, PAYMENTS_KEY, encode_batches, decode_batches, lock
        )
        self._lock = self._repo.lock
        self._clock = clock
        self._id_factory = id_factory

    def settle(self, item_ids: Iterable[str], note: Optional[object] = None) -> PaymentBatch:
        ids = validate_item_ids(item_ids)
        cleaned_note = validate_note(note)
        with self._lock:
            batch = PaymentBatch(id=self._id_factory(), created_at=self._clock(), note=cleaned_note)
            previous = self._repo.value
            self._repo.save([batch, *previous])
            try:
                self._items.mutate(
                    lambda items: item_ops.mark_paid(items, ids, batch.id, batch.created_at)
                )
            except PersistenceError:
                LOGGER.error("Marking items paid for batch %s failed; rolling back", batch.id)
                self._rollback(self._repo, previous)
                raise
        LOGGER.info("Settled %d item(s) into batch %s", len(ids), batch.id)
        return batch

    def reverse(self, batch_id: str) -> bool:
        """Unsettle a batch and delete it. Returns False when the batch is unknown."""
        with self._lock:
            batch = self._find(batch_id)
            if batch is None:
                LOGGER.debug("Reverse of unknown batch %s ignored", batch_id)
                return False
            previous_items = self._items.value
            items, batches = payment_ops.reverse(batch, previous_items, self._repo.value)
            self._items.save(items)
            try:
                self._repo.save(batches)
            except PersistenceError:
                LOGGER.error("Removing batch %s failed; rolling back items", batch_id)
                self._rollback(self._items, previous_items)
                raise
        LOGGER.info("Reversed batch %s", batch_id)
        return True

    def list(self) -> List[PaymentBatch]:
        """Batches newest first, as stored."""
        return list(self._repo.value)

    def get(self, batch_id: str) -> PaymentBatch:
        batch = self._find(batch_id)
        if batch is None:
            raise RecordNotFoundError(f"Payment batch {batch_id} not found")
        return batch

    def items_for(self, batch_id: str) -> List[Item]:
        return payment_ops.items_for(self.get(batch_id), self._items.value)

    def total_for(self, batch_id: str) -> int:
        return payment_ops.total_for(self.get(batch_id), self._items.value)

    def summaries(self) -> List[BatchSummary]:
        items = self._items.value
        summaries = []
        for batch in self._repo.value:
            members = payment_ops.items_for(batch, items)
            summaries.append(BatchSummary(batch, len(members), item_ops.total_cents(members)))
        return summaries

    def export_csv(self, batch_id: str) -> str:
        return to_csv(self.get(batch_id), self._items.value)

    def reconcile(self) -> ReconcileReport:
        """Release items pointing at missing batches and drop batches without items."""
        with self._lock:
            batch_ids = {batch.id for batch in self._repo.value}
            orphans = [
                item
                for item in self._items.value
                if item.payment_batch_id is not None and item.payment_batch_id not in batch_ids
            ]
            if orphans:
                orphan_ids = {item.id for item in orphans}
                self._items.mutate(
                    lambda items: [
                        item.unsettled() if item.id in orphan_ids else item for item in items
                    ]
                )
            used = {item.payment_batch_id for item in self._items.value if item.payment_batch_id}
            empty = [batch for batch in self._repo.value if batch.id not in used]
            if empty:
                self._repo.mutate(lambda batches: [b for b in batches if b.id in used])
        report = ReconcileReport(released_items=len(orphans), removed_batches=len(empty))
        if report.changed:
            LOGGER.warning(
                "Reconciled ledger: released %d item(s), removed %d empty batch(es)",
                report.released_items,
                report.removed_batches,
            )
        return report

    def load(self) -> None:
        self._repo.load()

    # Internal helpers -----------------------------------------------------
    def _find(self, batch_id: str) -> Optional[PaymentBatch]:
        for batch in self._repo.value:
            if batch.id == batch_id:
                return batch
        return None

    @staticmethod
    def _rollback(repo: Repository, previous) -> None:
        try:
            repo.save(previous)
        except PersistenceError as exc:
            LOGGER.error("Rollback of %s failed, run reconcile: %s", repo.key, exc)


class LedgerService:
    """Wires storage, the shared lock and the three services together."""

    def __init__(
        self,
        storage: Storage,
        *,
        clock: Clock = utcnow,
        id_factory: IdFactory = _new_id,
    ) -> None:
        self._storage = storage
        self._lock = threading.RLock()
        self.settings = SettingsService(storage, self._lock)
        self.items = ItemService(
            storage, self.settings, self._lock, clock=clock, id_factory=id_factory
        )
        self.payments = PaymentService(
            storage, self.items, self._lock, clock=clock, id_factory=id_factory
        )

    def refresh(self) -> None:
        """Reload data from persistence for all services."""
        with self._lock:
            self.settings.load()
            self.items.load()
            self.payments.load()

    def snapshot(self) -> Dict[str, object]:
        """Return serialisable snapshot useful for testing or exports."""
        return {
            "settings": self.settings.current().to_dict(),
            "items": [item.to_dict() for item in self.items.list()],
            "payments": [batch.to_dict() for batch in self.payments.list()],
        }
