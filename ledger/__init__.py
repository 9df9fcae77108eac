"""Core business logic package for the consumption tracker."""

from .codec import Loaded, LoadStatus
from .exceptions import PersistenceError, RecordNotFoundError, ValidationError
from .export import format_cents, to_csv
from .models import DEFAULT_SETTINGS, Item, ItemType, PaymentBatch, Settings
from .pricing import price_for
from .services import ItemService, LedgerService, PaymentService, SettingsService
from .storage import FileStorage, MemoryStorage

__all__ = [
    "DEFAULT_SETTINGS",
    "Item",
    "ItemType",
    "PaymentBatch",
    "Settings",
    "Loaded",
    "LoadStatus",
    "ItemService",
    "LedgerService",
    "PaymentService",
    "SettingsService",
    "FileStorage",
    "MemoryStorage",
    "format_cents",
    "price_for",
    "to_csv",
    "PersistenceError",
    "RecordNotFoundError",
    "ValidationError",
]
