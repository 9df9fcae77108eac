"""Flask REST API exposing the consumption ledger services."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from ledger.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from ledger.export import format_cents
from ledger.items import total_cents
from ledger.models import Item
from ledger.services import BatchSummary, LedgerService
from ledger.storage import FileStorage, Storage

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


def create_app(
    data_dir: Optional[Path] = None,
    storage: Optional[Storage] = None,
    ledger: Optional[LedgerService] = None,
) -> Flask:
    app = Flask(__name__)

    env_name = os.getenv("CONSUMPTION_TRACKER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("CONSUMPTION_TRACKER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    if ledger is None:
        if storage is None:
            directory = data_dir or os.getenv("CONSUMPTION_TRACKER_DATA_DIR") or "data"
            storage = FileStorage(Path(directory))
        ledger = LedgerService(storage)
    app.extensions["ledger"] = ledger

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _flag(name: str, default: bool) -> bool:
        raw = request.args.get(name)
        if raw is None or raw == "":
            return default
        canonical = raw.strip().lower()
        if canonical in TRUE_VALUES:
            return True
        if canonical in FALSE_VALUES:
            return False
        raise ValidationError(f"{name} must be true or false")

    def _money(cents: int) -> str:
        return format_cents(cents, ledger.settings.current().currency_code)

    def _summary_dict(summary: BatchSummary) -> Dict[str, Any]:
        return {
            **summary.batch.to_dict(),
            "item_count": summary.item_count,
            "total_cents": summary.total_cents,
            "total": _money(summary.total_cents),
        }

    def _items_payload(items: List[Item]) -> Dict[str, Any]:
        cents = total_cents(items)
        return {
            "items": [item.to_dict() for item in items],
            "total_cents": cents,
            "total": _money(cents),
        }

    @app.get("/settings")
    def get_settings():
        settings = ledger.settings.current()
        return _success({
            **settings.to_dict(),
            "beer_price_cents": 2 * settings.base_price_cents,
        })

    @app.put("/settings")
    def update_settings():
        payload = _json_body()
        settings = ledger.settings.update(
            base_price=payload.get("base_price"),
            currency_code=payload.get("currency_code"),
            base_price_cents=payload.get("base_price_cents"),
        )
        return _success({
            **settings.to_dict(),
            "beer_price_cents": 2 * settings.base_price_cents,
        })

    @app.get("/items")
    def list_items():
        items = ledger.items.overview(
            only_unpaid=_flag("only_unpaid", True),
            search_text=request.args.get("search", ""),
        )
        return _success(_items_payload(items))

    @app.get("/items/preview")
    def preview_item():
        item_type = request.args.get("item_type")
        cents = ledger.items.preview_price(item_type)
        return _success({"item_type": item_type, "price_cents": cents, "price": _money(cents)})

    @app.post("/items")
    def create_item():
        payload = _json_body()
        item = ledger.items.create(payload.get("item_type"), payload.get("label"))
        return _success({**item.to_dict(), "price": _money(item.price_cents)}, 201)

    @app.get("/items/<item_id>")
    def get_item(item_id: str):
        return _success(ledger.items.get(item_id).to_dict())

    @app.get("/payments")
    def list_payments():
        summaries = ledger.payments.summaries()
        return _success({"items": [_summary_dict(summary) for summary in summaries]})

    @app.post("/payments")
    def settle():
        payload = _json_body()
        batch = ledger.payments.settle(payload.get("item_ids"), payload.get("note"))
        cents = ledger.payments.total_for(batch.id)
        return _success({**batch.to_dict(), "total_cents": cents, "total": _money(cents)}, 201)

    @app.get("/payments/<batch_id>")
    def get_payment(batch_id: str):
        batch = ledger.payments.get(batch_id)
        members = ledger.payments.items_for(batch_id)
        return _success({**batch.to_dict(), **_items_payload(members)})

    @app.get("/payments/<batch_id>/export")
    def export_payment(batch_id: str):
        text = ledger.payments.export_csv(batch_id)
        return Response(
            text,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=payment-{batch_id}.csv"},
        )

    @app.delete("/payments/<batch_id>")
    def reverse_payment(batch_id: str):
        ledger.payments.reverse(batch_id)
        return _success({}, 204)

    @app.post("/reconcile")
    def reconcile():
        report = ledger.payments.reconcile()
        return _success({
            "released_items": report.released_items,
            "removed_batches": report.removed_batches,
        })

    return app
