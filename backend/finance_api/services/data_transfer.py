# finance_api/services/data_transfer.py
"""Export, validation and import of the whole JSON document.

Validation is exhaustive: schema errors and referential-integrity errors are
collected into one list so the caller gets a complete correction list.
"""
import copy
import json
import logging
from typing import Any, Dict, List, Literal

from pydantic import ValidationError

from finance_api.core.errors import DataValidationError
from finance_api.db.models import COLLECTIONS, DatabaseDocument
from finance_api.db.store import JsonStore

logger = logging.getLogger(__name__)

ImportStrategy = Literal["replace", "merge", "append"]

# (collection, field, referenced collection)
_REFERENCES = [
    ("transactions", "account_id", "accounts"),
    ("transactions", "category_id", "categories"),
    ("budgets", "category_id", "categories"),
    ("accounts", "plaid_item_id", "plaid_items"),
    ("categories", "parent_id", "categories"),
]


def _records(data: Dict[str, Any], name: str) -> List[Dict[str, Any]]:
    value = data.get(name)
    if not isinstance(value, list):
        return []
    return [r for r in value if isinstance(r, dict)]


def _reference_errors(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    errors = []
    ids = {name: {r.get("id") for r in _records(data, name)} for name in COLLECTIONS}

    for name in COLLECTIONS:
        seen = set()
        for index, record in enumerate(_records(data, name)):
            record_id = record.get("id")
            if record_id in seen:
                errors.append({
                    "loc": [name, index, "id"],
                    "msg": f"duplicate id '{record_id}'",
                    "type": "duplicate_id",
                })
            seen.add(record_id)

    for name, field, target in _REFERENCES:
        for index, record in enumerate(_records(data, name)):
            ref = record.get(field)
            # null and empty refs (unresolved sync accounts) are allowed
            if not ref:
                continue
            if ref not in ids[target]:
                errors.append({
                    "loc": [name, index, field],
                    "msg": f"references unknown {target[:-1]} '{ref}'",
                    "type": "missing_reference",
                })
    return errors


def validate_document(data: Any) -> Dict[str, Any]:
    """
    Validate a candidate document. Returns per-collection counts on success,
    raises DataValidationError carrying every violation otherwise.
    """
    if not isinstance(data, dict):
        raise DataValidationError([{"loc": [], "msg": "document must be a JSON object", "type": "dict_type"}])

    errors: List[Dict[str, Any]] = []
    try:
        # strict: no string-to-number coercion, real calendar dates; `data` is stored as given
        DatabaseDocument.model_validate_json(json.dumps(data), strict=True)
    except ValidationError as exc:
        errors.extend(
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors()
        )
    errors.extend(_reference_errors(data))

    if errors:
        raise DataValidationError(errors)
    return {name: len(data.get(name) or []) for name in COLLECTIONS}


def _union_by_id(existing: List[Dict[str, Any]], incoming: List[Dict[str, Any]],
                 incoming_wins: bool) -> List[Dict[str, Any]]:
    merged = {r["id"]: r for r in existing}
    order = [r["id"] for r in existing]
    for record in incoming:
        if record["id"] not in merged:
            order.append(record["id"])
            merged[record["id"]] = record
        elif incoming_wins:
            merged[record["id"]] = record
    return [merged[i] for i in order]


def apply_import(db: Dict[str, Any], data: Dict[str, Any], strategy: ImportStrategy) -> None:
    """Apply a validated document to `db` in place."""
    incoming = copy.deepcopy(data)
    if strategy == "replace":
        db.clear()
        db.update(incoming)
        for name in COLLECTIONS:
            db.setdefault(name, [])
        return
    if strategy not in ("merge", "append"):
        raise ValueError(f"Unknown import strategy: {strategy}")
    for name in COLLECTIONS:
        db[name] = _union_by_id(db.get(name, []), incoming.get(name) or [], incoming_wins=strategy == "merge")


def import_document(store: JsonStore, data: Any, strategy: ImportStrategy = "replace") -> Dict[str, int]:
    """Validate then apply inside one store session; the file is rewritten only if the apply succeeds."""
    counts = validate_document(data)
    with store.session() as db:
        apply_import(db, data, strategy)
    logger.info("Imported document with %s strategy: %s", strategy, counts)
    return counts


def export_document(store: JsonStore) -> Dict[str, Any]:
    return store.export()
