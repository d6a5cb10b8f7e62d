# finance_api/services/plaid.py
"""Plaid-backed operations: linking institutions, syncing accounts and
incremental (cursor based) transaction sync into the JSON document."""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from dateutil import parser as dateparser

from finance_api.core.errors import NotFoundError, PlaidApiError
from finance_api.db.models import UNCATEGORIZED_ID, now_iso
from finance_api.db.store import JsonStore, find_by_id
from finance_api.services.encryption import decrypt, encrypt
from finance_api.services.plaid_client import PlaidClient

logger = logging.getLogger(__name__)

# keyword groups checked in order against the provider's category taxonomy
_CATEGORY_KEYWORDS = [
    (("income",), "cat-income"),
    (("rent", "mortgage"), "cat-housing"),
    (("transportation", "gas", "auto"), "cat-transportation"),
    (("food", "restaurants", "groceries"), "cat-food"),
    (("entertainment", "recreation"), "cat-entertainment"),
    (("shops", "retail"), "cat-shopping"),
    (("healthcare", "medical"), "cat-healthcare"),
    (("bank", "transfer", "credit"), "cat-financial"),
]


def categorize_transaction(plaid_categories: Optional[Iterable[str]],
                           personal_finance_category: Optional[Dict[str, Any]] = None) -> str:
    """
    Map Plaid's category taxonomy to one of the seeded category ids by keyword substring.
    Uses the legacy `category` hierarchy when present, else `personal_finance_category`.
    """
    labels = [c for c in (plaid_categories or []) if c]
    if not labels and personal_finance_category:
        labels = [personal_finance_category.get("primary") or "", personal_finance_category.get("detailed") or ""]
    text = " ".join(labels).lower().replace("_", " ")
    if not text.strip():
        return UNCATEGORIZED_ID
    for keywords, category_id in _CATEGORY_KEYWORDS:
        if any(k in text for k in keywords):
            return category_id
    return UNCATEGORIZED_ID


def get_all_accounts(db: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Accounts joined with the institution name of their Plaid item."""
    names = {item["id"]: item.get("institution_name") for item in db["plaid_items"]}
    return [
        {**account, "institution_name": names.get(account.get("plaid_item_id")) or "Unknown"}
        for account in db["accounts"]
    ]


def is_sync_throttled(item: Dict[str, Any], throttle_minutes: int, now: Optional[datetime] = None) -> bool:
    """True when the item already has a transactions cursor and synced within the throttle window."""
    if not item.get("transactions_cursor") or not item.get("last_sync"):
        return False
    now = now or datetime.now(timezone.utc)
    last_sync = dateparser.isoparse(item["last_sync"])
    if last_sync.tzinfo is None:
        last_sync = last_sync.replace(tzinfo=timezone.utc)
    return now - last_sync < timedelta(minutes=throttle_minutes)


def empty_sync_result(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": True,
        "skipped": True,
        "plaid_item_id": item["id"],
        "transactions_added": 0,
        "transactions_modified": 0,
        "transactions_removed": 0,
        "last_sync": item.get("last_sync"),
    }


def _apply_account(account: Dict[str, Any], plaid_account: Dict[str, Any], ts: str) -> None:
    balances = plaid_account.get("balances") or {}
    account["name"] = plaid_account.get("name") or ""
    account["official_name"] = plaid_account.get("official_name") or None
    account["type"] = plaid_account.get("type") or "other"
    account["subtype"] = plaid_account.get("subtype") or "unknown"
    account["mask"] = plaid_account.get("mask") or "0000"
    account["current_balance"] = balances.get("current") or 0
    account["available_balance"] = balances.get("available")
    account["currency"] = balances.get("iso_currency_code") or "USD"
    account["updated_at"] = ts


def upsert_accounts(db: Dict[str, Any], plaid_item: Dict[str, Any],
                    plaid_accounts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Insert or update local accounts keyed by plaid_account_id. Returns the stored records."""
    ts = now_iso()
    existing = {a["plaid_account_id"]: a for a in db["accounts"]}
    stored = []
    for plaid_account in plaid_accounts:
        account = existing.get(plaid_account["account_id"])
        if account is None:
            account = {
                "id": str(uuid.uuid4()),
                "plaid_item_id": plaid_item["id"],
                "plaid_account_id": plaid_account["account_id"],
                "created_at": ts,
            }
            _apply_account(account, plaid_account, ts)
            db["accounts"].append(account)
        else:
            _apply_account(account, plaid_account, ts)
        stored.append(account)
    return stored


def map_plaid_transaction(txn: Dict[str, Any], account_id: str) -> Dict[str, Any]:
    ts = now_iso()
    return {
        "id": str(uuid.uuid4()),
        "plaid_transaction_id": txn["transaction_id"],
        "account_id": account_id,
        "date": txn["date"],
        "authorized_date": txn.get("authorized_date"),
        "amount": txn["amount"],
        "name": txn.get("name") or "",
        "merchant_name": txn.get("merchant_name"),
        "category_id": categorize_transaction(txn.get("category"), txn.get("personal_finance_category")),
        "is_tagged": False,
        "is_pending": bool(txn.get("pending", False)),
        "payment_channel": txn.get("payment_channel") or "other",
        "created_at": ts,
        "updated_at": ts,
    }


def apply_modified_transaction(local: Dict[str, Any], txn: Dict[str, Any]) -> None:
    """Overwrite provider-owned fields only; category and tag status belong to the user."""
    local["date"] = txn["date"]
    local["amount"] = txn["amount"]
    local["name"] = txn.get("name") or local.get("name", "")
    local["merchant_name"] = txn.get("merchant_name")
    local["is_pending"] = bool(txn.get("pending", False))
    local["payment_channel"] = txn.get("payment_channel") or local.get("payment_channel", "other")
    local["updated_at"] = now_iso()


class PlaidService:
    def __init__(self, store: JsonStore, client: PlaidClient, encryption_key: str):
        self.store = store
        self.client = client
        self.encryption_key = encryption_key

    def create_link_token(self, user_id: str = "user-1") -> str:
        data = self.client.link_token_create(client_user_id=user_id)
        return data["link_token"]

    def exchange_public_token(self, public_token: str) -> Dict[str, Any]:
        """Exchange a Link public token, encrypt the access token and upsert the PlaidItem by item_id."""
        exchange = self.client.item_public_token_exchange(public_token)
        access_token = exchange["access_token"]
        item_id = exchange["item_id"]

        item_info = self.client.item_get(access_token).get("item") or {}
        institution_id = item_info.get("institution_id") or "unknown"

        institution_name = "Unknown Institution"
        if institution_id != "unknown":
            try:
                institution = self.client.institutions_get_by_id(institution_id)
                institution_name = institution["institution"]["name"]
            except (PlaidApiError, KeyError) as exc:
                logger.warning("Failed to fetch institution name for %s: %s", institution_id, exc)

        encrypted_token = encrypt(access_token, self.encryption_key)
        ts = now_iso()
        with self.store.session() as db:
            item = next((i for i in db["plaid_items"] if i["item_id"] == item_id), None)
            if item is not None:
                item.update({
                    "access_token": encrypted_token,
                    "institution_id": institution_id,
                    "institution_name": institution_name,
                    "last_sync": ts,
                    "updated_at": ts,
                })
            else:
                item = {
                    "id": str(uuid.uuid4()),
                    "item_id": item_id,
                    "access_token": encrypted_token,
                    "institution_id": institution_id,
                    "institution_name": institution_name,
                    "transactions_cursor": None,
                    "last_sync": ts,
                    "created_at": ts,
                    "updated_at": ts,
                }
                db["plaid_items"].append(item)
            result = dict(item)
        logger.info("Linked Plaid item %s (%s)", result["id"], institution_name)
        return result

    def _item_with_token(self, db: Dict[str, Any], plaid_item_id: str):
        item = find_by_id(db["plaid_items"], plaid_item_id)
        if item is None:
            raise NotFoundError("PlaidItem not found")
        return item, decrypt(item["access_token"], self.encryption_key)

    def sync_accounts(self, plaid_item_id: str) -> List[Dict[str, Any]]:
        """Fetch accounts for one item from Plaid and upsert them locally."""
        _, access_token = self._item_with_token(self.store.export(), plaid_item_id)
        plaid_accounts = self.client.accounts_get(access_token).get("accounts", [])

        with self.store.session() as db:
            item = find_by_id(db["plaid_items"], plaid_item_id)
            if item is None:
                raise NotFoundError("PlaidItem not found")
            stored = upsert_accounts(db, item, plaid_accounts)
            item["last_sync"] = now_iso()
            result = [dict(a) for a in stored]
        logger.info("Synced %d accounts for Plaid item %s", len(result), plaid_item_id)
        return result

    def sync_transactions(self, plaid_item_id: str) -> Dict[str, Any]:
        """
        Pull every page of added/modified/removed deltas since the stored cursor,
        then apply them in a single store session. Any failure aborts without committing.
        """
        # one consistent copy for the cursor and the known-accounts lookup
        snapshot = self.store.export()
        item, access_token = self._item_with_token(snapshot, plaid_item_id)
        cursor = item.get("transactions_cursor")

        added: List[Dict[str, Any]] = []
        modified: List[Dict[str, Any]] = []
        removed: List[Dict[str, Any]] = []
        has_more = True
        while has_more:
            page = self.client.transactions_sync(access_token, cursor)
            added.extend(page.get("added", []))
            modified.extend(page.get("modified", []))
            removed.extend(page.get("removed", []))
            cursor = page.get("next_cursor")
            has_more = bool(page.get("has_more"))

        known_accounts = {a["plaid_account_id"] for a in snapshot["accounts"]}
        fresh_accounts = None
        if any(t.get("account_id") not in known_accounts for t in added):
            fresh_accounts = self.client.accounts_get(access_token).get("accounts", [])

        counts = {"added": 0, "modified": 0, "removed": 0}
        with self.store.session() as db:
            item = find_by_id(db["plaid_items"], plaid_item_id)
            if item is None:
                raise NotFoundError("PlaidItem not found")
            if fresh_accounts is not None:
                upsert_accounts(db, item, fresh_accounts)

            account_ids = {a["plaid_account_id"]: a["id"] for a in db["accounts"]}
            by_provider_id = {t["plaid_transaction_id"]: t for t in db["transactions"]}

            for txn in added:
                local = by_provider_id.get(txn["transaction_id"])
                if local is not None:
                    apply_modified_transaction(local, txn)
                    counts["modified"] += 1
                    continue
                account_id = account_ids.get(txn.get("account_id"), "")
                if not account_id:
                    logger.warning("Transaction %s references unknown account %s",
                                   txn["transaction_id"], txn.get("account_id"))
                record = map_plaid_transaction(txn, account_id)
                db["transactions"].append(record)
                by_provider_id[record["plaid_transaction_id"]] = record
                counts["added"] += 1

            for txn in modified:
                local = by_provider_id.get(txn["transaction_id"])
                if local is None:
                    continue
                apply_modified_transaction(local, txn)
                counts["modified"] += 1

            removed_ids = {r["transaction_id"] for r in removed}
            before = len(db["transactions"])
            db["transactions"] = [t for t in db["transactions"] if t["plaid_transaction_id"] not in removed_ids]
            counts["removed"] = before - len(db["transactions"])

            ts = now_iso()
            item["transactions_cursor"] = cursor
            item["last_sync"] = ts
            item["updated_at"] = ts

        logger.info("Synced Plaid item %s: %d added, %d modified, %d removed",
                    plaid_item_id, counts["added"], counts["modified"], counts["removed"])
        return {
            "success": True,
            "skipped": False,
            "plaid_item_id": plaid_item_id,
            "transactions_added": counts["added"],
            "transactions_modified": counts["modified"],
            "transactions_removed": counts["removed"],
            "last_sync": ts,
        }


def sync_status(db: Dict[str, Any], throttle_minutes: int, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    now = now or datetime.now(timezone.utc)
    status = []
    for item in db["plaid_items"]:
        account_ids = {a["id"] for a in db["accounts"] if a.get("plaid_item_id") == item["id"]}
        status.append({
            "plaid_item_id": item["id"],
            "institution_name": item.get("institution_name"),
            "last_sync": item.get("last_sync"),
            "has_cursor": bool(item.get("transactions_cursor")),
            "can_sync": not is_sync_throttled(item, throttle_minutes, now),
            "accounts": len(account_ids),
            "transactions": sum(1 for t in db["transactions"] if t.get("account_id") in account_ids),
        })
    return status
