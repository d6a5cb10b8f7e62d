import uuid

import pytest
from fastapi.testclient import TestClient

from finance_api.core.config import SimpleSettings
from finance_api.core.errors import PlaidApiError
from finance_api.db.models import UNCATEGORIZED_ID, now_iso
from finance_api.db.store import JsonStore
from finance_api.main import create_app
from finance_api.services.encryption import encrypt

TEST_KEY = "0123456789abcdef" * 4
OTHER_KEY = "fedcba9876543210" * 4


class FakePlaidClient:
    """Stands in for PlaidClient; records calls and serves canned responses."""

    def __init__(self):
        self.calls = []
        self.access_token = "access-sandbox-abc"
        self.item_id = "item-1"
        self.accounts = [plaid_account("acc-1", "Checking", current=1000.5)]
        # each entry is a transactions/sync page dict, or an exception to raise
        self.sync_pages = []

    def link_token_create(self, client_user_id, **kwargs):
        self.calls.append(("link_token_create", client_user_id))
        return {"link_token": "link-sandbox-123", "expiration": "2024-01-01T00:30:00Z"}

    def item_public_token_exchange(self, public_token):
        self.calls.append(("item_public_token_exchange", public_token))
        if public_token == "public-bad":
            raise PlaidApiError("provided public token is in an invalid format", status_code=400,
                                error_code="INVALID_PUBLIC_TOKEN")
        return {"access_token": self.access_token, "item_id": self.item_id}

    def item_get(self, access_token):
        self.calls.append(("item_get", access_token))
        return {"item": {"item_id": self.item_id, "institution_id": "ins_109508"}}

    def institutions_get_by_id(self, institution_id, country_codes=None):
        self.calls.append(("institutions_get_by_id", institution_id))
        return {"institution": {"institution_id": institution_id, "name": "First Platypus Bank"}}

    def accounts_get(self, access_token):
        self.calls.append(("accounts_get", access_token))
        return {"accounts": list(self.accounts)}

    def transactions_sync(self, access_token, cursor=None, count=100):
        self.calls.append(("transactions_sync", cursor))
        if not self.sync_pages:
            return {"added": [], "modified": [], "removed": [], "next_cursor": cursor or "cursor-0", "has_more": False}
        page = self.sync_pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page

    def call_count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


def plaid_account(account_id, name, current=0.0, available=None):
    return {
        "account_id": account_id,
        "name": name,
        "official_name": None,
        "type": "depository",
        "subtype": "checking",
        "mask": "0000",
        "balances": {"current": current, "available": available, "iso_currency_code": "USD"},
    }


def plaid_txn(transaction_id, amount, account_id="acc-1", date="2024-01-15", name="Coffee Shop",
              category=("Food and Drink", "Restaurants")):
    return {
        "transaction_id": transaction_id,
        "account_id": account_id,
        "date": date,
        "authorized_date": date,
        "amount": amount,
        "name": name,
        "merchant_name": name,
        "category": list(category) if category else None,
        "pending": False,
        "payment_channel": "in store",
    }


def sync_page(added=(), modified=(), removed=(), next_cursor="cursor-1", has_more=False):
    return {
        "added": list(added),
        "modified": list(modified),
        "removed": [{"transaction_id": t} for t in removed],
        "next_cursor": next_cursor,
        "has_more": has_more,
    }


def seed_account(store, institution_name="Test Bank", key=TEST_KEY):
    """Insert a Plaid item plus one account directly into the store; returns (item, account)."""
    ts = now_iso()
    item = {
        "id": str(uuid.uuid4()),
        "item_id": f"item-{uuid.uuid4().hex[:8]}",
        "access_token": encrypt("access-sandbox-seeded", key),
        "institution_id": "ins_1",
        "institution_name": institution_name,
        "transactions_cursor": None,
        "last_sync": None,
        "created_at": ts,
        "updated_at": ts,
    }
    account = {
        "id": str(uuid.uuid4()),
        "plaid_item_id": item["id"],
        "plaid_account_id": f"acc-{uuid.uuid4().hex[:8]}",
        "name": "Everyday Checking",
        "official_name": None,
        "type": "depository",
        "subtype": "checking",
        "mask": "4321",
        "current_balance": 2500.0,
        "available_balance": 2400.0,
        "currency": "USD",
        "created_at": ts,
        "updated_at": ts,
    }
    with store.session() as db:
        db["plaid_items"].append(item)
        db["accounts"].append(account)
    return item, account


def seed_transaction(store, account_id, amount, date="2024-01-15", category_id=UNCATEGORIZED_ID, **overrides):
    ts = now_iso()
    txn = {
        "id": str(uuid.uuid4()),
        "plaid_transaction_id": f"txn-{uuid.uuid4().hex[:8]}",
        "account_id": account_id,
        "date": date,
        "authorized_date": None,
        "amount": amount,
        "name": "Purchase",
        "merchant_name": None,
        "category_id": category_id,
        "is_tagged": category_id != UNCATEGORIZED_ID,
        "is_pending": False,
        "payment_channel": "online",
        "created_at": ts,
        "updated_at": ts,
    }
    txn.update(overrides)
    with store.session() as db:
        db["transactions"].append(txn)
    return txn


@pytest.fixture
def settings(tmp_path):
    return SimpleSettings(
        APP_ENV="test",
        DB_PATH=str(tmp_path / "data" / "db.json"),
        PLAID_CLIENT_ID="client-id",
        PLAID_SECRET="secret",
        PLAID_ENV="sandbox",
        PLAID_ENCRYPTION_KEY=TEST_KEY,
        SYNC_THROTTLE_MINUTES=5,
        RATE_LIMIT_REQUESTS=100,
        RATE_LIMIT_WINDOW_SECONDS=60,
    )


@pytest.fixture
def store(settings):
    return JsonStore(settings.DB_PATH).load()


@pytest.fixture
def fake_plaid():
    return FakePlaidClient()


@pytest.fixture
def app(settings, store, fake_plaid):
    return create_app(settings=settings, store=store, plaid_client=fake_plaid)


@pytest.fixture
def client(app):
    """TestClient bound to a fresh app and data file per test."""
    return TestClient(app)


@pytest.fixture
def linked_item(client):
    """Link the fake institution through the API; returns the exchange-token response body."""
    rv = client.post("/api/plaid/exchange-token", json={"public_token": "public-sandbox-1"})
    assert rv.status_code == 201
    return rv.json()
