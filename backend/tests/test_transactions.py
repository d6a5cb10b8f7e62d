import pytest

from conftest import seed_account, seed_transaction
from finance_api.db.models import UNCATEGORIZED_ID


@pytest.fixture
def account(store):
    return seed_account(store)[1]


@pytest.fixture
def txns(store, account):
    return [
        seed_transaction(store, account["id"], -2000.0, date="2024-01-01", category_id="cat-income"),
        seed_transaction(store, account["id"], 150.25, date="2024-01-05", category_id="cat-food"),
        seed_transaction(store, account["id"], 49.75, date="2024-01-20"),
        seed_transaction(store, account["id"], 300.0, date="2024-02-02", category_id="cat-shopping"),
    ]


def test_list_newest_first_with_total(client, txns):
    body = client.get("/api/transactions").json()
    assert body["total"] == 4
    assert [t["date"] for t in body["transactions"]] == ["2024-02-02", "2024-01-20", "2024-01-05", "2024-01-01"]


def test_list_filters_and_pagination(client, txns):
    body = client.get("/api/transactions", params={"start_date": "2024-01-01", "end_date": "2024-01-31",
                                                   "limit": 2, "offset": 1}).json()
    assert body["total"] == 3
    assert [t["date"] for t in body["transactions"]] == ["2024-01-05", "2024-01-01"]

    body = client.get("/api/transactions", params={"is_tagged": "false"}).json()
    assert [t["id"] for t in body["transactions"]] == [txns[2]["id"]]

    body = client.get("/api/transactions", params={"category_id": "cat-food"}).json()
    assert body["total"] == 1


def test_bad_date_filter_is_400(client):
    assert client.get("/api/transactions", params={"start_date": "01/02/2024"}).status_code == 400


def test_cash_flow(client, txns):
    flow = client.get("/api/transactions/stats/cash-flow",
                      params={"start_date": "2024-01-01", "end_date": "2024-01-31"}).json()
    assert flow == {"income": 2000.0, "expenses": 200.0, "net": 1800.0, "transaction_count": 3}


def test_spending_by_category_and_date(client, txns):
    rows = client.get("/api/transactions/stats/by-category").json()["categories"]
    assert [(r["category_id"], r["total"]) for r in rows] == [
        ("cat-shopping", 300.0), ("cat-food", 150.25), (UNCATEGORIZED_ID, 49.75)]

    days = client.get("/api/transactions/stats/by-date", params={"end_date": "2024-01-05"}).json()["days"]
    assert days == [
        {"date": "2024-01-01", "income": 2000.0, "expenses": 0.0},
        {"date": "2024-01-05", "income": 0.0, "expenses": 150.25},
    ]


def test_tag_transaction(client, txns):
    txn = txns[2]
    rv = client.patch(f"/api/transactions/{txn['id']}/tag", json={"category_id": "cat-food"})
    assert rv.status_code == 200
    assert rv.json()["transaction"]["category_id"] == "cat-food"
    assert rv.json()["transaction"]["is_tagged"] is True

    assert client.patch(f"/api/transactions/{txn['id']}/tag", json={"category_id": "nope"}).status_code == 404
    assert client.patch("/api/transactions/missing/tag", json={"category_id": "cat-food"}).status_code == 404


def test_patch_back_to_uncategorized_clears_tag(client, txns):
    txn = txns[1]
    rv = client.patch(f"/api/transactions/{txn['id']}", json={"category_id": UNCATEGORIZED_ID, "name": "Lunch"})
    body = rv.json()["transaction"]
    assert body["is_tagged"] is False
    assert body["name"] == "Lunch"


def test_get_transaction(client, txns):
    assert client.get(f"/api/transactions/{txns[0]['id']}").json()["transaction"]["amount"] == -2000.0
    assert client.get("/api/transactions/missing").status_code == 404


def test_accounts_list_and_cascade_delete(client, store, account, txns):
    accounts = client.get("/api/accounts").json()["accounts"]
    assert accounts[0]["institution_name"] == "Test Bank"

    rv = client.delete(f"/api/accounts/{account['id']}")
    assert rv.status_code == 200
    assert rv.json()["transactions_removed"] == 4
    assert store.read()["transactions"] == []
    assert client.delete(f"/api/accounts/{account['id']}").status_code == 404


def test_create_and_update_category(client):
    rv = client.post("/api/categories", json={"name": "Pets", "color": "#123abc", "icon": "🐶"})
    assert rv.status_code == 201
    cat = rv.json()["category"]
    assert cat["is_system"] is False

    rv = client.put(f"/api/categories/{cat['id']}", json={"parent_id": "cat-shopping", "color": "#000000"})
    assert rv.json()["category"]["parent_id"] == "cat-shopping"
    assert client.put(f"/api/categories/{cat['id']}", json={"parent_id": cat["id"]}).status_code == 400
    assert client.put(f"/api/categories/{cat['id']}", json={"parent_id": "missing"}).status_code == 404


@pytest.mark.parametrize("body", [
    {"name": "", "color": "#123abc", "icon": "x"},
    {"name": "Pets", "color": "red", "icon": "x"},
    {"name": "Pets", "color": "#123abc"},
])
def test_category_validation(client, body):
    assert client.post("/api/categories", json=body).status_code == 400


def test_delete_category_reassigns_transactions(client, store, txns):
    child = client.post("/api/categories", json={"name": "Snacks", "parent_id": "cat-food",
                                                 "color": "#aaaaaa", "icon": "🍿"}).json()["category"]
    client.post("/api/budgets", json={"category_id": "cat-food", "amount": 100, "period": "monthly",
                                      "start_date": "2024-01-01"})

    rv = client.delete("/api/categories/cat-food")
    assert rv.status_code == 200
    assert rv.json()["transactions_reassigned"] == 1

    db = store.read()
    moved = next(t for t in db["transactions"] if t["id"] == txns[1]["id"])
    assert moved["category_id"] == UNCATEGORIZED_ID
    assert moved["is_tagged"] is False
    assert db["budgets"] == []
    assert next(c for c in db["categories"] if c["id"] == child["id"])["parent_id"] is None


def test_uncategorized_cannot_be_deleted(client):
    assert client.delete(f"/api/categories/{UNCATEGORIZED_ID}").status_code == 409


def test_category_transactions(client, txns):
    body = client.get("/api/categories/cat-shopping/transactions").json()
    assert body["total"] == 1
    assert body["transactions"][0]["amount"] == 300.0
