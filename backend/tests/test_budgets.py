from datetime import date

import pytest

from conftest import seed_account, seed_transaction
from finance_api.core.errors import ConflictError
from finance_api.services.budgets import budget_progress, create_budget, dates_overlap


def _budget(client, **overrides):
    body = {"category_id": "cat-food", "amount": 500, "period": "monthly", "start_date": "2024-01-01"}
    body.update(overrides)
    return client.post("/api/budgets", json=body)


def test_dates_overlap_inclusive_and_open_ended():
    today = date(2024, 6, 1)
    assert dates_overlap("2024-01-01", "2024-01-31", "2024-01-31", "2024-02-28", today)
    assert not dates_overlap("2024-01-01", "2024-01-31", "2024-02-01", "2024-02-28", today)
    assert dates_overlap("2024-01-01", None, "2024-05-01", "2024-05-31", today)
    assert not dates_overlap("2024-07-01", "2024-07-31", "2024-01-01", None, today)


def test_budget_progress_counts_only_expenses_in_range():
    budget = {"id": "b1", "category_id": "cat-food", "amount": 500,
              "start_date": "2024-01-01", "end_date": "2024-01-31"}
    txns = [
        {"amount": 600, "category_id": "cat-food", "date": "2024-01-10"},
        {"amount": -50, "category_id": "cat-food", "date": "2024-01-11"},
        {"amount": 100, "category_id": "cat-food", "date": "2024-02-05"},
        {"amount": 200, "category_id": "cat-shopping", "date": "2024-01-12"},
    ]
    progress = budget_progress(budget, txns)
    assert progress["spent"] == 600
    assert progress["remaining"] == -100
    assert progress["percentage"] == 100
    assert progress["over_budget"] is True


def test_all_categories_budget_sums_every_category():
    budget = {"id": "b1", "category_id": None, "amount": 1000,
              "start_date": "2024-01-01", "end_date": "2024-01-31"}
    txns = [
        {"amount": 100, "category_id": "cat-food", "date": "2024-01-10"},
        {"amount": 150, "category_id": "cat-shopping", "date": "2024-01-12"},
    ]
    progress = budget_progress(budget, txns)
    assert progress["spent"] == 250
    assert progress["percentage"] == 25
    assert progress["over_budget"] is False


def test_open_ended_budget_runs_through_today():
    budget = {"id": "b1", "category_id": "cat-food", "amount": 100, "start_date": "2024-01-01", "end_date": None}
    txns = [{"amount": 30, "category_id": "cat-food", "date": "2024-03-01"}]
    assert budget_progress(budget, txns, today=date(2024, 3, 1))["spent"] == 30
    assert budget_progress(budget, txns, today=date(2024, 2, 1))["spent"] == 0


def test_create_budget_service_rejects_duplicates(store):
    with store.session() as db:
        create_budget(db, "cat-food", 100, "monthly", "2024-01-01", None)
        with pytest.raises(ConflictError):
            create_budget(db, "cat-food", 200, "monthly", "2024-03-01", None)
        create_budget(db, "cat-food", 1200, "yearly", "2024-01-01", None)
    assert len(store.read()["budgets"]) == 2


def test_create_and_get_budget(client):
    rv = _budget(client)
    assert rv.status_code == 201
    budget = rv.json()["budget"]
    assert budget["end_date"] is None

    rv = client.get(f"/api/budgets/{budget['id']}")
    assert rv.status_code == 200
    assert client.get("/api/budgets").json()["budgets"][0]["id"] == budget["id"]


def test_duplicate_category_period_is_409(client):
    assert _budget(client).status_code == 201
    rv = _budget(client, amount=250)
    assert rv.status_code == 409
    assert "already exists" in rv.json()["detail"]


def test_unknown_category_is_404(client):
    assert _budget(client, category_id="cat-missing").status_code == 404


@pytest.mark.parametrize("amount", [0, -10, 10_000_001])
def test_amount_bounds(client, amount):
    assert _budget(client, amount=amount).status_code == 400


def test_all_categories_budget_needs_end_date(client):
    assert _budget(client, category_id=None).status_code == 400


def test_all_categories_budgets_cannot_overlap(client):
    assert _budget(client, category_id=None, end_date="2024-01-31").status_code == 201
    assert _budget(client, category_id=None, start_date="2024-01-31", end_date="2024-02-28").status_code == 409
    assert _budget(client, category_id=None, start_date="2024-02-01", end_date="2024-02-28").status_code == 201


def test_update_budget(client):
    budget = _budget(client).json()["budget"]
    rv = client.patch(f"/api/budgets/{budget['id']}", json={"amount": 750, "end_date": "2024-12-31"})
    assert rv.status_code == 200
    assert rv.json()["budget"]["amount"] == 750
    assert rv.json()["budget"]["end_date"] == "2024-12-31"


def test_update_cannot_change_category(client):
    budget = _budget(client).json()["budget"]
    rv = client.patch(f"/api/budgets/{budget['id']}", json={"category_id": "cat-shopping"})
    assert rv.status_code == 400


def test_update_period_into_existing_pair_is_409(client):
    _budget(client, period="weekly")
    monthly = _budget(client).json()["budget"]
    rv = client.patch(f"/api/budgets/{monthly['id']}", json={"period": "weekly"})
    assert rv.status_code == 409
    assert client.get(f"/api/budgets/{monthly['id']}").json()["budget"]["period"] == "monthly"


def test_budget_progress_endpoint(client, store):
    _, account = seed_account(store)
    seed_transaction(store, account["id"], 120.0, date="2024-01-05", category_id="cat-food")
    seed_transaction(store, account["id"], 80.0, date="2024-01-20", category_id="cat-food")
    budget = _budget(client, end_date="2024-01-31").json()["budget"]

    progress = client.get(f"/api/budgets/{budget['id']}/progress").json()
    assert progress["spent"] == 200
    assert progress["remaining"] == 300
    assert progress["percentage"] == 40
    assert progress["over_budget"] is False


def test_delete_budget(client):
    budget = _budget(client).json()["budget"]
    assert client.delete(f"/api/budgets/{budget['id']}").status_code == 200
    assert client.get(f"/api/budgets/{budget['id']}").status_code == 404
