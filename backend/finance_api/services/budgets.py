# finance_api/services/budgets.py
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from finance_api.core.errors import ConflictError, DataValidationError, NotFoundError
from finance_api.db.models import now_iso, utc_today
from finance_api.db.store import find_by_id


def _as_date(value: Optional[str], default: date) -> date:
    return date.fromisoformat(value) if value else default


def dates_overlap(start1: str, end1: Optional[str], start2: str, end2: Optional[str],
                  today: Optional[date] = None) -> bool:
    """Inclusive range overlap; an open end date means today."""
    today = today or utc_today()
    s1, e1 = date.fromisoformat(start1), _as_date(end1, today)
    s2, e2 = date.fromisoformat(start2), _as_date(end2, today)
    return s1 <= e2 and e1 >= s2


def create_budget(db: Dict[str, Any], category_id: Optional[str], amount: float, period: str,
                  start_date: str, end_date: Optional[str], today: Optional[date] = None) -> Dict[str, Any]:
    if category_id is None and not end_date:
        raise DataValidationError([{
            "loc": ["end_date"],
            "msg": "end_date is required for all-categories budgets",
        }])

    if category_id is not None:
        category = find_by_id(db["categories"], category_id)
        if category is None:
            raise NotFoundError("Category not found")
        duplicate = next(
            (b for b in db["budgets"] if b.get("category_id") == category_id and b.get("period") == period),
            None,
        )
        if duplicate:
            raise ConflictError(
                f"A {period} budget already exists for {category['name']}. "
                "Please edit the existing budget instead."
            )
    else:
        overlapping = next(
            (b for b in db["budgets"]
             if b.get("category_id") is None
             and dates_overlap(start_date, end_date, b["start_date"], b.get("end_date"), today)),
            None,
        )
        if overlapping:
            raise ConflictError(
                "An all-categories budget already exists for overlapping dates "
                f"({overlapping['start_date']} to {overlapping.get('end_date')})"
            )

    ts = now_iso()
    budget = {
        "id": str(uuid.uuid4()),
        "category_id": category_id,
        "amount": amount,
        "period": period,
        "start_date": start_date,
        "end_date": end_date or None,
        "created_at": ts,
        "updated_at": ts,
    }
    db["budgets"].append(budget)
    return budget


def update_budget(db: Dict[str, Any], budget: Dict[str, Any], changes: Dict[str, Any],
                  today: Optional[date] = None) -> Dict[str, Any]:
    """
    Apply amount/period/start_date/end_date changes. The category is fixed; the
    (category_id, period) uniqueness and the no-overlap rule for all-categories
    budgets are re-checked against the other budgets.
    """
    candidate = {**budget, **changes}
    others = [b for b in db["budgets"] if b["id"] != budget["id"]]

    if candidate.get("category_id") is None:
        if not candidate.get("end_date"):
            raise DataValidationError([{
                "loc": ["end_date"],
                "msg": "end_date is required for all-categories budgets",
            }])
        overlapping = next(
            (b for b in others
             if b.get("category_id") is None
             and dates_overlap(candidate["start_date"], candidate["end_date"],
                               b["start_date"], b.get("end_date"), today)),
            None,
        )
        if overlapping:
            raise ConflictError(
                "An all-categories budget already exists for overlapping dates "
                f"({overlapping['start_date']} to {overlapping.get('end_date')})"
            )
    elif any(b.get("category_id") == candidate["category_id"] and b.get("period") == candidate["period"]
             for b in others):
        raise ConflictError(f"A {candidate['period']} budget already exists for this category.")

    budget.update(changes)
    budget["updated_at"] = now_iso()
    return budget


def budget_progress(budget: Dict[str, Any], transactions: List[Dict[str, Any]],
                    today: Optional[date] = None) -> Dict[str, Any]:
    """
    Spending against a budget: expenses (amount > 0) in the budget's category
    (or every category when category_id is null) dated within
    [start_date, end_date or today]. percentage is clamped to [0, 100];
    over_budget carries the excess.
    """
    today = today or utc_today()
    start = date.fromisoformat(budget["start_date"])
    end = _as_date(budget.get("end_date"), today)
    category_id = budget.get("category_id")

    spent = 0.0
    for t in transactions:
        if t["amount"] <= 0:
            continue
        if category_id is not None and t.get("category_id") != category_id:
            continue
        if start <= date.fromisoformat(t["date"]) <= end:
            spent += t["amount"]

    amount = budget["amount"]
    percentage = spent / amount * 100 if amount else 0.0
    return {
        "budget": budget,
        "spent": spent,
        "remaining": amount - spent,
        "percentage": max(0.0, min(percentage, 100.0)),
        "over_budget": spent > amount,
    }
