# finance_api/services/analytics.py
# Read-time aggregates over the flat transaction list.
# Sign convention: amount > 0 is an expense (debit), amount < 0 is income (credit).
from collections import defaultdict
from typing import Any, Dict, List, Optional


def in_date_range(txns: List[Dict[str, Any]], start_date: Optional[str] = None,
                  end_date: Optional[str] = None) -> List[Dict[str, Any]]:
    # ISO dates compare correctly as strings
    if start_date:
        txns = [t for t in txns if t["date"] >= start_date]
    if end_date:
        txns = [t for t in txns if t["date"] <= end_date]
    return txns


def filter_transactions(txns: List[Dict[str, Any]], account_id: Optional[str] = None,
                        category_id: Optional[str] = None, is_tagged: Optional[bool] = None,
                        start_date: Optional[str] = None, end_date: Optional[str] = None) -> List[Dict[str, Any]]:
    """Filtered copy, newest first."""
    out = list(txns)
    if account_id:
        out = [t for t in out if t.get("account_id") == account_id]
    if category_id:
        out = [t for t in out if t.get("category_id") == category_id]
    if is_tagged is not None:
        out = [t for t in out if t.get("is_tagged") == is_tagged]
    out = in_date_range(out, start_date, end_date)
    out.sort(key=lambda t: t["date"], reverse=True)
    return out


def cash_flow(txns: List[Dict[str, Any]], start_date: Optional[str] = None,
              end_date: Optional[str] = None) -> Dict[str, Any]:
    txns = in_date_range(txns, start_date, end_date)
    income = sum(abs(t["amount"]) for t in txns if t["amount"] < 0)
    expenses = sum(t["amount"] for t in txns if t["amount"] > 0)
    return {
        "income": income,
        "expenses": expenses,
        "net": income - expenses,
        "transaction_count": len(txns),
    }


def expenses_by_category(txns: List[Dict[str, Any]], categories: List[Dict[str, Any]],
                         start_date: Optional[str] = None, end_date: Optional[str] = None) -> List[Dict[str, Any]]:
    names = {c["id"]: c for c in categories}
    totals: Dict[str, float] = defaultdict(float)
    for t in in_date_range(txns, start_date, end_date):
        if t["amount"] > 0:
            totals[t.get("category_id")] += t["amount"]
    rows = []
    for category_id, total in totals.items():
        category = names.get(category_id) or {}
        rows.append({
            "category_id": category_id,
            "category": category.get("name", "Unknown"),
            "color": category.get("color"),
            "total": total,
        })
    rows.sort(key=lambda r: r["total"], reverse=True)
    return rows


def cash_flow_by_date(txns: List[Dict[str, Any]], start_date: Optional[str] = None,
                      end_date: Optional[str] = None) -> List[Dict[str, Any]]:
    days: Dict[str, Dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expenses": 0.0})
    for t in in_date_range(txns, start_date, end_date):
        if t["amount"] < 0:
            days[t["date"]]["income"] += abs(t["amount"])
        elif t["amount"] > 0:
            days[t["date"]]["expenses"] += t["amount"]
    return [{"date": d, **totals} for d, totals in sorted(days.items())]
