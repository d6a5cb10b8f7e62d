# finance_api/api/transactions.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from finance_api.api.deps import get_store
from finance_api.db.models import UNCATEGORIZED_ID, now_iso
from finance_api.db.store import JsonStore, find_by_id
from finance_api.schemas.transaction import TransactionPatch, TransactionTag
from finance_api.services import analytics

router = APIRouter(tags=["transactions"])


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@router.get("")
def list_transactions(
    account_id: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    is_tagged: Optional[bool] = Query(None),
    start_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
    limit: Optional[int] = Query(None, ge=0),
    offset: int = Query(0, ge=0),
    store: JsonStore = Depends(get_store),
):
    """
    Transactions newest first, with optional filters. `total` counts matches before pagination.
    """
    txns = analytics.filter_transactions(
        store.read()["transactions"],
        account_id=account_id,
        category_id=category_id,
        is_tagged=is_tagged,
        start_date=_iso(start_date),
        end_date=_iso(end_date),
    )
    total = len(txns)
    page = txns[offset:]
    if limit is not None:
        page = page[:limit]
    return {"transactions": page, "total": total, "limit": limit or total, "offset": offset}


# stats routes are declared before /{txn_id} so they are not captured by it
@router.get("/stats/cash-flow")
def cash_flow(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    store: JsonStore = Depends(get_store),
):
    return analytics.cash_flow(store.read()["transactions"], _iso(start_date), _iso(end_date))


@router.get("/stats/by-category")
def spending_by_category(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    store: JsonStore = Depends(get_store),
):
    db = store.read()
    rows = analytics.expenses_by_category(db["transactions"], db["categories"], _iso(start_date), _iso(end_date))
    return {"categories": rows}


@router.get("/stats/by-date")
def cash_flow_by_date(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    store: JsonStore = Depends(get_store),
):
    return {"days": analytics.cash_flow_by_date(store.read()["transactions"], _iso(start_date), _iso(end_date))}


@router.get("/{txn_id}")
def get_transaction(txn_id: str, store: JsonStore = Depends(get_store)):
    txn = find_by_id(store.read()["transactions"], txn_id)
    if not txn:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return {"transaction": txn}


@router.patch("/{txn_id}/tag")
def tag_transaction(txn_id: str, payload: TransactionTag, store: JsonStore = Depends(get_store)):
    """Set the category and mark the transaction as confirmed by the user."""
    with store.session() as db:
        if not find_by_id(db["categories"], payload.category_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
        txn = find_by_id(db["transactions"], txn_id)
        if not txn:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
        txn["category_id"] = payload.category_id
        txn["is_tagged"] = True
        txn["updated_at"] = now_iso()
    return {"success": True, "transaction": txn}


@router.patch("/{txn_id}")
def update_transaction(txn_id: str, payload: TransactionPatch, store: JsonStore = Depends(get_store)):
    with store.session() as db:
        txn = find_by_id(db["transactions"], txn_id)
        if not txn:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
        if payload.category_id:
            if not find_by_id(db["categories"], payload.category_id):
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
            txn["category_id"] = payload.category_id
            txn["is_tagged"] = payload.category_id != UNCATEGORIZED_ID
        if payload.name:
            txn["name"] = payload.name
        txn["updated_at"] = now_iso()
    return {"success": True, "transaction": txn}
