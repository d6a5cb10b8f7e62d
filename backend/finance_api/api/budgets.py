# finance_api/api/budgets.py
from fastapi import APIRouter, Depends, HTTPException, status

from finance_api.api.deps import get_store
from finance_api.db.store import JsonStore, find_by_id
from finance_api.schemas.budget import BudgetCreate, BudgetUpdate
from finance_api.services.budgets import budget_progress, create_budget, update_budget

router = APIRouter(tags=["budgets"])


@router.get("")
def list_budgets(store: JsonStore = Depends(get_store)):
    return {"budgets": store.read()["budgets"]}


@router.get("/{budget_id}")
def get_budget(budget_id: str, store: JsonStore = Depends(get_store)):
    budget = find_by_id(store.read()["budgets"], budget_id)
    if not budget:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
    return {"budget": budget}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_budget(payload: BudgetCreate, store: JsonStore = Depends(get_store)):
    with store.session() as db:
        budget = create_budget(
            db,
            category_id=payload.category_id,
            amount=payload.amount,
            period=payload.period,
            start_date=payload.start_date.isoformat(),
            end_date=payload.end_date.isoformat() if payload.end_date else None,
        )
    return {"success": True, "budget": budget}


@router.patch("/{budget_id}")
def edit_budget(budget_id: str, payload: BudgetUpdate, store: JsonStore = Depends(get_store)):
    if "category_id" in payload.model_fields_set:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot change budget category. Delete and create a new budget instead.",
        )
    with store.session() as db:
        budget = find_by_id(db["budgets"], budget_id)
        if not budget:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
        changes = {}
        if payload.amount is not None:
            changes["amount"] = payload.amount
        if payload.period is not None:
            changes["period"] = payload.period
        if payload.start_date is not None:
            changes["start_date"] = payload.start_date.isoformat()
        if "end_date" in payload.model_fields_set:
            changes["end_date"] = payload.end_date.isoformat() if payload.end_date else None
        update_budget(db, budget, changes)
    return {"success": True, "budget": budget}


@router.delete("/{budget_id}")
def delete_budget(budget_id: str, store: JsonStore = Depends(get_store)):
    with store.session() as db:
        budget = find_by_id(db["budgets"], budget_id)
        if not budget:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
        db["budgets"].remove(budget)
    return {"success": True, "message": "Budget deleted successfully"}


@router.get("/{budget_id}/progress")
def get_budget_progress(budget_id: str, store: JsonStore = Depends(get_store)):
    db = store.read()
    budget = find_by_id(db["budgets"], budget_id)
    if not budget:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
    return budget_progress(budget, db["transactions"])
