# finance_api/api/categories.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from finance_api.api.deps import get_store
from finance_api.db.models import UNCATEGORIZED_ID, now_iso
from finance_api.db.store import JsonStore, find_by_id
from finance_api.schemas.category import CategoryCreate, CategoryUpdate
from finance_api.services.analytics import filter_transactions

router = APIRouter(tags=["categories"])


@router.get("")
def list_categories(store: JsonStore = Depends(get_store)):
    return {"categories": store.read()["categories"]}


@router.get("/{category_id}")
def get_category(category_id: str, store: JsonStore = Depends(get_store)):
    cat = find_by_id(store.read()["categories"], category_id)
    if not cat:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return {"category": cat}


@router.get("/{category_id}/transactions")
def list_category_transactions(category_id: str, store: JsonStore = Depends(get_store)):
    db = store.read()
    cat = find_by_id(db["categories"], category_id)
    if not cat:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    txns = filter_transactions(db["transactions"], category_id=category_id)
    return {"category": cat, "transactions": txns, "total": len(txns)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryCreate, store: JsonStore = Depends(get_store)):
    with store.session() as db:
        if payload.parent_id and not find_by_id(db["categories"], payload.parent_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent category not found")
        ts = now_iso()
        new = {
            "id": str(uuid.uuid4()),
            "name": payload.name,
            "parent_id": payload.parent_id or None,
            "color": payload.color,
            "icon": payload.icon,
            "is_system": False,
            "created_at": ts,
            "updated_at": ts,
        }
        db["categories"].append(new)
    return {"success": True, "category": new}


@router.put("/{category_id}")
def update_category(category_id: str, payload: CategoryUpdate, store: JsonStore = Depends(get_store)):
    with store.session() as db:
        cat = find_by_id(db["categories"], category_id)
        if not cat:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
        if "parent_id" in payload.model_fields_set and payload.parent_id:
            if payload.parent_id == category_id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A category cannot be its own parent")
            if not find_by_id(db["categories"], payload.parent_id):
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent category not found")
        if payload.name is not None:
            cat["name"] = payload.name
        if payload.color is not None:
            cat["color"] = payload.color
        if payload.icon is not None:
            cat["icon"] = payload.icon
        if "parent_id" in payload.model_fields_set:
            cat["parent_id"] = payload.parent_id or None
        cat["updated_at"] = now_iso()
    return {"success": True, "category": cat}


@router.delete("/{category_id}")
def delete_category(category_id: str, store: JsonStore = Depends(get_store)):
    """
    Delete a category. Its transactions fall back to Uncategorized (untagged),
    child categories become top-level and budgets bound to it are removed.
    """
    if category_id == UNCATEGORIZED_ID:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="The Uncategorized category cannot be deleted")
    with store.session() as db:
        cat = find_by_id(db["categories"], category_id)
        if not cat:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
        db["categories"].remove(cat)
        ts = now_iso()
        reassigned = 0
        for txn in db["transactions"]:
            if txn.get("category_id") == category_id:
                txn["category_id"] = UNCATEGORIZED_ID
                txn["is_tagged"] = False
                txn["updated_at"] = ts
                reassigned += 1
        for child in db["categories"]:
            if child.get("parent_id") == category_id:
                child["parent_id"] = None
                child["updated_at"] = ts
        db["budgets"] = [b for b in db["budgets"] if b.get("category_id") != category_id]
    return {"success": True, "message": "Category deleted successfully", "transactions_reassigned": reassigned}
