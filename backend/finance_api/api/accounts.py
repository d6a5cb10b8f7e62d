# finance_api/api/accounts.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from finance_api.api.deps import get_plaid_service, get_store
from finance_api.db.store import JsonStore, find_by_id
from finance_api.services.plaid import PlaidService, get_all_accounts

logger = logging.getLogger(__name__)
router = APIRouter(tags=["accounts"])


@router.get("")
def list_accounts(store: JsonStore = Depends(get_store)):
    """All accounts with the institution name of their linked Plaid item."""
    return {"accounts": get_all_accounts(store.read())}


@router.post("")
def refresh_accounts(store: JsonStore = Depends(get_store), plaid: PlaidService = Depends(get_plaid_service)):
    """Re-pull accounts and balances for every linked institution."""
    item_ids = [item["id"] for item in store.read()["plaid_items"]]
    synced = 0
    for item_id in item_ids:
        synced += len(plaid.sync_accounts(item_id))
    return {"success": True, "accounts_synced": synced, "accounts": get_all_accounts(store.read())}


@router.delete("/{account_id}")
def delete_account(account_id: str, store: JsonStore = Depends(get_store)):
    with store.session() as db:
        account = find_by_id(db["accounts"], account_id)
        if not account:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
        db["accounts"].remove(account)
        before = len(db["transactions"])
        db["transactions"] = [t for t in db["transactions"] if t.get("account_id") != account_id]
        removed = before - len(db["transactions"])
    logger.info("Deleted account %s and %d transactions", account_id, removed)
    return {"success": True, "message": "Account deleted successfully", "transactions_removed": removed}
