# finance_api/api/plaid.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from finance_api.api.deps import get_plaid_service, get_settings, get_store, rate_limit
from finance_api.core.config import SimpleSettings
from finance_api.db.store import JsonStore, find_by_id
from finance_api.schemas.plaid import ExchangeTokenRequest, PlaidItemRequest
from finance_api.services.plaid import PlaidService, empty_sync_result, is_sync_throttled, sync_status

logger = logging.getLogger(__name__)
router = APIRouter(tags=["plaid"], dependencies=[Depends(rate_limit)])


@router.post("/link-token")
def create_link_token(plaid: PlaidService = Depends(get_plaid_service)):
    return {"link_token": plaid.create_link_token(), "expiration": "30 minutes"}


@router.post("/exchange-token", status_code=status.HTTP_201_CREATED)
def exchange_token(payload: ExchangeTokenRequest, plaid: PlaidService = Depends(get_plaid_service)):
    """Exchange a Link public token, store the encrypted access token and pull accounts right away."""
    item = plaid.exchange_public_token(payload.public_token)
    accounts = plaid.sync_accounts(item["id"])
    return {
        "item_id": item["item_id"],
        "plaid_item_id": item["id"],
        "institution_name": item["institution_name"],
        "accounts_synced": len(accounts),
    }


@router.post("/accounts")
def sync_accounts(payload: PlaidItemRequest, plaid: PlaidService = Depends(get_plaid_service)):
    accounts = plaid.sync_accounts(payload.item_id)
    return {"success": True, "accounts_synced": len(accounts), "accounts": accounts}


@router.post("/sync-transactions")
def sync_transactions(
    payload: PlaidItemRequest,
    store: JsonStore = Depends(get_store),
    settings: SimpleSettings = Depends(get_settings),
    plaid: PlaidService = Depends(get_plaid_service),
):
    item = find_by_id(store.read()["plaid_items"], payload.item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PlaidItem not found")
    if is_sync_throttled(item, settings.SYNC_THROTTLE_MINUTES):
        logger.info("Skipping sync for %s: last sync at %s", item["id"], item.get("last_sync"))
        return empty_sync_result(item)
    return plaid.sync_transactions(payload.item_id)


@router.get("/sync-status")
def get_sync_status(store: JsonStore = Depends(get_store), settings: SimpleSettings = Depends(get_settings)):
    return {
        "items": sync_status(store.read(), settings.SYNC_THROTTLE_MINUTES),
        "throttle_minutes": settings.SYNC_THROTTLE_MINUTES,
    }
