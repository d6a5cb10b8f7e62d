# finance_api/services/plaid_client.py
"""Minimal Plaid REST client.

Plaid authenticates with client_id + secret in the JSON body of every POST.
Only the endpoints the app needs are wrapped; responses are returned as dicts.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from finance_api.core.errors import PlaidApiError

logger = logging.getLogger(__name__)

PLAID_BASE_URLS = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}

DEFAULT_COUNTRY_CODES = ["US", "CA"]


class PlaidClient:
    def __init__(self, client_id: str, secret: str, environment: str = "sandbox", timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.client_id = client_id
        self.secret = secret
        self.environment = environment
        self.base_url = PLAID_BASE_URLS.get(environment, PLAID_BASE_URLS["sandbox"])
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/{endpoint}"
        body = {"client_id": self.client_id, "secret": self.secret, **payload}
        try:
            resp = self.session.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.exception("Plaid request to %s failed", endpoint)
            raise PlaidApiError(f"Plaid request failed: {exc}") from exc

        if resp.status_code >= 400:
            # Plaid errors come back as JSON: {error_type, error_code, error_message, ...}
            try:
                data = resp.json()
            except ValueError:
                data = {}
            error_code = data.get("error_code", "UNKNOWN")
            message = data.get("error_message") or resp.text
            logger.warning("Plaid %s returned %s (%s): %s", endpoint, resp.status_code, error_code, message)
            raise PlaidApiError(message, status_code=resp.status_code, error_code=error_code)
        return resp.json()

    def link_token_create(self, client_user_id: str, client_name: str = "Personal Finance App",
                          products: Optional[List[str]] = None,
                          country_codes: Optional[List[str]] = None) -> Dict[str, Any]:
        return self._post("link/token/create", {
            "user": {"client_user_id": client_user_id},
            "client_name": client_name,
            "products": products or ["transactions"],
            "country_codes": country_codes or DEFAULT_COUNTRY_CODES,
            "language": "en",
        })

    def item_public_token_exchange(self, public_token: str) -> Dict[str, Any]:
        return self._post("item/public_token/exchange", {"public_token": public_token})

    def item_get(self, access_token: str) -> Dict[str, Any]:
        return self._post("item/get", {"access_token": access_token})

    def institutions_get_by_id(self, institution_id: str,
                               country_codes: Optional[List[str]] = None) -> Dict[str, Any]:
        return self._post("institutions/get_by_id", {
            "institution_id": institution_id,
            "country_codes": country_codes or DEFAULT_COUNTRY_CODES,
        })

    def accounts_get(self, access_token: str) -> Dict[str, Any]:
        return self._post("accounts/get", {"access_token": access_token})

    def transactions_sync(self, access_token: str, cursor: Optional[str] = None, count: int = 100) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"access_token": access_token, "count": count}
        if cursor:
            payload["cursor"] = cursor
        return self._post("transactions/sync", payload)
