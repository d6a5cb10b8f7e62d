# finance_api/api/deps.py
import math
import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import HTTPException, Request, status

from finance_api.core.config import SimpleSettings
from finance_api.db.store import JsonStore
from finance_api.services.plaid import PlaidService


def get_store(request: Request) -> JsonStore:
    """FastAPI dependency returning the store owned by the running app."""
    return request.app.state.store


def get_settings(request: Request) -> SimpleSettings:
    return request.app.state.settings


def get_plaid_service(request: Request) -> PlaidService:
    service = request.app.state.plaid_service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Plaid integration is not configured (PLAID_CLIENT_ID, PLAID_SECRET, PLAID_ENCRYPTION_KEY)",
        )
    return service


class RateLimiter:
    """Fixed-window, in-memory request counter per client address."""

    def __init__(self, max_requests: int = 10, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, client_id: str, now: Optional[float] = None) -> int:
        """Record a request; returns 0 if allowed, else seconds until the window resets."""
        now = time.monotonic() if now is None else now
        with self._lock:
            # drop expired windows so the table doesn't grow without bound
            expired = [k for k, (_, reset_at) in self._windows.items() if reset_at <= now]
            for k in expired:
                del self._windows[k]

            count, reset_at = self._windows.get(client_id, (0, now + self.window_seconds))
            count += 1
            self._windows[client_id] = (count, reset_at)
            if count > self.max_requests:
                return max(1, math.ceil(reset_at - now))
            return 0

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def rate_limit(request: Request) -> None:
    limiter: RateLimiter = request.app.state.rate_limiter
    client_id = request.client.host if request.client else "unknown"
    retry_after = limiter.hit(client_id)
    if retry_after:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Please try again in {retry_after} seconds.",
            headers={"Retry-After": str(retry_after)},
        )
