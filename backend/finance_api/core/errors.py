# finance_api/core/errors.py
"""Domain exceptions raised by services; routers map them to HTTP status codes."""
from typing import Any, Dict, List, Optional


class NotFoundError(Exception):
    """A referenced record does not exist (404)."""


class ConflictError(Exception):
    """The write would break a uniqueness/overlap rule (409)."""


class DataValidationError(Exception):
    """A candidate document failed schema or referential checks (400).

    `errors` holds every violation found, not only the first one.
    """

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        super().__init__(f"{len(errors)} validation error(s)")


class EncryptionError(Exception):
    """Bad key material or a token that cannot be decrypted."""


class PlaidNotConfiguredError(Exception):
    """Plaid credentials or the encryption key are missing (503)."""


class PlaidApiError(Exception):
    """Error response from the Plaid API (surfaced as 502/503)."""

    def __init__(self, message: str, status_code: Optional[int] = None, error_code: Optional[str] = None):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)
