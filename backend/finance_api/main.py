# finance_api/main.py
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finance_api import __version__
from finance_api.api import accounts, budgets, categories, data, goals, health, plaid, transactions
from finance_api.api.deps import RateLimiter
from finance_api.core.config import SimpleSettings, settings as default_settings
from finance_api.core.errors import (
    ConflictError,
    DataValidationError,
    EncryptionError,
    NotFoundError,
    PlaidApiError,
    PlaidNotConfiguredError,
)
from finance_api.db.store import JsonStore
from finance_api.services.encryption import validate_encryption_key
from finance_api.services.plaid import PlaidService
from finance_api.services.plaid_client import PlaidClient

logger = logging.getLogger(__name__)


def build_plaid_service(settings: SimpleSettings, store: JsonStore, client=None) -> Optional[PlaidService]:
    """
    PlaidService when credentials and a valid encryption key are configured.
    Outside production a missing/invalid configuration disables the Plaid routes instead of failing.
    """
    try:
        if not settings.plaid_configured:
            raise PlaidNotConfiguredError("PLAID_CLIENT_ID, PLAID_SECRET and PLAID_ENCRYPTION_KEY are required")
        validate_encryption_key(settings.PLAID_ENCRYPTION_KEY)
    except (PlaidNotConfiguredError, EncryptionError) as exc:
        if settings.is_production:
            raise
        logger.warning("Plaid integration disabled: %s", exc)
        return None

    client = client or PlaidClient(settings.PLAID_CLIENT_ID, settings.PLAID_SECRET, settings.PLAID_ENV)
    logger.info("Plaid client initialized (%s environment)", settings.PLAID_ENV)
    return PlaidService(store, client, settings.PLAID_ENCRYPTION_KEY)


def register_exception_handlers(app: FastAPI, settings: SimpleSettings) -> None:
    def _error(status_code: int, detail, exc: Exception = None) -> JSONResponse:
        content = {"detail": detail}
        if exc is not None and settings.is_development:
            content["message"] = str(exc)
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(DataValidationError)
    async def data_validation_handler(request: Request, exc: DataValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return _error(409, str(exc))

    @app.exception_handler(PlaidNotConfiguredError)
    async def plaid_not_configured_handler(request: Request, exc: PlaidNotConfiguredError):
        return _error(503, "Plaid integration is not configured")

    @app.exception_handler(PlaidApiError)
    async def plaid_error_handler(request: Request, exc: PlaidApiError):
        logger.error("Plaid API error on %s: %s (%s)", request.url.path, exc, exc.error_code)
        if exc.error_code == "INVALID_PUBLIC_TOKEN":
            return _error(400, "The public token is invalid or expired. Please try connecting again.")
        if exc.status_code is None or exc.status_code >= 500:
            return _error(503, "Plaid service is currently unavailable. Please try again later.", exc)
        return _error(502, "Plaid request failed", exc)

    @app.exception_handler(EncryptionError)
    async def encryption_error_handler(request: Request, exc: EncryptionError):
        logger.error("Encryption error on %s: %s", request.url.path, exc)
        return _error(500, "Server configuration error", exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal server error", exc)


def create_app(settings: Optional[SimpleSettings] = None, store: Optional[JsonStore] = None,
               plaid_client=None) -> FastAPI:
    """
    Application factory. The store is loaded here and handed to routes through
    app.state, so tests can pass their own store/settings/Plaid client.
    """
    settings = settings or default_settings
    store = store or JsonStore(settings.DB_PATH)
    store.load()

    app = FastAPI(title="Finance API", version=__version__)
    app.state.settings = settings
    app.state.store = store
    app.state.plaid_service = build_plaid_service(settings, store, plaid_client)
    app.state.rate_limiter = RateLimiter(settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api")
    app.include_router(accounts.router, prefix="/api/accounts")
    app.include_router(transactions.router, prefix="/api/transactions")
    app.include_router(categories.router, prefix="/api/categories")
    app.include_router(budgets.router, prefix="/api/budgets")
    app.include_router(goals.router, prefix="/api/goals")
    app.include_router(plaid.router, prefix="/api/plaid")
    app.include_router(data.router, prefix="/api/data")

    register_exception_handlers(app, settings)

    @app.get("/")
    def root():
        return {"message": "Finance API - visit /api/health"}

    return app


def run() -> None:
    import uvicorn

    logging.basicConfig(
        level=default_settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    logger.info("Environment: %s", default_settings.APP_ENV)
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    run()
