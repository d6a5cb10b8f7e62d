# finance_api/core/config.py
# Simple config loader: environment variables (optionally from .env) with defaults
import os
from dotenv import load_dotenv

load_dotenv()

PLAID_ENVIRONMENTS = ("sandbox", "development", "production")


class SimpleSettings:
    def __init__(self, **overrides):
        self.APP_ENV = os.getenv("APP_ENV", "development")
        self.DB_PATH = os.getenv("DB_PATH", "./data/db.json")
        self.FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        self.HOST = os.getenv("HOST", "127.0.0.1")
        self.PORT = int(os.getenv("PORT", "8000"))

        self.PLAID_CLIENT_ID = os.getenv("PLAID_CLIENT_ID", "")
        self.PLAID_SECRET = os.getenv("PLAID_SECRET", "")
        self.PLAID_ENV = os.getenv("PLAID_ENV", "sandbox")
        self.PLAID_ENCRYPTION_KEY = os.getenv("PLAID_ENCRYPTION_KEY", "")

        self.SYNC_THROTTLE_MINUTES = int(os.getenv("SYNC_THROTTLE_MINUTES", "5"))
        self.RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "10"))
        self.RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

        for key, value in overrides.items():
            setattr(self, key, value)

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def plaid_configured(self) -> bool:
        return bool(self.PLAID_CLIENT_ID and self.PLAID_SECRET and self.PLAID_ENCRYPTION_KEY)

    @property
    def cors_origins(self):
        # dev server of the dashboard unless a production origin is configured
        if self.is_production:
            return [self.FRONTEND_URL]
        return ["http://localhost:5173", "http://127.0.0.1:5173"]


settings = SimpleSettings()
