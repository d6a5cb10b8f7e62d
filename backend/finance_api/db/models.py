# finance_api/db/models.py - record shapes of the JSON document (accounts, transactions, categories, budgets, goals, plaid_items)
from datetime import date, datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"

BudgetPeriod = Literal["daily", "weekly", "monthly", "yearly"]

UNCATEGORIZED_ID = "cat-uncategorized"

# record field types; stored as ISO strings, validated strictly on import
IsoDate = date
Timestamp = datetime

COLLECTIONS = ("accounts", "transactions", "categories", "budgets", "goals", "plaid_items")


def now_iso() -> str:
    """UTC timestamp in the `2024-01-31T12:00:00.000Z` form used across the document."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AccountRecord(BaseModel):
    id: str
    plaid_item_id: str
    plaid_account_id: str
    name: str
    official_name: Optional[str] = None
    type: str
    subtype: str
    mask: str
    current_balance: float
    available_balance: Optional[float] = None
    currency: str
    created_at: Timestamp
    updated_at: Timestamp


class TransactionRecord(BaseModel):
    id: str
    plaid_transaction_id: str
    account_id: str
    date: IsoDate
    authorized_date: Optional[IsoDate] = None
    # positive = debit (expense), negative = credit (income)
    amount: float
    name: str
    merchant_name: Optional[str] = None
    category_id: str
    is_tagged: bool
    is_pending: bool
    payment_channel: str
    created_at: Timestamp
    updated_at: Timestamp


class CategoryRecord(BaseModel):
    id: str
    name: str = Field(..., min_length=1)
    parent_id: Optional[str] = None
    color: str = Field(..., pattern=HEX_COLOR_PATTERN)
    icon: str
    is_system: bool
    created_at: Timestamp
    updated_at: Timestamp


class BudgetRecord(BaseModel):
    id: str
    category_id: Optional[str] = None
    amount: float = Field(..., gt=0, le=10_000_000)
    period: BudgetPeriod
    start_date: IsoDate
    end_date: Optional[IsoDate] = None
    created_at: Timestamp
    updated_at: Timestamp


class GoalRecord(BaseModel):
    id: str
    name: str = Field(..., min_length=1)
    target_amount: float = Field(..., gt=0)
    current_amount: float = Field(0, ge=0)
    target_date: IsoDate
    created_at: Timestamp
    updated_at: Timestamp


class PlaidItemRecord(BaseModel):
    id: str
    item_id: str
    access_token: str
    institution_id: str
    institution_name: str
    transactions_cursor: Optional[str] = None
    last_sync: Optional[Timestamp] = None
    created_at: Timestamp
    updated_at: Optional[Timestamp] = None


class DatabaseDocument(BaseModel):
    accounts: List[AccountRecord]
    transactions: List[TransactionRecord]
    categories: List[CategoryRecord]
    budgets: List[BudgetRecord]
    goals: List[GoalRecord] = []
    plaid_items: List[PlaidItemRecord]


# (id, name, color, icon) of the seeded system categories
_DEFAULT_CATEGORIES = [
    ("cat-income", "Income", "#10b981", "💰"),
    ("cat-housing", "Housing", "#8b5cf6", "🏠"),
    ("cat-transportation", "Transportation", "#3b82f6", "🚗"),
    ("cat-food", "Food", "#f59e0b", "🍔"),
    ("cat-entertainment", "Entertainment", "#ec4899", "🎬"),
    ("cat-shopping", "Shopping", "#06b6d4", "🛍️"),
    ("cat-healthcare", "Healthcare", "#ef4444", "🏥"),
    ("cat-financial", "Financial", "#6366f1", "💳"),
    (UNCATEGORIZED_ID, "Uncategorized", "#6b7280", "❓"),
]


def default_categories() -> List[dict]:
    ts = now_iso()
    return [
        {
            "id": cid,
            "name": name,
            "parent_id": None,
            "color": color,
            "icon": icon,
            "is_system": True,
            "created_at": ts,
            "updated_at": ts,
        }
        for cid, name, color, icon in _DEFAULT_CATEGORIES
    ]


def empty_document() -> dict:
    doc = {name: [] for name in COLLECTIONS}
    doc["categories"] = default_categories()
    return doc


def utc_today() -> date:
    return datetime.now(timezone.utc).date()
