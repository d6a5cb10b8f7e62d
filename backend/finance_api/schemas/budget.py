# finance_api/schemas/budget.py
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from finance_api.db.models import BudgetPeriod

MAX_BUDGET_AMOUNT = 10_000_000


class BudgetCreate(BaseModel):
    # None = applies to all categories (then end_date is required)
    category_id: Optional[str] = Field(..., min_length=1)
    amount: float = Field(..., gt=0, le=MAX_BUDGET_AMOUNT)
    period: BudgetPeriod
    start_date: date
    end_date: Optional[date] = None


class BudgetUpdate(BaseModel):
    amount: Optional[float] = Field(None, gt=0, le=MAX_BUDGET_AMOUNT)
    period: Optional[BudgetPeriod] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    # accepted only so its presence can be rejected explicitly
    category_id: Optional[str] = None
