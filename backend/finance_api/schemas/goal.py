# finance_api/schemas/goal.py
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class GoalCreate(BaseModel):
    name: str = Field(..., min_length=1)
    target_amount: float = Field(..., gt=0)
    current_amount: float = Field(0, ge=0)
    target_date: date


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    target_amount: Optional[float] = Field(None, gt=0)
    current_amount: Optional[float] = Field(None, ge=0)
    target_date: Optional[date] = None


class GoalProgressUpdate(BaseModel):
    current_amount: float = Field(..., ge=0)
