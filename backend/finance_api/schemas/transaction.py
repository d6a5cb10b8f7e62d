# finance_api/schemas/transaction.py
from pydantic import BaseModel, Field
from typing import Optional


class TransactionTag(BaseModel):
    category_id: str = Field(..., min_length=1)


class TransactionPatch(BaseModel):
    category_id: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = None
