# finance_api/schemas/category.py
from pydantic import BaseModel, Field
from typing import Optional

from finance_api.db.models import HEX_COLOR_PATTERN


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    parent_id: Optional[str] = None
    color: str = Field(..., pattern=HEX_COLOR_PATTERN)
    icon: str = Field(..., min_length=1)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    parent_id: Optional[str] = None
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    icon: Optional[str] = Field(None, min_length=1)
