# finance_api/schemas/plaid.py
import uuid

from pydantic import BaseModel, Field


class ExchangeTokenRequest(BaseModel):
    public_token: str = Field(..., min_length=1)


class PlaidItemRequest(BaseModel):
    plaid_item_id: uuid.UUID

    @property
    def item_id(self) -> str:
        return str(self.plaid_item_id)
