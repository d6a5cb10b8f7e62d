# finance_api/schemas/data.py
from typing import Any

from pydantic import BaseModel

from finance_api.services.data_transfer import ImportStrategy


class ImportRequest(BaseModel):
    # checked by validate_document, not by this model
    data: Any = None
    strategy: ImportStrategy = "replace"


class ValidateRequest(BaseModel):
    data: Any = None
