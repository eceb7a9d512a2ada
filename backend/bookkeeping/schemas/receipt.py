# bookkeeping/schemas/receipt.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class ReceiptOut(BaseModel):
    id: int
    income_id: Optional[int] = None
    expense_id: Optional[int] = None
    file_name: str
    rel_path: str
    mime_type: str
    uploaded_by: int
    checksum: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
