# bookkeeping/schemas/record.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Optional

from bookkeeping.db.models import ExpenseType, IncomeType
from bookkeeping.schemas.receipt import ReceiptOut


class RecordOut(BaseModel):
    id: int
    amount: Decimal
    description: str
    date: datetime
    created_by: int
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None
    receipt: Optional[ReceiptOut] = None

    model_config = ConfigDict(from_attributes=True)


class IncomeOut(RecordOut):
    type: IncomeType


class ExpenseOut(RecordOut):
    type: ExpenseType
