# bookkeeping/api/v1/expenses.py
from bookkeeping.api.v1.deps import get_expense_service
from bookkeeping.api.v1.records import build_record_router
from bookkeeping.db import models
from bookkeeping.schemas.record import ExpenseOut

router = build_record_router(models.Expense, ExpenseOut, get_expense_service)
