# bookkeeping/repositories/expense.py
from bookkeeping.db import models
from bookkeeping.repositories.base import SqlRecordRepository


class ExpenseRepository(SqlRecordRepository):
    model = models.Expense
    owner_key = "expense_id"
    sibling_key = "income_id"
