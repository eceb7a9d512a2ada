# bookkeeping/repositories/income.py
from bookkeeping.db import models
from bookkeeping.repositories.base import SqlRecordRepository


class IncomeRepository(SqlRecordRepository):
    model = models.Income
    owner_key = "income_id"
    sibling_key = "expense_id"
