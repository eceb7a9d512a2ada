# bookkeeping/api/v1/incomes.py
from bookkeeping.api.v1.deps import get_income_service
from bookkeeping.api.v1.records import build_record_router
from bookkeeping.db import models
from bookkeeping.schemas.record import IncomeOut

router = build_record_router(models.Income, IncomeOut, get_income_service)
