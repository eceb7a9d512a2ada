# check_receipts.py - list recent receipts and report blobs no receipt row references
import sys

from bookkeeping.core.config import settings
from bookkeeping.db import models
from bookkeeping.db.session import build_engine, build_session_factory
from bookkeeping.repositories.expense import ExpenseRepository
from bookkeeping.repositories.income import IncomeRepository
from bookkeeping.storage.base import find_orphans
from bookkeeping.storage.local import LocalFileStorage


def report(session_factory, storage, limit: int = 20) -> list:
    db = session_factory()
    try:
        print("Recent receipts (id, income_id, expense_id, rel_path, checksum):")
        rows = db.query(models.Receipt).order_by(models.Receipt.id.desc()).limit(limit).all()
        for r in rows:
            print(" -", r.id, r.income_id, r.expense_id, r.rel_path, r.checksum)
    finally:
        db.close()

    referenced = IncomeRepository(session_factory).list_receipt_locators()
    referenced += ExpenseRepository(session_factory).list_receipt_locators()
    orphans = find_orphans(storage, referenced)

    print(f"\nOrphaned blobs in {storage.upload_dir}: {len(orphans)}")
    for loc in orphans:
        print(" -", loc)
    return orphans


if __name__ == "__main__":
    factory = build_session_factory(build_engine(settings.DATABASE_URL))
    orphans = report(factory, LocalFileStorage(settings.UPLOAD_DIR))
    sys.exit(1 if orphans else 0)
