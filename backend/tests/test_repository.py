"""Tests for the SQLAlchemy record repositories."""
from decimal import Decimal

import pytest

from bookkeeping.core.errors import NotFoundError, PersistenceError
from bookkeeping.db import models

from fakes import new_expense, new_income


def _receipt(**overrides) -> models.Receipt:
    fields = dict(
        file_name="1_abcd1234_receipt.pdf",
        rel_path="/uploads/1_abcd1234_receipt.pdf",
        mime_type=models.RECEIPT_MIME_TYPE,
        uploaded_by=7,
        checksum="a" * 64,
    )
    fields.update(overrides)
    return models.Receipt(**fields)


def _stored(repo, **overrides):
    record = new_expense(date=models.utcnow(), **overrides)
    return repo.create_with_receipt(record, _receipt())


class TestCreateWithReceipt:

    def test_expense_owns_receipt_exclusively(self, expense_repo, count_rows):
        record = _stored(expense_repo)
        assert record.id > 0
        assert record.receipt.expense_id == record.id
        assert record.receipt.income_id is None

        loaded = expense_repo.get_by_id(record.id)
        assert loaded.receipt.id == record.receipt.id
        assert count_rows(models.Expense) == 1
        assert count_rows(models.Receipt) == 1

    def test_income_owns_receipt_exclusively(self, income_repo):
        record = income_repo.create_with_receipt(new_income(date=models.utcnow()), _receipt())
        loaded = income_repo.get_by_id(record.id)
        assert loaded.receipt.income_id == record.id
        assert loaded.receipt.expense_id is None

    def test_failure_rolls_back_both_rows(self, expense_repo, count_rows):
        broken = _receipt(file_name=None)  # NOT NULL violation on insert
        with pytest.raises(PersistenceError):
            expense_repo.create_with_receipt(new_expense(date=models.utcnow()), broken)
        assert count_rows(models.Expense) == 0
        assert count_rows(models.Receipt) == 0


class TestLookup:

    def test_missing_record(self, expense_repo):
        with pytest.raises(NotFoundError):
            expense_repo.get_by_id(999)

    def test_list_newest_first(self, expense_repo):
        older = _stored(expense_repo, description="older")
        newer = _stored(expense_repo, description="newer")
        assert [r.id for r in expense_repo.list()] == [newer.id, older.id]

    def test_kinds_do_not_leak(self, expense_repo, income_repo):
        record = _stored(expense_repo)
        with pytest.raises(NotFoundError):
            income_repo.get_by_id(record.id)


class TestSoftDeleteAndRestore:

    def test_soft_deleted_record_is_hidden(self, expense_repo, count_rows):
        record = _stored(expense_repo)
        expense_repo.soft_delete(record.id)

        with pytest.raises(NotFoundError):
            expense_repo.get_by_id(record.id)
        assert expense_repo.list() == []
        hidden = expense_repo.get_by_id(record.id, include_deleted=True)
        assert hidden.deleted_at is not None
        assert count_rows(models.Receipt) == 1

    def test_soft_delete_twice(self, expense_repo):
        record = _stored(expense_repo)
        expense_repo.soft_delete(record.id)
        with pytest.raises(NotFoundError):
            expense_repo.soft_delete(record.id)

    def test_restore(self, expense_repo):
        record = _stored(expense_repo)
        expense_repo.soft_delete(record.id)
        expense_repo.restore(record.id)
        restored = expense_repo.get_by_id(record.id)
        assert restored.deleted_at is None
        assert restored.receipt.rel_path == record.receipt.rel_path


class TestUpdateWithReceipt:

    def test_updates_fields_only(self, expense_repo):
        record = _stored(expense_repo)
        record.description = "Printer toner"
        record.amount = Decimal("99.90")
        expense_repo.update_with_receipt(record, None)

        loaded = expense_repo.get_by_id(record.id)
        assert loaded.description == "Printer toner"
        assert loaded.amount == Decimal("99.90")
        assert loaded.receipt.rel_path == "/uploads/1_abcd1234_receipt.pdf"

    def test_created_by_is_not_updated(self, expense_repo):
        record = _stored(expense_repo)
        record.created_by = 99
        expense_repo.update_with_receipt(record, None)
        assert expense_repo.get_by_id(record.id).created_by == 7

    def test_updates_receipt_in_place(self, expense_repo, count_rows):
        record = _stored(expense_repo)
        receipt = record.receipt
        receipt.rel_path = "/uploads/2_new_receipt.pdf"
        receipt.checksum = "b" * 64
        expense_repo.update_with_receipt(record, receipt)

        loaded = expense_repo.get_by_id(record.id)
        assert loaded.receipt.id == receipt.id
        assert loaded.receipt.rel_path == "/uploads/2_new_receipt.pdf"
        assert loaded.receipt.checksum == "b" * 64
        assert count_rows(models.Receipt) == 1

    def test_soft_deleted_record_is_not_updated(self, expense_repo):
        record = _stored(expense_repo)
        expense_repo.soft_delete(record.id)
        record.description = "should not land"
        record.receipt.rel_path = "/uploads/should-not-land.pdf"

        with pytest.raises(NotFoundError):
            expense_repo.update_with_receipt(record, record.receipt)

        hidden = expense_repo.get_by_id(record.id, include_deleted=True)
        assert hidden.description == "Office supplies"
        assert hidden.receipt.rel_path == "/uploads/1_abcd1234_receipt.pdf"


class TestHardDelete:

    def test_delete_cascades_to_receipt(self, expense_repo, count_rows):
        record = _stored(expense_repo)
        expense_repo.delete(record.id)
        assert count_rows(models.Expense) == 0
        assert count_rows(models.Receipt) == 0
        with pytest.raises(NotFoundError):
            expense_repo.get_by_id(record.id, include_deleted=True)

    def test_receipt_locators(self, expense_repo, income_repo):
        expense = _stored(expense_repo)
        income_repo.create_with_receipt(
            new_income(date=models.utcnow()), _receipt(rel_path="/uploads/income.pdf")
        )
        assert expense_repo.list_receipt_locators() == [expense.receipt.rel_path]
        assert income_repo.list_receipt_locators() == ["/uploads/income.pdf"]
