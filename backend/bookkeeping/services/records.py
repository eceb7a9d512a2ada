# bookkeeping/services/records.py
"""Record/receipt consistency engine.

A record row lives in the database, its receipt bytes live in the blob store,
and the two share no transaction. Every operation here keeps them consistent
with one ordering rule:

  - a new blob is written *before* the database commit;
  - a blob that lost (the new one after a failed commit, the old one after a
    successful replacement) is deleted only *after* the outcome is known.

The worst case is therefore an orphaned blob on disk, never a record pointing
at a file that was not written. Blob deletions done as compensation are
best-effort: failures are logged and never replace the primary outcome.
"""
import logging
from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from bookkeeping.core.errors import ForbiddenError, StorageError, ValidationError
from bookkeeping.db import models
from bookkeeping.repositories.base import RecordRepository
from bookkeeping.storage.base import BlobStore, ReceiptUpload

logger = logging.getLogger(__name__)

MAX_AMOUNT = Decimal("9999999999.99")  # Numeric(12, 2)
MAX_DESCRIPTION = 255
CENTS = Decimal("0.01")


@dataclass
class RecordPatch:
    """
    Partial update of a record's mutable fields. ``None`` means "leave unchanged";
    any other value is applied and validated like on create.
    """
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    type: Optional[str] = None
    date: Optional[datetime] = None

    @classmethod
    def sparse(cls, amount=None, description=None, type=None, date=None) -> "RecordPatch":
        """
        Build a patch with zero-value-means-absent semantics: 0 / "" / None are
        all treated as "not sent". This cannot express "set to zero".
        """
        if amount in (None, ""):
            amount = None
        else:
            try:
                if Decimal(str(amount)) == 0:
                    amount = None
            except InvalidOperation:
                pass  # left for validation to reject
        return cls(
            amount=amount,
            description=description or None,
            type=type or None,
            date=date or None,
        )

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


class RecordService:
    """
    Orchestrates validation, blob writes, repository transactions and
    compensating cleanup for one record kind. Subclasses set ``kind`` and
    ``type_enum``.
    """

    kind = "record"
    type_enum = None

    def __init__(self, repository: RecordRepository, storage: BlobStore):
        self.repository = repository
        self.storage = storage

    # ── validation ────────────────────────────────────────

    def _coerce_amount(self, value) -> Decimal:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"{self.kind} amount must be a number")
        if not amount.is_finite():
            raise ValidationError(f"{self.kind} amount must be a number")
        # range checks apply to the stored (rounded) value
        try:
            amount = amount.quantize(CENTS)
        except InvalidOperation:
            raise ValidationError(f"{self.kind} amount is too large")
        if amount <= 0:
            raise ValidationError(f"{self.kind} amount must be greater than 0")
        if amount > MAX_AMOUNT:
            raise ValidationError(f"{self.kind} amount is too large")
        return amount

    def _coerce_description(self, value) -> str:
        description = str(value).strip() if value is not None else ""
        if not description:
            raise ValidationError(f"{self.kind} description is required")
        if len(description) > MAX_DESCRIPTION:
            raise ValidationError(f"{self.kind} description must be at most {MAX_DESCRIPTION} characters")
        return description

    def _coerce_type(self, value) -> str:
        if value is None or value == "":
            raise ValidationError(f"{self.kind} type is required")
        try:
            return self.type_enum(value).value
        except ValueError:
            allowed = ", ".join(t.value for t in self.type_enum)
            raise ValidationError(f"invalid {self.kind} type '{value}' (expected one of: {allowed})")

    def validate(self, record) -> None:
        """Normalise and check the business fields of a new record, in place."""
        if record is None:
            raise ValidationError(f"{self.kind} cannot be empty")
        record.amount = self._coerce_amount(record.amount)
        record.description = self._coerce_description(record.description)
        record.type = self._coerce_type(record.type)
        if not record.created_by:
            raise ValidationError(f"{self.kind} created_by is required")

    def _apply_patch(self, record, patch: RecordPatch) -> None:
        if patch.amount is not None:
            record.amount = self._coerce_amount(patch.amount)
        if patch.description is not None:
            record.description = self._coerce_description(patch.description)
        if patch.type is not None:
            record.type = self._coerce_type(patch.type)
        if patch.date is not None:
            record.date = patch.date

    # ── compensation ──────────────────────────────────────

    def _discard_blob(self, locator: str, reason: str) -> None:
        try:
            self.storage.delete_pdf(locator)
        except StorageError:
            logger.exception("Failed to remove receipt blob %s (%s); leaving it orphaned", locator, reason)

    # ── operations ────────────────────────────────────────

    def get(self, record_id: int):
        return self.repository.get_by_id(record_id)

    def list(self) -> List:
        return self.repository.list()

    def create(self, record, upload: Optional[ReceiptUpload]):
        self.validate(record)
        if upload is None:
            raise ValidationError("receipt file is required")
        if record.date is None:
            record.date = models.utcnow()

        blob = self.storage.save_pdf(upload)
        receipt = models.Receipt(
            file_name=blob.name,
            rel_path=blob.locator,
            mime_type=models.RECEIPT_MIME_TYPE,
            uploaded_by=record.created_by,
            checksum=blob.checksum,
        )

        try:
            created = self.repository.create_with_receipt(record, receipt)
        except Exception:
            self._discard_blob(blob.locator, f"{self.kind} create failed")
            raise

        logger.info("Created %s %s with receipt %s", self.kind, created.id, blob.name)
        return created

    def update(
        self,
        record_id: int,
        patch: Optional[RecordPatch],
        upload: Optional[ReceiptUpload],
        acting_user_id: int,
    ):
        existing = self.repository.get_by_id(record_id)
        if existing.created_by != acting_user_id:
            raise ForbiddenError(f"only the creator can update this {self.kind}/receipt")

        self._apply_patch(existing, patch or RecordPatch())

        new_locator = None
        old_locator = None
        receipt_to_update = None

        if upload is not None:
            receipt = existing.receipt
            if receipt is None:
                raise ValidationError(f"receipt not found for this {self.kind}")

            blob = self.storage.save_pdf(upload)
            if receipt.checksum == blob.checksum:
                # same bytes as the committed receipt: keep pointing at the current blob
                self._discard_blob(blob.locator, "identical to current receipt")
            else:
                new_locator = blob.locator
                old_locator = receipt.rel_path
                receipt.file_name = blob.name
                receipt.rel_path = blob.locator
                receipt.mime_type = models.RECEIPT_MIME_TYPE
                receipt.checksum = blob.checksum
            receipt.uploaded_by = acting_user_id
            receipt_to_update = receipt

        try:
            self.repository.update_with_receipt(existing, receipt_to_update)
        except Exception:
            if new_locator:
                self._discard_blob(new_locator, f"{self.kind} {record_id} update failed")
            raise

        # only now is the old blob unreferenced
        if old_locator:
            self._discard_blob(old_locator, "replaced by a new receipt")

        logger.info("Updated %s %s (receipt replaced: %s)", self.kind, record_id, bool(new_locator))
        return self.repository.get_by_id(record_id)

    def soft_delete(self, record_id: int, acting_user_id: int) -> None:
        record = self.repository.get_by_id(record_id)
        if record.created_by != acting_user_id:
            raise ForbiddenError(f"only the creator can delete this {self.kind}/receipt")
        self.repository.soft_delete(record_id)
        logger.info("Soft deleted %s %s", self.kind, record_id)

    def restore(self, record_id: int):
        # soft-deleted rows are invisible to get(); hard-deleted ones are gone for good
        self.repository.get_by_id(record_id, include_deleted=True)
        self.repository.restore(record_id)
        logger.info("Restored %s %s", self.kind, record_id)
        return self.repository.get_by_id(record_id)

    def delete(self, record_id: int) -> None:
        record = self.repository.get_by_id(record_id)
        locator = record.receipt.rel_path if record.receipt is not None else None

        self.repository.delete(record_id)
        logger.info("Permanently deleted %s %s", self.kind, record_id)

        if locator:
            self._discard_blob(locator, f"{self.kind} {record_id} deleted")


class IncomeService(RecordService):
    kind = "income"
    type_enum = models.IncomeType


class ExpenseService(RecordService):
    kind = "expense"
    type_enum = models.ExpenseType
