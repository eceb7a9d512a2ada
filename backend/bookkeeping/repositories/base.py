# bookkeeping/repositories/base.py
"""
Record repository contract and its SQLAlchemy implementation.

One repository per record kind (Income, Expense). The repository owns the only
real database transaction boundary: a record row and its receipt row are
written together or not at all.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload, sessionmaker

from bookkeeping.core.errors import NotFoundError, PersistenceError
from bookkeeping.db import models

logger = logging.getLogger(__name__)

# columns a record update may touch; created_by is immutable
MUTABLE_FIELDS = ("amount", "description", "date", "type")
RECEIPT_FIELDS = ("file_name", "rel_path", "mime_type", "uploaded_by", "checksum")


class RecordRepository(ABC):
    """Capability interface for one record kind."""

    @abstractmethod
    def get_by_id(self, record_id: int, include_deleted: bool = False):
        """Return the record with its receipt. Raises NotFoundError."""

    @abstractmethod
    def list(self) -> List:
        """Active records only, newest first."""

    @abstractmethod
    def create_with_receipt(self, record, receipt: models.Receipt):
        """Insert record + receipt in one transaction and return the record."""

    @abstractmethod
    def update_with_receipt(self, record, receipt: Optional[models.Receipt]) -> None:
        """Conditionally update an active record and, if given, its receipt, in one transaction."""

    @abstractmethod
    def soft_delete(self, record_id: int) -> None:
        pass

    @abstractmethod
    def restore(self, record_id: int) -> None:
        pass

    @abstractmethod
    def delete(self, record_id: int) -> None:
        pass

    @abstractmethod
    def list_receipt_locators(self) -> List[str]:
        """Locators of every receipt row of this kind, soft-deleted records included."""


class SqlRecordRepository(RecordRepository):
    """
    SQLAlchemy-backed repository. Subclasses set:
      - model: the mapped record class
      - owner_key: Receipt column pointing at this kind
      - sibling_key: Receipt column pointing at the other kind (always NULL here)
    """

    model = None
    owner_key = None
    sibling_key = None

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @property
    def label(self) -> str:
        return self.model.__name__.lower()

    def _not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.label} not found")

    def get_by_id(self, record_id: int, include_deleted: bool = False):
        db = self._session_factory()
        try:
            q = (
                db.query(self.model)
                .options(selectinload(self.model.receipt))
                .filter(self.model.id == record_id)
            )
            if not include_deleted:
                q = q.filter(self.model.deleted_at.is_(None))
            record = q.first()
        except SQLAlchemyError as exc:
            logger.exception("Failed to load %s %s", self.label, record_id)
            raise PersistenceError(f"failed to load {self.label}: {exc}") from exc
        finally:
            db.close()
        if record is None:
            raise self._not_found()
        return record

    def list(self) -> List:
        db = self._session_factory()
        try:
            return (
                db.query(self.model)
                .options(selectinload(self.model.receipt))
                .filter(self.model.deleted_at.is_(None))
                .order_by(self.model.date.desc(), self.model.id.desc())
                .all()
            )
        except SQLAlchemyError as exc:
            logger.exception("Failed to list %s records", self.label)
            raise PersistenceError(f"failed to list {self.label} records: {exc}") from exc
        finally:
            db.close()

    def create_with_receipt(self, record, receipt: models.Receipt):
        db = self._session_factory()
        try:
            record.deleted_at = None
            db.add(record)
            db.flush()  # assigns record.id

            setattr(receipt, self.owner_key, record.id)
            setattr(receipt, self.sibling_key, None)
            record.receipt = receipt
            db.flush()

            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Rolled back %s create: %s", self.label, exc)
            raise PersistenceError(f"failed to create {self.label} with receipt: {exc}") from exc
        finally:
            db.close()
        return record

    def update_with_receipt(self, record, receipt: Optional[models.Receipt]) -> None:
        db = self._session_factory()
        try:
            values = {field: getattr(record, field) for field in MUTABLE_FIELDS}
            values["updated_at"] = models.utcnow()
            affected = (
                db.query(self.model)
                .filter(self.model.id == record.id, self.model.deleted_at.is_(None))
                .update(values, synchronize_session=False)
            )
            if affected == 0:
                db.rollback()
                raise self._not_found()

            if receipt is not None:
                self._upsert_receipt(db, record.id, receipt)

            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Rolled back %s %s update: %s", self.label, record.id, exc)
            raise PersistenceError(f"failed to update {self.label} with receipt: {exc}") from exc
        finally:
            db.close()

    def _upsert_receipt(self, db, record_id: int, receipt: models.Receipt) -> None:
        values = {field: getattr(receipt, field) for field in RECEIPT_FIELDS}
        values[self.owner_key] = record_id
        values[self.sibling_key] = None
        values["updated_at"] = models.utcnow()

        updated = 0
        if receipt.id is not None:
            updated = (
                db.query(models.Receipt)
                .filter(models.Receipt.id == receipt.id)
                .update(values, synchronize_session=False)
            )
        if updated == 0:
            db.add(models.Receipt(**values))
            db.flush()

    def soft_delete(self, record_id: int) -> None:
        db = self._session_factory()
        try:
            affected = (
                db.query(self.model)
                .filter(self.model.id == record_id, self.model.deleted_at.is_(None))
                .update({"deleted_at": models.utcnow()}, synchronize_session=False)
            )
            if affected == 0:
                db.rollback()
                raise self._not_found()
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"failed to soft delete {self.label}: {exc}") from exc
        finally:
            db.close()

    def restore(self, record_id: int) -> None:
        db = self._session_factory()
        try:
            db.query(self.model).filter(self.model.id == record_id).update(
                {"deleted_at": None}, synchronize_session=False
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"failed to restore {self.label}: {exc}") from exc
        finally:
            db.close()

    def delete(self, record_id: int) -> None:
        # receipts row goes with it through ON DELETE CASCADE
        db = self._session_factory()
        try:
            db.query(self.model).filter(self.model.id == record_id).delete(synchronize_session=False)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"failed to delete {self.label}: {exc}") from exc
        finally:
            db.close()

    def list_receipt_locators(self) -> List[str]:
        db = self._session_factory()
        try:
            owner = getattr(models.Receipt, self.owner_key)
            rows = db.query(models.Receipt.rel_path).filter(owner.isnot(None)).all()
            return [r.rel_path for r in rows]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to list {self.label} receipts: {exc}") from exc
        finally:
            db.close()
