# bookkeeping/db/models.py - User, Income, Expense and the Receipt each record owns
from datetime import datetime, timezone
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import relationship
from .base import Base
import enum

RECEIPT_MIME_TYPE = "application/pdf"


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Role(str, enum.Enum):
    superadmin = "superadmin"
    admin = "admin"
    employee = "employee"
    accountant = "accountant"


class IncomeType(str, enum.Enum):
    invoice = "invoice"
    receipt = "receipt"
    transfer = "transfer"
    deposit_slip = "deposit_slip"


class ExpenseType(str, enum.Enum):
    operational = "operational"
    administrative = "administrative"
    personal = "personal"
    extraordinary = "extraordinary"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(150), nullable=False, unique=True, index=True)
    phone = Column(String(30), nullable=True)
    hashed_password = Column(String(255), nullable=True)
    role = Column(String(30), nullable=False, default=Role.employee.value)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now(), nullable=False)


class Income(Base):
    __tablename__ = "incomes"
    id = Column(Integer, primary_key=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String(255), nullable=False)
    date = Column(DateTime, nullable=False)
    type = Column(String(50), nullable=False)
    created_by = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True, index=True)

    receipt = relationship(
        "Receipt",
        uselist=False,
        foreign_keys="Receipt.income_id",
        back_populates="income",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Expense(Base):
    __tablename__ = "expenses"
    id = Column(Integer, primary_key=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String(255), nullable=False)
    date = Column(DateTime, nullable=False)
    type = Column(String(50), nullable=False)
    created_by = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True, index=True)

    receipt = relationship(
        "Receipt",
        uselist=False,
        foreign_keys="Receipt.expense_id",
        back_populates="expense",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Receipt(Base):
    __tablename__ = "receipts"
    __table_args__ = (
        # exactly one owner
        CheckConstraint(
            "(income_id IS NULL AND expense_id IS NOT NULL) OR (income_id IS NOT NULL AND expense_id IS NULL)",
            name="ck_receipts_single_owner",
        ),
    )
    id = Column(Integer, primary_key=True, index=True)
    income_id = Column(Integer, ForeignKey("incomes.id", ondelete="CASCADE"), nullable=True, unique=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=True, unique=True, index=True)
    file_name = Column(String(255), nullable=False)
    rel_path = Column(String(1024), nullable=False)
    mime_type = Column(String(50), nullable=False, default=RECEIPT_MIME_TYPE)
    uploaded_by = Column(Integer, nullable=False)
    checksum = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    income = relationship("Income", foreign_keys=[income_id], back_populates="receipt")
    expense = relationship("Expense", foreign_keys=[expense_id], back_populates="receipt")
