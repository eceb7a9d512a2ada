import pytest

from bookkeeping.db import models  # noqa: F401  registers the tables on Base
from bookkeeping.db.base import Base
from bookkeeping.db.session import build_engine, build_session_factory
from bookkeeping.repositories.expense import ExpenseRepository
from bookkeeping.repositories.income import IncomeRepository
from bookkeeping.services.records import ExpenseService, IncomeService

from fakes import FlakyStorage


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'bookkeeping.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def storage(tmp_path):
    return FlakyStorage(str(tmp_path / "uploads"))


@pytest.fixture
def expense_repo(session_factory):
    return ExpenseRepository(session_factory)


@pytest.fixture
def income_repo(session_factory):
    return IncomeRepository(session_factory)


@pytest.fixture
def expense_service(expense_repo, storage):
    return ExpenseService(expense_repo, storage)


@pytest.fixture
def income_service(income_repo, storage):
    return IncomeService(income_repo, storage)


@pytest.fixture
def count_rows(session_factory):
    """count_rows(Model) -> number of rows in its table, soft-deleted included."""
    def _count(model):
        db = session_factory()
        try:
            return db.query(model).count()
        finally:
            db.close()
    return _count
