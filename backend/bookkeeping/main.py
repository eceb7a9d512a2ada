# bookkeeping/main.py
# Run with: uvicorn bookkeeping.main:create_app --factory
import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from bookkeeping.api.v1 import auth, expenses, health, incomes, users
from bookkeeping.core.config import SimpleSettings
from bookkeeping.core.errors import (
    BookkeepingError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    StorageError,
    ValidationError,
)
from bookkeeping.core.logger import setup_logging
from bookkeeping.db.session import build_engine, build_session_factory
from bookkeeping.repositories.expense import ExpenseRepository
from bookkeeping.repositories.income import IncomeRepository
from bookkeeping.services.records import ExpenseService, IncomeService
from bookkeeping.services.users import UserService
from bookkeeping.storage.local import URL_PREFIX, LocalFileStorage

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (ValidationError, 400),
    (ForbiddenError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StorageError, 500),
    (PersistenceError, 500),
)


def _status_for(exc: BookkeepingError) -> int:
    for kind, code in ERROR_STATUS:
        if isinstance(exc, kind):
            return code
    return 500


async def bookkeeping_error_handler(request: Request, exc: BookkeepingError) -> JSONResponse:
    code = _status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=code, content={"detail": str(exc)})


def create_app(settings: Optional[SimpleSettings] = None) -> FastAPI:
    """Build the engine, storage, repositories and services, and wire them into a FastAPI app."""
    settings = settings or SimpleSettings()
    setup_logging(settings.LOG_LEVEL)

    engine = build_engine(settings.DATABASE_URL)
    session_factory = build_session_factory(engine)
    storage = LocalFileStorage(settings.UPLOAD_DIR, url_prefix=URL_PREFIX)
    os.makedirs(storage.upload_dir, exist_ok=True)

    app = FastAPI(title="Bookkeeping API", version="0.1.0")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.storage = storage
    app.state.income_service = IncomeService(IncomeRepository(session_factory), storage)
    app.state.expense_service = ExpenseService(ExpenseRepository(session_factory), storage)
    app.state.user_service = UserService(session_factory)

    # serve receipts under /uploads so the stored locator is also the URL
    app.mount(URL_PREFIX, StaticFiles(directory=storage.upload_dir), name="uploads")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BookkeepingError, bookkeeping_error_handler)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
    app.include_router(incomes.router, prefix="/api/v1/incomes", tags=["incomes"])
    app.include_router(expenses.router, prefix="/api/v1/expenses", tags=["expenses"])

    @app.get("/")
    def root():
        return {"message": "Bookkeeping API - visit /api/v1/health"}

    return app
