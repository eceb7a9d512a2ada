# bookkeeping/api/v1/deps.py
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from typing import Generator

from bookkeeping.core.config import SimpleSettings
from bookkeeping.db import models
from bookkeeping.db.session import session_scope
from bookkeeping.schemas.auth import TokenPayload
from bookkeeping.services.records import ExpenseService, IncomeService
from bookkeeping.services.security import ACCESS_TOKEN_TYPE, JWTError, decode_token
from bookkeeping.services.users import UserService
from bookkeeping.storage.local import LocalFileStorage

oauth2_scheme = HTTPBearer()  # "Authorization: Bearer <token>"


# everything below is built once in create_app() and kept on app.state

def get_settings(request: Request) -> SimpleSettings:
    return request.app.state.settings


def get_db_dep(request: Request) -> Generator[Session, None, None]:
    yield from session_scope(request.app.state.session_factory)


def get_storage(request: Request) -> LocalFileStorage:
    return request.app.state.storage


def get_income_service(request: Request) -> IncomeService:
    return request.app.state.income_service


def get_expense_service(request: Request) -> ExpenseService:
    return request.app.state.expense_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def user_from_token(token: str, token_type: str, db: Session, settings: SimpleSettings) -> models.User:
    """Resolve an active user from a JWT of the given 'typ', or raise 401."""
    try:
        payload = TokenPayload(**decode_token(token, settings.SECRET_KEY))
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")

    if payload.typ != token_type:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Wrong token type")
    if payload.sub is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token (no sub)")
    try:
        user_id = int(payload.sub)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")

    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user or not user.active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme),
    db: Session = Depends(get_db_dep),
    settings: SimpleSettings = Depends(get_settings),
) -> models.User:
    return user_from_token(credentials.credentials, ACCESS_TOKEN_TYPE, db, settings)


def require_roles(*roles: models.Role):
    """Dependency factory: the current user must hold one of ``roles``."""
    allowed = {r.value for r in roles}

    def _check(current_user: models.User = Depends(get_current_user)) -> models.User:
        if current_user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient permissions")
        return current_user

    return _check
