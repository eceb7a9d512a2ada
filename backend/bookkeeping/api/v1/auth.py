# bookkeeping/api/v1/auth.py
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from bookkeeping.api.v1.deps import get_db_dep, get_settings, user_from_token
from bookkeeping.core.config import SimpleSettings
from bookkeeping.db import models
from bookkeeping.schemas.auth import RefreshRequest, Token, UserCreate, UserLogin
from bookkeeping.services.security import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
)

router = APIRouter()


def _access_token(user: models.User, settings: SimpleSettings) -> str:
    return create_access_token(
        user.id,
        settings.SECRET_KEY,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def _tokens_for(user: models.User, settings: SimpleSettings) -> dict:
    refresh = create_refresh_token(
        user.id,
        settings.SECRET_KEY,
        expires_delta=timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES),
    )
    return {"access_token": _access_token(user, settings), "refresh_token": refresh, "token_type": "bearer"}


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db_dep), settings: SimpleSettings = Depends(get_settings)):
    existing = db.query(models.User).filter(models.User.email == payload.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    # self-registration always yields an employee; admins come from create_user.py or /users
    user = models.User(
        email=payload.email,
        name=payload.name,
        hashed_password=hash_password(payload.password),
        role=models.Role.employee.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return _tokens_for(user, settings)


@router.post("/login", response_model=Token)
def login(payload: UserLogin, db: Session = Depends(get_db_dep), settings: SimpleSettings = Depends(get_settings)):
    user = db.query(models.User).filter(models.User.email == payload.email).first()
    if not user or not user.active or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _tokens_for(user, settings)


@router.post("/refresh", response_model=Token)
def refresh(payload: RefreshRequest, db: Session = Depends(get_db_dep), settings: SimpleSettings = Depends(get_settings)):
    """Trade a refresh token for a new access token. The refresh token itself is not rotated."""
    user = user_from_token(payload.refresh_token, REFRESH_TOKEN_TYPE, db, settings)
    return {"access_token": _access_token(user, settings), "token_type": "bearer"}
