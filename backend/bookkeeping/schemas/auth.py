# bookkeeping/schemas/auth.py
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from bookkeeping.services.security import check_password_policy


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return check_password_policy(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class Token(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    typ: Optional[str] = None
