# bookkeeping/schemas/user.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from bookkeeping.services.security import check_password_policy


class UserAdminCreate(BaseModel):
    """Body of POST /users. Role defaults to employee and active to true."""
    name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=30)
    password: str
    role: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return check_password_policy(v)


class UserUpdate(BaseModel):
    """Body of PATCH /users/{id}. Missing or empty fields are left unchanged."""
    name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    password: Optional[str] = None
    role: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return v
        return check_password_policy(v)


class UserOut(BaseModel):
    id: int
    name: str
    last_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    role: str
    active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
