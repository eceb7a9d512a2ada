# bookkeeping/services/users.py
"""User management for administrators.

Emails are unique, the superadmin role is never granted here (bootstrap it with
create_user.py), new users default to the employee role and to active, and
passwords must pass the password policy.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from bookkeeping.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from bookkeeping.db import models
from bookkeeping.services.security import check_password_policy, hash_password

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _check_password(self, password: Optional[str]) -> None:
        try:
            check_password_policy(password)
        except ValueError as exc:
            raise ValidationError(str(exc))

    def _coerce_role(self, role: str) -> str:
        try:
            role = models.Role(role)
        except ValueError:
            allowed = ", ".join(r.value for r in models.Role)
            raise ValidationError(f"invalid role '{role}' (expected one of: {allowed})")
        if role == models.Role.superadmin:
            raise ForbiddenError("the superadmin role cannot be assigned")
        return role.value

    def _email_taken(self, db, email: str) -> bool:
        return db.query(models.User.id).filter(models.User.email == email).first() is not None

    def get(self, user_id: int) -> models.User:
        db = self._session_factory()
        try:
            user = db.query(models.User).filter(models.User.id == user_id).first()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to load user: {exc}") from exc
        finally:
            db.close()
        if user is None:
            raise NotFoundError("user not found")
        return user

    def list(self) -> List[models.User]:
        db = self._session_factory()
        try:
            return db.query(models.User).order_by(models.User.id).all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to list users: {exc}") from exc
        finally:
            db.close()

    def create(
        self,
        email: str,
        password: str,
        name: str,
        role: Optional[str] = None,
        active: Optional[bool] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> models.User:
        self._check_password(password)
        db = self._session_factory()
        try:
            if self._email_taken(db, email):
                raise ConflictError("email already registered")
            user = models.User(
                email=email,
                name=name,
                last_name=last_name,
                phone=phone,
                role=self._coerce_role(role) if role else models.Role.employee.value,
                active=True if active is None else active,
                hashed_password=hash_password(password),
            )
            db.add(user)
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError("email already registered") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"failed to create user: {exc}") from exc
        finally:
            db.close()
        logger.info("Created user %s (%s)", user.id, user.role)
        return user

    def update(
        self,
        user_id: int,
        email: Optional[str] = None,
        password: Optional[str] = None,
        name: Optional[str] = None,
        role: Optional[str] = None,
        active: Optional[bool] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> models.User:
        """Apply the non-empty fields; ``active`` applies whenever it is not None."""
        db = self._session_factory()
        try:
            user = db.query(models.User).filter(models.User.id == user_id).first()
            if user is None:
                raise NotFoundError("user not found")

            if email and email != user.email:
                if self._email_taken(db, email):
                    raise ConflictError("email already registered")
                user.email = email
            if password:
                self._check_password(password)
                user.hashed_password = hash_password(password)
            if name:
                user.name = name
            if last_name:
                user.last_name = last_name
            if phone:
                user.phone = phone
            if role:
                user.role = self._coerce_role(role)
            if active is not None:
                user.active = active

            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError("email already registered") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"failed to update user: {exc}") from exc
        finally:
            db.close()
        logger.info("Updated user %s", user_id)
        return user

    def delete(self, user_id: int) -> None:
        db = self._session_factory()
        try:
            affected = db.query(models.User).filter(models.User.id == user_id).delete(synchronize_session=False)
            if affected == 0:
                db.rollback()
                raise NotFoundError("user not found")
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"failed to delete user: {exc}") from exc
        finally:
            db.close()
        logger.info("Deleted user %s", user_id)
