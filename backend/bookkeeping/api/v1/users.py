# bookkeeping/api/v1/users.py
# User administration, restricted to admins and superadmins.
from typing import List

from fastapi import APIRouter, Depends, status

from bookkeeping.api.v1.deps import get_user_service, require_roles
from bookkeeping.db import models
from bookkeeping.schemas.user import UserAdminCreate, UserOut, UserUpdate
from bookkeeping.services.users import UserService

router = APIRouter()

admin_only = require_roles(models.Role.admin, models.Role.superadmin)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserAdminCreate,
    current_user: models.User = Depends(admin_only),
    service: UserService = Depends(get_user_service),
):
    return service.create(**payload.model_dump())


@router.get("", response_model=List[UserOut])
def list_users(
    current_user: models.User = Depends(admin_only),
    service: UserService = Depends(get_user_service),
):
    return service.list()


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    current_user: models.User = Depends(admin_only),
    service: UserService = Depends(get_user_service),
):
    return service.get(user_id)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdate,
    current_user: models.User = Depends(admin_only),
    service: UserService = Depends(get_user_service),
):
    return service.update(user_id, **payload.model_dump(exclude_unset=True))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    current_user: models.User = Depends(admin_only),
    service: UserService = Depends(get_user_service),
):
    service.delete(user_id)
    return None
