"""
User Module - Staff Management Routes
=======================================
Endpoints:
  GET    /api/users        - list (optional ?role=, ?is_active=, ?search=)
  GET    /api/users/{id}   - detail
  POST   /api/users        - create a staff account (settings)
  PUT    /api/users/{id}   - update details, role, status or password (settings)
  DELETE /api/users/{id}   - remove a staff account (settings)
  POST   /api/auth/change-password - current user changes their own password
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.unit_of_work import unit_of_work
from modules.auth.deps import require_login, require_permission
from modules.user.service import user_service

router = APIRouter(prefix="/api/users", tags=["users"])
password_router = APIRouter(prefix="/api/auth", tags=["auth"])

RoleName = Literal[
    "EXECUTIVE", "FINANCE", "ADMIN",
    "SMALL_SCALE_ASSAYER", "LARGE_SCALE_ASSAYER", "SUPERADMIN",
]


# ==========================================
# Schemas
# ==========================================

class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=3, max_length=200, pattern=r"^[^@\s]+@[^@\s]+$")
    full_name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=8, max_length=200)
    role: RoleName
    is_active: bool = True


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: Optional[str] = Field(None, min_length=3, max_length=200, pattern=r"^[^@\s]+@[^@\s]+$")
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    password: Optional[str] = Field(None, min_length=8, max_length=200)
    role: Optional[RoleName] = None
    is_active: Optional[bool] = None


class PasswordChange(BaseModel):
    model_config = ConfigDict(extra="forbid")

    current_password: str = Field(..., min_length=1, max_length=200)
    new_password: str = Field(..., min_length=8, max_length=200)


def _staff_dict(user) -> dict:
    data = user.to_dict()
    data["last_login_at"] = user.last_login_at.isoformat() if user.last_login_at else None
    data["created_at"] = user.created_at.isoformat() if user.created_at else None
    return data


# ==========================================
# Staff accounts
# ==========================================

@router.get("")
async def list_users(
    role: Optional[RoleName] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    user=Depends(require_permission("settings")),
    db: Session = Depends(get_db),
):
    users = user_service.list_users(db, role=role, is_active=is_active, search=search)
    return {"users": [_staff_dict(u) for u in users]}


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    user=Depends(require_permission("settings")),
    db: Session = Depends(get_db),
):
    return _staff_dict(user_service.get_or_404(db, user_id))


@router.post("", status_code=201)
async def create_user(
    body: UserCreate,
    user=Depends(require_permission("settings")),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        created = user_service.create(db, body.model_dump(), acting_user=user)
    return _staff_dict(created)


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdate,
    user=Depends(require_permission("settings")),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        target = user_service.get_or_404(db, user_id)
        user_service.update(db, target, body.model_dump(exclude_unset=True), acting_user=user)
    return _staff_dict(target)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    user=Depends(require_permission("settings")),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        target = user_service.get_or_404(db, user_id)
        user_service.delete(db, target, acting_user=user)
    return {"message": "User deleted"}


# ==========================================
# Own password
# ==========================================

@password_router.post("/change-password")
async def change_password(
    body: PasswordChange,
    user=Depends(require_login),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        user_service.change_password(db, user, body.current_password, body.new_password)
    return {"success": True, "message": "Password changed successfully"}
