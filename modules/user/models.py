"""
User Module - Staff User Model
================================
Back-office staff. Access is role based; the role → module map lives in
modules/admin/permissions.py.
"""

import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index
from sqlalchemy.sql import func

from config.database import Base


class UserRole(str, enum.Enum):
    EXECUTIVE = "EXECUTIVE"
    FINANCE = "FINANCE"
    ADMIN = "ADMIN"
    SMALL_SCALE_ASSAYER = "SMALL_SCALE_ASSAYER"
    LARGE_SCALE_ASSAYER = "LARGE_SCALE_ASSAYER"
    SUPERADMIN = "SUPERADMIN"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(200), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=False)
    password_hash = Column(String(300), nullable=False)
    role = Column(String(30), default=UserRole.SMALL_SCALE_ASSAYER.value, nullable=False, index=True)
    is_active = Column(Boolean, default=True, server_default="true", nullable=False)

    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("ix_users_created", "created_at"),
    )

    @property
    def role_label(self) -> str:
        return {
            UserRole.EXECUTIVE.value: "Executive",
            UserRole.FINANCE.value: "Finance",
            UserRole.ADMIN.value: "Administrator",
            UserRole.SMALL_SCALE_ASSAYER.value: "Small Scale Assayer",
            UserRole.LARGE_SCALE_ASSAYER.value: "Large Scale Assayer",
            UserRole.SUPERADMIN.value: "Super Administrator",
        }.get(self.role, self.role)

    @property
    def permissions(self) -> list:
        from modules.admin.permissions import permissions_for_role
        return permissions_for_role(self.role)

    def has_permission(self, module: str) -> bool:
        from modules.admin.permissions import role_can_access
        return role_can_access(self.role, module)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "role_label": self.role_label,
            "permissions": self.permissions,
            "is_active": self.is_active,
        }

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
