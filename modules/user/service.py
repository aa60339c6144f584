"""
User Management Service
=========================
CRUD for back-office staff accounts and self-service password changes.

Rules:
    emails are stored lower-cased and are unique
    only a SUPERADMIN may grant (or edit) the SUPERADMIN role
    nobody deletes or deactivates their own account
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from common.exceptions import NotFoundError, DuplicateError, BusinessRuleError, AuthorizationError
from common.security import hash_password, verify_password
from modules.user.models import User, UserRole

logger = logging.getLogger("goldbod.user")


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:

    def list_users(
        self, db: Session,
        role: str = None,
        is_active: Optional[bool] = None,
        search: str = None,
    ) -> List[User]:
        q = db.query(User)
        if role:
            q = q.filter(User.role == role)
        if is_active is not None:
            q = q.filter(User.is_active == is_active)
        if search and search.strip():
            term = f"%{search.strip()}%"
            q = q.filter(User.full_name.ilike(term) | User.email.ilike(term))
        return q.order_by(User.full_name, User.id).all()

    def get_or_404(self, db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def _check_role_grant(self, acting_user: User, role: str):
        if role == UserRole.SUPERADMIN.value and acting_user.role != UserRole.SUPERADMIN.value:
            raise AuthorizationError("Only a super administrator can grant that role")

    def _check_email_free(self, db: Session, email: str, user_id: int = None):
        q = db.query(User).filter(User.email == email)
        if user_id:
            q = q.filter(User.id != user_id)
        if q.first():
            raise DuplicateError("A user with this email already exists")

    def create(self, db: Session, data: dict, acting_user: User) -> User:
        email = _normalize_email(data["email"])
        role = data["role"]
        self._check_role_grant(acting_user, role)
        self._check_email_free(db, email)

        user = User(
            email=email,
            full_name=data["full_name"].strip(),
            password_hash=hash_password(data["password"]),
            role=role,
            is_active=data.get("is_active", True),
        )
        db.add(user)
        db.flush()
        logger.info(f"User {user.email} created as {user.role} by {acting_user.email}")
        return user

    def update(self, db: Session, user: User, data: dict, acting_user: User) -> User:
        """Apply the supplied fields. A new password is hashed before it is stored."""
        if user.role == UserRole.SUPERADMIN.value:
            self._check_role_grant(acting_user, user.role)
        if data.get("role"):
            self._check_role_grant(acting_user, data["role"])
        if data.get("is_active") is False and user.id == acting_user.id:
            raise BusinessRuleError("You cannot deactivate your own account")

        if data.get("email"):
            email = _normalize_email(data["email"])
            if email != user.email:
                self._check_email_free(db, email, user.id)
                user.email = email
        if data.get("full_name"):
            user.full_name = data["full_name"].strip()
        if data.get("role"):
            user.role = data["role"]
        if data.get("is_active") is not None:
            user.is_active = data["is_active"]
        if data.get("password"):
            user.password_hash = hash_password(data["password"])

        db.flush()
        changed = sorted(k for k, v in data.items() if v is not None)
        logger.info(f"User {user.email} updated by {acting_user.email} ({', '.join(changed)})")
        return user

    def delete(self, db: Session, user: User, acting_user: User):
        if user.id == acting_user.id:
            raise BusinessRuleError("You cannot delete your own account")
        self._check_role_grant(acting_user, user.role)
        logger.info(f"User {user.email} deleted by {acting_user.email}")
        db.delete(user)
        db.flush()

    def change_password(self, db: Session, user: User, current_password: str, new_password: str):
        if not verify_password(current_password, user.password_hash):
            logger.warning(f"Failed password change for {user.email}: wrong current password")
            raise BusinessRuleError("Current password is incorrect")
        if verify_password(new_password, user.password_hash):
            raise BusinessRuleError("New password must be different from current password")

        user.password_hash = hash_password(new_password)
        db.flush()
        logger.info(f"Password changed for {user.email}")


user_service = UserService()
