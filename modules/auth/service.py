"""
Auth Module - Service Layer
=============================
Password login and token creation for back-office staff.
"""

import logging
from typing import Tuple

from sqlalchemy.orm import Session

from common.helpers import now_utc
from common.security import (
    verify_password, create_token,
    check_login_rate_limit, record_failed_login, reset_login_attempts,
)
from common.exceptions import AuthenticationError
from modules.user.models import User

logger = logging.getLogger("goldbod.security")


class AuthService:
    """Handles credential checks and token creation."""

    def authenticate(self, db: Session, email: str, password: str) -> Tuple[User, str]:
        """
        Check email + password.

        Returns:
            (user, token)

        Raises:
            AuthenticationError on bad credentials, inactive user or rate limit
        """
        email = email.strip().lower()

        if not check_login_rate_limit(email):
            logger.warning(f"Login rate limit hit for {email}")
            raise AuthenticationError("Too many failed attempts. Try again in 15 minutes.")

        user = db.query(User).filter(User.email == email).first()
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            record_failed_login(email)
            raise AuthenticationError("Invalid email or password")

        reset_login_attempts(email)
        user.last_login_at = now_utc()
        db.flush()

        token = create_token({"sub": str(user.id), "role": user.role})
        logger.info(f"User {user.email} logged in ({user.role})")
        return user, token


# Singleton instance
auth_service = AuthService()
