"""
GoldBod Assay Office - Security Utilities
==========================================
JWT tokens, password hashing, and login rate limiting.
"""

import logging
from datetime import timedelta
from typing import Optional
from collections import defaultdict

from jose import jwt, JWTError
from passlib.context import CryptContext

from config.settings import JWT_SECRET, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, BCRYPT_ROUNDS
from common.helpers import now_utc

logger = logging.getLogger("goldbod.security")


# ==========================================
# In-memory rate limiter storage
# ==========================================
_login_attempts: dict[str, list] = defaultdict(list)

LOGIN_MAX_ATTEMPTS = 10   # failed logins per email
LOGIN_WINDOW = 15         # minutes


def check_login_rate_limit(email: str) -> bool:
    """
    Check if an email has exceeded the failed-login limit.
    Returns True if allowed, False if rate limited.
    """
    cutoff = now_utc() - timedelta(minutes=LOGIN_WINDOW)
    _login_attempts[email] = [t for t in _login_attempts[email] if t > cutoff]
    return len(_login_attempts[email]) < LOGIN_MAX_ATTEMPTS


def record_failed_login(email: str):
    _login_attempts[email].append(now_utc())


def reset_login_attempts(email: str):
    _login_attempts.pop(email, None)


# ==========================================
# Passwords (bcrypt via passlib)
# ==========================================

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, stored: str) -> bool:
    """False for a wrong password or a stored value that is not a known hash."""
    if not stored:
        return False
    try:
        return pwd_context.verify(password, stored)
    except (ValueError, TypeError):
        return False


# ==========================================
# JWT Tokens
# ==========================================

def create_token(data: dict) -> str:
    """Create a signed JWT for a staff user."""
    to_encode = data.copy()
    to_encode["exp"] = now_utc() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode(to_encode, JWT_SECRET, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode a JWT token. Returns payload or None (bad signature, expired, garbage)."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None


# ==========================================
# Cookie Helpers
# ==========================================

def get_cookie_kwargs() -> dict:
    """Standard cookie settings for auth tokens."""
    from config.settings import COOKIE_SECURE, COOKIE_SAMESITE
    return dict(
        httponly=True,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
