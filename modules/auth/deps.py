"""
Auth Module - Dependencies
===========================
FastAPI dependencies for user authentication and authorization.
These are injected into route handlers via Depends().

The JWT is accepted from an "Authorization: Bearer" header or the
auth-token cookie. Every authenticated request also passes the idle
session check.
"""

from typing import Optional

from fastapi import Request, Depends, HTTPException, status
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import AUTH_COOKIE
from common.exceptions import AuthorizationError
from common.security import decode_token
from common.session import SessionTracker, get_session_tracker
from modules.user.models import User


def get_request_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
        if token:
            return token
    return request.cookies.get(AUTH_COOKIE)


def get_current_active_user(request: Request, db: Session = Depends(get_db)):
    """
    Identify the current user from the bearer token or auth-token cookie.
    Returns User object or None.
    """
    token = get_request_token(request)
    if not token:
        return None

    payload = decode_token(token)
    if not payload:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    user = db.query(User).filter(User.id == int(user_id), User.is_active == True).first()
    if user:
        request.state.user = user
    return user


def require_login(
    user=Depends(get_current_active_user),
    tracker: SessionTracker = Depends(get_session_tracker),
):
    """Require an authenticated staff user with a live session. Raises 401 otherwise."""
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="login_required")
    if not tracker.check(user.id):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="session_expired")
    return user


def require_permission(*modules: str):
    """
    Factory: returns a dependency that passes when the user's role grants
    at least one of the given modules. SUPERADMIN always passes.

    Usage:
      user=Depends(require_permission("reports"))
      user=Depends(require_permission("job-cards/large-scale", "payment-receipting"))
    """
    from modules.admin.permissions import PERMISSION_REGISTRY

    def dependency(user=Depends(require_login)):
        if any(user.has_permission(m) for m in modules):
            return user
        labels = ", ".join(PERMISSION_REGISTRY.get(m, m) for m in modules)
        raise AuthorizationError(f"Your role does not have access to: {labels}")

    return dependency
