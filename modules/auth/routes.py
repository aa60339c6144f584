"""
Auth Module - Routes
=====================
JSON login / logout / current user.

Endpoints:
  POST /api/auth/login   - email + password → JWT (+ auth-token cookie)
  POST /api/auth/logout  - clear cookie and end the idle session
  GET  /api/auth/me      - current user with role permissions
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import AUTH_COOKIE
from common.security import get_cookie_kwargs
from common.session import SessionTracker, get_session_tracker
from common.unit_of_work import unit_of_work
from modules.auth.service import auth_service
from modules.auth.deps import get_current_active_user, require_login

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., min_length=1, max_length=200)


@router.post("/login")
async def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    tracker: SessionTracker = Depends(get_session_tracker),
):
    with unit_of_work(db):
        user, token = auth_service.authenticate(db, body.email, body.password)

    tracker.touch(user.id)
    response = JSONResponse({"token": token, "user": user.to_dict()})
    response.set_cookie(AUTH_COOKIE, token, **get_cookie_kwargs())
    return response


@router.post("/logout")
async def logout(
    user=Depends(get_current_active_user),
    tracker: SessionTracker = Depends(get_session_tracker),
):
    """Clear the auth cookie. Works with or without a valid session."""
    if user:
        tracker.expire(user.id)
    response = JSONResponse({"success": True})
    response.delete_cookie(AUTH_COOKIE)
    return response


@router.get("/me")
async def me(user=Depends(require_login)):
    return {"user": user.to_dict()}
