"""
Admin Module - Audit Trail Routes
===================================
Read access to the HTTP request log written by the audit middleware.

Endpoints:
  GET /api/audit-trails   - newest first, filterable by method, status group,
                            path, user and date range (settings)
"""

import math
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.database import get_db
from modules.admin.models import RequestLog
from modules.auth.deps import require_permission

router = APIRouter(prefix="/api/audit-trails", tags=["admin"])

_STATUS_GROUPS = {
    "2xx": (200, 300),
    "3xx": (300, 400),
    "4xx": (400, 500),
    "5xx": (500, 600),
}


@router.get("")
async def list_audit_trails(
    method: Optional[str] = Query(None),
    status_group: Optional[Literal["2xx", "3xx", "4xx", "5xx"]] = Query(None),
    path_search: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user=Depends(require_permission("settings")),
    db: Session = Depends(get_db),
):
    q = db.query(RequestLog)

    # Filters
    if method:
        q = q.filter(RequestLog.method == method.upper())
    if status_group:
        low, high = _STATUS_GROUPS[status_group]
        q = q.filter(RequestLog.status_code >= low, RequestLog.status_code < high)
    if path_search:
        q = q.filter(RequestLog.path.ilike(f"%{path_search}%"))
    if user_id:
        q = q.filter(RequestLog.user_id == user_id)
    if start_date:
        q = q.filter(RequestLog.created_at >= start_date)
    if end_date:
        q = q.filter(RequestLog.created_at <= end_date)

    total = q.count()
    pages = math.ceil(total / limit)
    logs = (
        q.order_by(RequestLog.created_at.desc(), RequestLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "audit_trails": [log.to_dict() for log in logs],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": pages,
            "has_next": page < pages,
            "has_previous": page > 1,
        },
    }
