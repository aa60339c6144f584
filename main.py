"""
GoldBod Assay Office - Application Entry Point
================================================
FastAPI app initialization, error handlers, middleware, scheduler and
router registration.
"""

import logging
import re as _re
import time as _time
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from apscheduler.schedulers.background import BackgroundScheduler

from config import settings
from config.database import SessionLocal, Base, engine
from common.exceptions import AssayOfficeError
from common.helpers import now_utc, get_real_ip

logger = logging.getLogger("goldbod")
scheduler_logger = logging.getLogger("goldbod.scheduler")


# ==========================================
# Import ALL models so Alembic/Base can see them
# ==========================================
from modules.user.models import User  # noqa: F401
from modules.admin.models import DocumentSequence, RequestLog  # noqa: F401
from modules.exporter.models import Exporter  # noqa: F401
from modules.job_card.models import JobCard, Assay, AssayMeasurement  # noqa: F401
from modules.invoice.models import Invoice, Fee  # noqa: F401
from modules.pricing.models import DailyPrice  # noqa: F401

# ==========================================
# Import routers
# ==========================================
from modules.auth.routes import router as auth_router
from modules.exporter.routes import router as exporter_router
from modules.pricing.routes import router as pricing_router
from modules.job_card.routes import router as job_card_router, large_scale_router as large_scale_job_card_router
from modules.invoice.routes import (
    router as invoice_router,
    small_scale_router as job_card_invoice_router,
    large_scale_router as large_scale_invoice_router,
)
from modules.report.routes import router as report_router
from modules.user.routes import router as user_router, password_router
from modules.admin.routes import router as audit_router


# ==========================================
# Background Scheduler
# ==========================================
def _cleanup_old_request_logs():
    """Background job: delete request logs older than the retention window."""
    db = SessionLocal()
    try:
        cutoff = now_utc() - timedelta(days=settings.REQUEST_LOG_RETENTION_DAYS)
        deleted = db.query(RequestLog).filter(RequestLog.created_at < cutoff).delete()
        if deleted:
            db.commit()
            scheduler_logger.info(f"Deleted {deleted} old request logs (>{settings.REQUEST_LOG_RETENTION_DAYS} days)")
    except Exception as e:
        db.rollback()
        scheduler_logger.error(f"Log cleanup error: {e}")
    finally:
        db.close()


def _auto_update_prices():
    """Background job: record today's gold/silver spot price and USD/GHS rate when missing."""
    db = SessionLocal()
    try:
        from modules.pricing.feed_service import update_daily_prices
        count = update_daily_prices(db)
        if count:
            db.commit()
            scheduler_logger.info(f"Recorded {count} daily prices from feed")
    except Exception as e:
        db.rollback()
        scheduler_logger.error(f"Price update error: {e}")
    finally:
        db.close()


scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)

    scheduler.add_job(_cleanup_old_request_logs, 'interval', hours=6, id='log_cleanup')
    if settings.PRICE_FEED_ENABLED:
        scheduler.add_job(_auto_update_prices, 'interval', minutes=30, id='price_update')
    scheduler.start()
    scheduler_logger.info(
        f"Background scheduler started (logs: 6h, prices: {'30m' if settings.PRICE_FEED_ENABLED else 'off'})"
    )
    yield
    scheduler.shutdown()
    scheduler_logger.info("Background scheduler stopped")


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title="GoldBod Assay Office",
    description="Job cards, assays, valuation, invoicing and reports",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)


# ==========================================
# Exception handlers: {"error": message}
# ==========================================
@app.exception_handler(AssayOfficeError)
async def assay_office_error_handler(request: Request, exc: AssayOfficeError):
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse({"error": message}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse({"error": "Internal server error"}, status_code=500)


# ==========================================
# Middleware: Request Audit Log
# ==========================================
_SKIP_PATHS = ("/health", "/favicon.ico", "/docs", "/openapi.json")
_SENSITIVE_FORM = _re.compile(
    r'(\w*password|secret|token)=[^&]*',
    _re.IGNORECASE,
)
_SENSITIVE_JSON = _re.compile(
    r'("(?:\w*password|secret|token)"\s*:\s*)"(?:[^"\\]|\\.)*"',
    _re.IGNORECASE,
)


def _identify_user(request: Request):
    """Identify the caller from the bearer token / cookie. Returns (user_id, user_display)."""
    from common.security import decode_token
    from modules.auth.deps import get_request_token

    token = get_request_token(request)
    payload = decode_token(token) if token else None
    if not payload or not payload.get("sub"):
        return None, None

    user_id = int(payload["sub"])
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.id == user_id).first()
        return user_id, (user.email if user else None)
    except Exception as e:
        logger.debug(f"Request log user lookup failed: {e}")
        return user_id, None
    finally:
        db.close()


def _mask_body(raw: bytes, content_type: str) -> str | None:
    """Decode request body, mask sensitive fields, truncate."""
    if not raw:
        return None

    ct = (content_type or "").lower()
    if "multipart/form-data" in ct:
        return "[multipart/form-data]"

    text = raw[:10_000].decode("utf-8", errors="replace")
    text = _SENSITIVE_FORM.sub(lambda m: m.group(0).split("=")[0] + "=***", text)
    text = _SENSITIVE_JSON.sub(lambda m: m.group(1) + '"***"', text)
    return text[:2000] if text else None


@app.middleware("http")
async def request_logger(request: Request, call_next):
    """Log every HTTP request to the database for audit purposes."""
    path = request.url.path

    if any(path.startswith(p) for p in _SKIP_PATHS):
        return await call_next(request)

    start = _time.time()

    # Read body for POST/PUT/PATCH before call_next (cached by Starlette)
    body_preview = None
    if request.method in ("POST", "PUT", "PATCH"):
        raw = await request.body()
        body_preview = _mask_body(raw, request.headers.get("content-type"))

    response = await call_next(request)

    elapsed_ms = int((_time.time() - start) * 1000)

    # Separate session; never let logging break the actual request
    log_db = SessionLocal()
    try:
        user_id, user_display = _identify_user(request)
        log_db.add(RequestLog(
            method=request.method,
            path=path[:500],
            query_string=str(request.url.query)[:2000] if request.url.query else None,
            status_code=response.status_code,
            ip_address=get_real_ip(request),
            user_agent=(request.headers.get("user-agent") or "")[:500],
            user_id=user_id,
            user_display=user_display,
            body_preview=body_preview,
            response_time_ms=elapsed_ms,
        ))
        log_db.commit()
    except Exception as e:
        log_db.rollback()
        logger.warning(f"Request log write failed for {request.method} {path}: {e}")
    finally:
        log_db.close()

    return response


# ==========================================
# Register Routers
# ==========================================
app.include_router(auth_router)
app.include_router(password_router)
app.include_router(user_router)
app.include_router(audit_router)
app.include_router(exporter_router)
app.include_router(pricing_router)
app.include_router(job_card_router)
app.include_router(large_scale_job_card_router)
app.include_router(job_card_invoice_router)
app.include_router(large_scale_invoice_router)
app.include_router(invoice_router)
app.include_router(report_router)


# ==========================================
# Health check
# ==========================================
@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
