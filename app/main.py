import logging
import time
from urllib.parse import urlparse

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError, TimeoutError as SQLAlchemyTimeoutError

from app.api.v1.endpoints import webhooks
from app.api.v1.routes import router as api_router
from app.core.config import get_settings, parse_cors_origins
from app.core.database import Base, SessionLocal, engine
from app.core.logging import configure_logging
from app.middlewares.rate_limit import limiter
from app.models import User, UserRole, VerificationStatus
from app.services.errors import LedgerError

settings = get_settings()

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
_started_at = time.time()


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    level = logging.WARNING if exc.status_code >= 500 else logging.INFO
    logger.log(level, "%s %s refused code=%s detail=%s", request.method, request.url.path, exc.code, exc.message)
    return await http_exception_handler(request, exc)


@app.exception_handler(SQLAlchemyTimeoutError)
async def sqlalchemy_timeout_handler(request: Request, exc):
    logger.warning("Database pool timeout on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service is busy. Please retry in a moment."},
        headers={"X-Error-Code": "STORAGE_ERROR"},
    )


def _origin_from_url(raw: str) -> str | None:
    parsed = urlparse(str(raw or "").strip())
    if parsed.scheme and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    return None


def _allowed_origins() -> list[str]:
    origins = parse_cors_origins(settings.cors_origins or "")
    frontend_origin = _origin_from_url(settings.frontend_base_url)
    if frontend_origin:
        origins.append(frontend_origin)
    return list(dict.fromkeys(origins))


allow_origins = _allowed_origins()
logger.info("CORS allow_origins=%s", allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)
# Gateway callbacks are registered with a fixed URL outside the versioned API.
app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])


def _bootstrap_admins() -> None:
    """Promote the configured emails to verified admins."""
    emails = [item.strip().lower() for item in (settings.bootstrap_admin_emails or "").split(",") if item.strip()]
    if not emails:
        return

    db = SessionLocal()
    try:
        users = db.query(User).filter(User.email.in_(emails)).all()
        promoted = 0
        for user in users:
            if user.role != UserRole.ADMIN or user.verification_status != VerificationStatus.VERIFIED:
                user.role = UserRole.ADMIN
                user.verification_status = VerificationStatus.VERIFIED
                user.onboarding_completed = True
                promoted += 1
        if promoted:
            db.commit()
            logger.info("Bootstrapped admin role for %s user(s).", promoted)
        missing = sorted(set(emails) - {user.email for user in users})
        if missing:
            logger.warning("BOOTSTRAP_ADMIN_EMAILS users not found: %s", ", ".join(missing))
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Admin bootstrap failed: %s", exc)
    finally:
        db.close()


@app.on_event("startup")
def on_startup():
    if settings.auto_create_tables:
        # Local fallback for fresh environments; deployed databases run alembic.
        try:
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as exc:
            logger.warning("DB unavailable on startup, skipping table creation: %s", exc)
    _bootstrap_admins()


def _uptime() -> int:
    return int(max(0, time.time() - _started_at))


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/healthz")
def healthz():
    return {"status": "ok", "uptime_seconds": _uptime(), "service": settings.app_name}


@app.get("/readyz")
def readyz():
    # Ready once the database answers.
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Readiness DB check failed: %s", exc)
        return JSONResponse(status_code=503, content={"status": "not_ready", "detail": "database_unavailable"})
    finally:
        db.close()
    return {"status": "ready", "uptime_seconds": _uptime()}
