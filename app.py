"""
Prefect Management API: role-based administration for a school prefect program.
"""
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi_mail import FastMail, ConnectionConfig
from sqlalchemy import text

import config
from database.connection import Database
from core.logger import logger
from middleware.security import (
    RateLimitMiddleware, SecurityHeadersMiddleware,
    setup_cors, setup_trusted_hosts
)
from middleware.auth_middleware import AuthRequiredMiddleware
from routers.auth import router as auth_router
from routers.profile import router as profile_router
from routers.users import router as users_router
from routers.dashboards import router as dashboards_router
from routers.duties import router as duties_router
from routers.gate_logs import router as gate_logs_router
from routers.events import router as events_router
from routers.evaluations import router as evaluations_router
from routers.complaints import router as complaints_router
from routers.incidents import router as incidents_router
from routers.recruitment import router as recruitment_router
from routers.weekly_reports import router as weekly_reports_router
from routers.training import router as training_router
from routers.attendance import router as attendance_router
from routers.academic_years import router as academic_years_router
from routers.departments import router as departments_router
from routers.analytics import router as analytics_router
from routers.logs import router as logs_router


def _init_mail() -> "FastMail | None":
    """FastAPI-Mail client for OTP and notification emails, or None without SMTP credentials."""
    if not (config.SMTP_USER and config.SMTP_PASSWORD):
        logger.warning("SMTP credentials not set (SMTP_USER/SMTP_PASSWORD). Emails will not be sent.")
        return None
    try:
        mail_conf = ConnectionConfig(
            MAIL_USERNAME=config.SMTP_USER,
            MAIL_PASSWORD=config.SMTP_PASSWORD,
            MAIL_FROM=config.SMTP_FROM_EMAIL or config.SMTP_USER,
            MAIL_FROM_NAME=config.SMTP_FROM_NAME,
            MAIL_PORT=config.SMTP_PORT,
            MAIL_SERVER=config.SMTP_HOST,
            MAIL_STARTTLS=config.SMTP_USE_TLS,
            MAIL_SSL_TLS=config.SMTP_USE_SSL,
            USE_CREDENTIALS=True,
            VALIDATE_CERTS=True,
        )
        logger.info("FastAPI-Mail initialized successfully")
        return FastMail(mail_conf)
    except Exception as e:
        logger.error(f"Failed to initialize FastAPI-Mail: {e}", exc_info=True)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database and mail client on startup; dispose the engine on shutdown."""
    logger.info("=" * 60)
    logger.info(f"Starting {config.APP_NAME} v{config.APP_VERSION}...")
    logger.info("=" * 60)

    try:
        config.db = Database(
            database_url=config.DATABASE_URL,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW
        )
        config.db.create_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        raise

    app.state.mail = _init_mail()

    logger.info(f"Environment: {config.ENVIRONMENT}")
    logger.info("API Docs: http://localhost:8000/docs")

    yield

    logger.info("Shutting down...")
    if config.db:
        config.db.engine.dispose()
        logger.info("Database connections closed")
        config.db = None


app = FastAPI(
    title=config.APP_NAME,
    description="Role-based administration for students, prefects, faculty and admins",
    version=config.APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=config.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=config.RATE_LIMIT_PER_HOUR
)
app.add_middleware(AuthRequiredMiddleware)
setup_cors(app, config.CORS_ORIGINS, allow_credentials=config.CORS_ALLOW_CREDENTIALS)
if config.ENVIRONMENT == "production":
    setup_trusted_hosts(app, config.TRUSTED_HOSTS)

app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(users_router)
app.include_router(dashboards_router)
app.include_router(duties_router)
app.include_router(gate_logs_router)
app.include_router(events_router)
app.include_router(evaluations_router)
app.include_router(complaints_router)
app.include_router(incidents_router)
app.include_router(recruitment_router)
app.include_router(weekly_reports_router)
app.include_router(training_router)
app.include_router(attendance_router)
app.include_router(academic_years_router)
app.include_router(departments_router)
app.include_router(analytics_router)
app.include_router(logs_router)


@app.get("/")
async def root():
    """API information. Public endpoint."""
    return {
        "message": config.APP_NAME,
        "version": config.APP_VERSION,
        "environment": config.ENVIRONMENT,
        "docs": "/docs",
        "mail_enabled": getattr(app.state, "mail", None) is not None,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring. Public endpoint."""
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "checks": {}
    }

    try:
        if config.db is None:
            health_status["checks"]["database"] = {"status": "error", "error": "not initialized"}
            health_status["status"] = "degraded"
        else:
            with config.db.get_session() as db:
                db.execute(text("SELECT 1"))
            health_status["checks"]["database"] = {"status": "ok"}
    except Exception as e:
        health_status["checks"]["database"] = {"status": "error", "error": str(e)}
        health_status["status"] = "degraded"

    health_status["checks"]["mail"] = {
        "status": "ok" if getattr(app.state, "mail", None) else "disabled"
    }
    return health_status


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
