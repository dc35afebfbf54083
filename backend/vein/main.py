"""
FastAPI app entrypoint.

Vein: blood donation requests, donor search, notifications and funding.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from vein.api.routes import auth, donation_requests, funding, notifications, users
from vein.config import settings
from vein.core.constants import (
    EXPIRY_SWEEP_INTERVAL_MINUTES,
    EXPIRY_SWEEP_JOB_ID,
    NOTIFICATION_PURGE_INTERVAL_MINUTES,
    NOTIFICATION_RETENTION_JOB_ID,
)
from vein.core.errors import install_error_handlers
from vein.scheduler.expiry_sweep_job import run_expiry_sweep_job
from vein.scheduler.retention_job import run_notification_retention_job

logger = logging.getLogger(__name__)


def build_scheduler() -> BackgroundScheduler:
    """Notification retention always; timed expiry sweep only when enabled."""
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_notification_retention_job,
        "interval",
        minutes=NOTIFICATION_PURGE_INTERVAL_MINUTES,
        id=NOTIFICATION_RETENTION_JOB_ID,
    )
    if settings.background_sweep_enabled:
        scheduler.add_job(
            run_expiry_sweep_job,
            "interval",
            minutes=EXPIRY_SWEEP_INTERVAL_MINUTES,
            id=EXPIRY_SWEEP_JOB_ID,
        )
    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.scheduler_enabled:
        scheduler = build_scheduler()
        scheduler.start()
        logger.info("Scheduler started (background sweep %s)", "on" if settings.background_sweep_enabled else "off")
    app.state.scheduler = scheduler
    logger.info("Vein API ready")
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Vein API", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the deployed frontend
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.cors_origins:
    _cors_origins.extend(o.strip() for o in settings.cors_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

app.include_router(auth.router, tags=["auth"])
app.include_router(users.router, tags=["users"])
app.include_router(donation_requests.router, tags=["donation-requests"])
app.include_router(notifications.router, tags=["notifications"])
app.include_router(funding.router, tags=["funding"])


@app.get("/", include_in_schema=False)
def root():
    return {"message": "Vein API is running!", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
