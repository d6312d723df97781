import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ramadan_tracker.db.base import SessionLocal, get_db
from ramadan_tracker.core.config import settings, engine_config
from ramadan_tracker.core.logging import configure_logging
from ramadan_tracker.models.mission import Mission
from ramadan_tracker.routers import reports as reports_router
from ramadan_tracker.routers import progress as progress_router
from ramadan_tracker.routers import missions as missions_router
from ramadan_tracker.services.catalog import load_catalog
from ramadan_tracker.core.errors import (
    TrackerException,
    tracker_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger("ramadan_tracker.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A catalog missing a code the engine scores by name must stop the
    # deploy instead of silently scoring zero.
    if settings.CATALOG_CHECK_ON_STARTUP:
        db = SessionLocal()
        try:
            catalog = load_catalog(db, engine_config)
        finally:
            db.close()
        logger.info("Mission catalog loaded: %d active missions", len(catalog))
    yield


app = FastAPI(
    title="Ramadan Tracker API",
    description=(
        "**Daily Progress Engine** for the school Ramadan observance log.\n\n"
        "Turns one daily report per user into XP, keeps the fasting streak "
        "and derives badge progress.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(TrackerException, tracker_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(reports_router.router)
app.include_router(progress_router.router)
app.include_router(missions_router.router)


@app.get("/health", tags=["health"], summary="Liveness and catalog check")
def health(db: Session = Depends(get_db)):
    """
    `{"status": "ok", "active_missions": N}` while the database answers.
    HTTP 503 when it does not.
    """
    try:
        active = db.scalar(
            select(func.count()).select_from(Mission).where(Mission.active.is_(True))
        )
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": "unreachable"},
        )
    return {"status": "ok", "db": "ok", "active_missions": active, "env": settings.APP_ENV}
