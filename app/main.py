"""
VentureFlow API - founder portal and admin dashboard

Portal users and admins share one FastAPI app; admin tokens carry their own
scope and protected user mutations go through two-step confirmation.
"""
import logging
from logging.handlers import RotatingFileHandler
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select, text

from app.core.config import settings
from app.api.v1.api import api_router
from app.db.session import AsyncSessionLocal, engine
from app.models import Base, ProtectedAction
from app.services.two_step import ConfirmationState
from app.utils.seed_data import seed_templates

APP_VERSION = "1.0.0"


def setup_logging():
    """Rotating file log plus console, sized and placed from settings"""
    os.makedirs(settings.LOG_DIR, exist_ok=True)

    logging.basicConfig(
        level=logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            RotatingFileHandler(
                os.path.join(settings.LOG_DIR, settings.LOG_FILE),
                maxBytes=settings.LOG_MAX_BYTES,
                backupCount=settings.LOG_BACKUP_COUNT,
                encoding='utf-8'
            ),
            logging.StreamHandler()
        ]
    )

    for name in ('urllib3', 'boto3', 'botocore', 'aiosqlite'):
        logging.getLogger(name).setLevel(logging.WARNING)
    # bcrypt version probing is noisy on every hash
    logging.getLogger('passlib').setLevel(logging.ERROR)


setup_logging()
logger = logging.getLogger(__name__)


async def _pending_protected_actions() -> int:
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(func.count(ProtectedAction.id)).where(
                ProtectedAction.state.notin_([ConfirmationState.COMPLETED, ConfirmationState.CANCELLED])
            )
        )
        return result.scalar() or 0


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})")

    if settings.ENVIRONMENT == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with AsyncSessionLocal() as db:
            created = await seed_templates(db)
        logger.info(f"Development database ready, {created} checklist templates seeded")

    pending = await _pending_protected_actions()
    if pending:
        logger.warning(f"{pending} protected actions are still awaiting confirmation")
    logger.info(f"Presence window: {settings.PRESENCE_TTL_MINUTES} minutes")

    yield

    logger.info(f"Shutting down {settings.PROJECT_NAME}")
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Founder portal and admin dashboard API",
    version=APP_VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Log anything the endpoints did not translate and answer with a generic 500.
    A protected action interrupted this way stays in its previous state.
    """
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/health")
async def health_check():
    """Liveness plus a database round trip"""
    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "service": "ventureflow-api",
        "version": APP_VERSION,
        "database": database,
    }


@app.get("/")
async def root():
    return {
        "message": settings.PROJECT_NAME,
        "docs": f"{settings.API_V1_STR}/docs",
        "health": "/health"
    }
