import logging
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import models  # noqa: F401  registers the tables with Base
from .config import FRONTEND_ORIGINS, SECURITY_HEADERS_ENABLED
from .database import Base, engine
from .domain.gdpr.router import router as gdpr_router
from .domain.magazines.router import router as magazines_router
from .domain.reservations.router import router as reservations_router
from .errors import setup_exception_handlers
from .rate_limiter import get_redis_client
from .routes.health import router as health_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    try:
        if get_redis_client() is not None:
            logger.info("Redis connection established")
        else:
            logger.info("REDIS_URL not set - rate limiting runs in memory")
    except (redis.RedisError, OSError) as e:
        logger.warning(f"Redis connection failed - rate limiting falls back to memory: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Flaschenpost Reservation API", version="1.0.0", lifespan=lifespan)

setup_exception_handlers(app)

if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

ALLOWED_ORIGINS = [origin.strip() for origin in FRONTEND_ORIGINS.split(",") if origin.strip()]
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Routes
app.include_router(health_router, prefix="/api")
app.include_router(magazines_router, prefix="/api")
app.include_router(reservations_router, prefix="/api")
app.include_router(gdpr_router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Flaschenpost Reservation API", "version": "1.0.0"}
