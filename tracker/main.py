from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from tracker.core.database import session_manager, aget_db
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.api.v1.endpoints.milestones import router as milestones_router
from tracker.api.v1.endpoints.releases import router as releases_router

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy import text
import logging
from contextlib import asynccontextmanager
from tracker.core.config import settings
from tracker.core.exceptions import register_exception_handlers
from tracker.services.NotificationDispatcher import notification_dispatcher
from tracker.services.ResultCache import get_result_cache

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async context manager for app lifespan events"""

    try:
        logger.info(f"🚀 Starting release tracker ({settings.ENVIRONMENT})...")
        logger.info("🔌 Initializing database connection pool...")
        await session_manager.init()
        logger.info("✅ Database ready")
    except Exception as e:
        logger.critical(f"🔥 Application startup failed: {str(e)}")
        raise

    try:
        logger.info("🏁 Release tracker startup complete")
        yield
    finally:
        logger.info("🛑 Beginning application shutdown...")
        await notification_dispatcher.drain()
        get_result_cache().clear()
        logger.info("🔌 Closing database connections...")
        await session_manager.close()
        logger.info("👋 Application shutdown complete")


app = FastAPI(
    title="Release Tracker API",
    description="Milestones, releases and their progress for projects and groups",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url}")
    response = await call_next(request)
    logger.info(f"Response status: {response.status_code}")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

@app.get("/", tags=["Health Check"])
async def health_check(db: AsyncSession = Depends(aget_db)):
    try:
        await db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "service": "Release Tracker API",
            "database": "connected",
            "cached_results": len(get_result_cache()),
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return {
            "status": "unhealthy",
            "service": "Release Tracker API",
            "database": "disconnected",
            "error": str(e)
        }


app.include_router(milestones_router, prefix="/api/v1", tags=["Milestones"])
app.include_router(releases_router, prefix="/api/v1", tags=["Releases"])

logger.info(f"✅ Loaded {len(app.routes)} routes")
