from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from starlette.responses import Response, JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from dispatchdesk.api import auth, leads, calls, opportunities, fleet, stats, documents
from dispatchdesk.core.config import settings
from dispatchdesk.core.redis import init_redis, close_redis, redis_available
from dispatchdesk.core.metrics import request_count, request_duration, db_connected, redis_connected, get_metrics_text
from dispatchdesk.db.session import engine
from dispatchdesk.models.base import Base
from dispatchdesk.models import user, audit, lead, call_log, opportunity, fleet as fleet_models  # noqa: F401
import time
import logging

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            duration = time.time() - start_time
            request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=status
            ).inc()
            request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(duration)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")

    try:
        await init_redis()
        redis_connected.set(1)
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        redis_connected.set(0)

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        db_connected.set(1)
        app.state.db_ready = True
        logger.info("Database connected")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        db_connected.set(0)
        app.state.db_ready = False

    yield

    logger.info("Application shutting down...")
    await close_redis()
    redis_connected.set(0)
    await engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan
)

app.add_middleware(MetricsMiddleware)

app.include_router(auth.router)
app.include_router(leads.router)
app.include_router(calls.router)
app.include_router(opportunities.router)
app.include_router(fleet.router)
app.include_router(stats.router)
app.include_router(documents.router)


@app.get("/metrics", tags=["monitoring"])
async def metrics():
    return Response(
        content=get_metrics_text(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@app.get("/health", tags=["monitoring"])
async def health_check():
    return {
        "status": "healthy",
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "dependencies": {
            "redis": "connected" if redis_available() else "disconnected",
            "database": "connected" if getattr(app.state, "db_ready", False) else "disconnected",
        }
    }


@app.get("/readiness", tags=["monitoring"])
async def readiness_check():
    if not redis_available():
        return JSONResponse(
            status_code=503,
            content={"ready": False, "reason": "Redis not available"},
        )

    return {
        "ready": True,
        "service": settings.API_TITLE
    }


@app.get("/", tags=["root"])
async def root():
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics"
    }
