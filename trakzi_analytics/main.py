import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trakzi_analytics.core.config import settings
from trakzi_analytics.core.logging import configure_logging
from trakzi_analytics.db.store import RecordStoreError, record_store
from trakzi_analytics.routers import analytics, cache, charts, dashboard, health, transactions
from trakzi_analytics.utils.scheduler import regenerate_fixture, start_scheduler, stop_scheduler

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: load the demo corpus, then keep it current
    if not record_store.is_loaded:
        logger.info("Loading demo fixture...")
        regenerate_fixture(record_store)
    if settings.SCHEDULER_ENABLED:
        logger.info("Starting scheduler...")
        start_scheduler()
    yield
    # Shutdown: Stop the scheduler
    if settings.SCHEDULER_ENABLED:
        logger.info("Stopping scheduler...")
        stop_scheduler()


app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:8000",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)


@app.exception_handler(RecordStoreError)
async def record_store_error_handler(request: Request, exc: RecordStoreError):
    logger.error(f"Record store error on {request.url.path}: {str(exc)}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# Root endpoint
@app.get("/")
def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}


# Register routers
app.include_router(health.router, prefix=f"{settings.API_PREFIX}", tags=["Health"])  # /api/health
app.include_router(transactions.router, prefix=f"{settings.API_PREFIX}/transactions", tags=["Transactions"])
app.include_router(analytics.router, prefix=f"{settings.API_PREFIX}/analytics", tags=["Analytics"])
app.include_router(dashboard.router, prefix=f"{settings.API_PREFIX}", tags=["Dashboard"])
app.include_router(charts.router, prefix=f"{settings.API_PREFIX}", tags=["Charts"])
app.include_router(cache.router, prefix=f"{settings.API_PREFIX}", tags=["Cache"])
