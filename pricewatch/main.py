"""
PriceWatch - Price Tracking Service
Main FastAPI Application
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from pricewatch.config import settings
from pricewatch.database import create_tables, DatabaseManager
from pricewatch.exceptions import PriceWatchError
from pricewatch.routers import watchlist
from pricewatch.schemas import HealthCheck
from pricewatch.services.scheduler import scheduler_service
from pricewatch.utils.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    create_tables()
    logger.info("Database tables created")

    if settings.SCHEDULER_ENABLED:
        scheduler_service.start()

    yield

    scheduler_service.stop()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    description="Marketplace price watching with price history and drop alerts",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status and duration of each request"""
    start_time = time.time()

    response = await call_next(request)

    process_time = (time.time() - start_time) * 1000
    if request.url.path != "/health":
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({process_time:.1f}ms)")

    response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
    return response


app.include_router(watchlist.router, prefix="/api/v1")


@app.get("/health", response_model=HealthCheck, tags=["System"])
async def health_check():
    """Health check endpoint for monitoring"""
    db_status = "connected" if DatabaseManager.health_check() else "disconnected"
    scheduler_status = "running" if scheduler_service.is_running() else "stopped"

    return HealthCheck(
        status="healthy" if db_status == "connected" else "degraded",
        version=settings.APP_VERSION,
        database=db_status,
        scheduler=scheduler_status,
        timestamp=datetime.utcnow(),
    )


# Error handlers: every failure uses the {success: false, error: {message}} envelope

def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"message": message}},
        headers=headers,
    )


@app.exception_handler(PriceWatchError)
async def pricewatch_error_handler(request: Request, exc: PriceWatchError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return _error(exc.status_code, "Internal server error")
    return _error(exc.status_code, str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = "Not found"
    return _error(exc.status_code, message, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return _error(400, message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return _error(429, f"Rate limit exceeded: {exc.detail}")


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception(f"Internal error on {request.method} {request.url.path}: {exc}")
    return _error(500, "Internal server error")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "pricewatch.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
