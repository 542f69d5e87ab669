"""
FastAPI application entry point
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from bus_reservation.api import admin, bookings, buses
from bus_reservation.core.config import settings
from bus_reservation.core.database import AsyncSessionLocal, engine, init_db
from bus_reservation.core.logging_config import setup_logging
from bus_reservation.core.metrics import METRICS_CONTENT_TYPE, get_metrics
from bus_reservation.core.redis import redis_client
from bus_reservation.middleware.rate_limiter import limiter
from bus_reservation.middleware.tracing import TracingMiddleware
from bus_reservation.services import BookingServiceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    # Test database connection
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection successful")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    await init_db()

    if settings.SEED_SAMPLE_BUSES:
        from bus_reservation.scripts.seed_data import seed_sample_buses

        async with AsyncSessionLocal() as db:
            created = await seed_sample_buses(db)
        if created:
            logger.info(f"Seeded {len(created)} sample buses")

    await redis_client.connect()

    yield

    # Shutdown
    logger.info("Shutting down...")
    await redis_client.close()
    await engine.dispose()
    logger.info("Cleanup complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Bus ticket reservation API: search, seat selection, booking and fleet admin",
    lifespan=lifespan,
)

app.state.limiter = limiter


@app.exception_handler(BookingServiceError)
async def booking_error_handler(request: Request, exc: BookingServiceError):
    """Render domain errors as {error, message, ...fields}"""
    logger.info(
        f"{request.method} {request.url.path} rejected: {exc.code}",
        extra={'path': request.url.path},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors.

    Keeps 422 but renders the same {error, message} shape as domain errors.
    """
    logger.warning(f"Request validation failed for {request.url.path}", extra={'path': request.url.path})

    return JSONResponse(
        status_code=422,
        content={
            "error": "invalid_request",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(f"Rate limit exceeded for {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": "60"},
    )


app.add_middleware(TracingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "redis": "healthy" if redis_client.redis else "unavailable",
    }


@app.get("/metrics", tags=["Health"])
async def metrics():
    """Prometheus scrape endpoint"""
    return Response(content=get_metrics(), media_type=METRICS_CONTENT_TYPE)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


app.include_router(buses.router, prefix="/api/v1", tags=["Buses"])
app.include_router(bookings.router, prefix="/api/v1", tags=["Bookings"])
app.include_router(admin.router, prefix="/api/v1", tags=["Admin"])


def run():
    import uvicorn

    uvicorn.run(
        "bus_reservation.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info",
    )


if __name__ == "__main__":
    run()
