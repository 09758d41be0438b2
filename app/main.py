import logging
from contextlib import asynccontextmanager
from time import perf_counter

from fastapi import FastAPI
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.log_buffer import install_log_buffer, record_request
from app.db.session import init_db
from app.api.routes import (
    health,
    metrics,
    prices,
    products,
    stores,
)

logger = logging.getLogger("grocery.startup")

install_log_buffer(
    max_logs=settings.log_buffer_size,
    max_request_events=settings.log_request_event_size,
    file_path=settings.log_buffer_file,
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("=== %s startup ===", settings.app_name)
    logger.info("ENVIRONMENT: %s", settings.environment)
    logger.info("DATABASE_URL: %s", "***" if settings.database_url else "NOT SET")
    logger.info("DEFAULT_CURRENCY: %s", settings.default_currency)

    # Healthchecks should still answer while the database is down.
    try:
        init_db()
        logger.info("Database initialization completed successfully")
    except Exception as exc:  # pragma: no cover - startup without database
        logger.exception("Database initialization skipped due to error: %s", exc)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

env_lower = settings.environment.lower()
if settings.cors_allow_all and env_lower not in {"prod", "production"}:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"]
    )
elif settings.cors_allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"]
    )

app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(prices.router)
app.include_router(products.router)
app.include_router(stores.router)


@app.get("/metadata", summary="Service metadata")
def service_metadata() -> dict[str, str]:
    return {
        "service": settings.app_name,
        "environment": settings.environment,
        "currency": settings.default_currency,
    }


@app.middleware("http")
async def capture_pricing_requests(request: Request, call_next):
    start = perf_counter()
    status_code: int = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        if request.url.path.startswith("/prices"):
            record_request(
                method=request.method,
                path=request.url.path,
                status=status_code,
                duration_ms=(perf_counter() - start) * 1000.0,
            )
