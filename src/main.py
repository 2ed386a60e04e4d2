"""Marketplace order service.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.mp_common.database import check_database, engine
from src.mp_common.errors import AppError
from src.mp_common.redis_client import close_redis, ping_redis
from src.mp_common.response import error_response
from src.mp_gateway.middleware.request_log import RequestLogMiddleware
from src.mp_order.api.router import router as order_router

VERSION = "0.1.0"

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _uses_redis() -> bool:
    return settings.ORDER_NUMBER_COUNTER == "redis"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    await check_database()
    if _uses_redis():
        await ping_redis()
    logger.info(
        "%s %s started (gateway=%s, order counter=%s)",
        settings.APP_NAME,
        VERSION,
        settings.PAYMENT_GATEWAY,
        settings.ORDER_NUMBER_COUNTER,
    )
    yield
    await engine.dispose()
    await close_redis()


app = FastAPI(title=settings.APP_NAME, version=VERSION, lifespan=lifespan)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("AppError %d on %s: %s", exc.code, request.url.path, exc.message)
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(status_code=exc.http_status, content=resp.model_dump())


app.include_router(order_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": VERSION}


@app.get("/health/ready")
async def ready() -> JSONResponse:
    """Readiness: PostgreSQL, plus Redis when it backs order numbers."""
    checks: dict[str, str] = {}
    try:
        await check_database()
        checks["database"] = "ok"
    except Exception as exc:  # noqa: BLE001
        logger.warning("readiness: database unavailable: %s", exc)
        checks["database"] = "unavailable"
    if _uses_redis():
        try:
            await ping_redis()
            checks["redis"] = "ok"
        except Exception as exc:  # noqa: BLE001
            logger.warning("readiness: redis unavailable: %s", exc)
            checks["redis"] = "unavailable"
    healthy = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", "checks": checks},
    )
