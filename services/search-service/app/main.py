import asyncio
import logging

import httpx
import redis.asyncio as redis
from fastapi import FastAPI

from .config import (
    DATABASE_URL,
    GEOCODING_TIMEOUT,
    HTTP_TIMEOUT,
    LOG_LEVEL,
    REDIS_URL,
    SERVICE_NAME,
)
from .db import database_ready, get_engine, get_session
from .dependencies import Container
from .middleware import RequestLoggingMiddleware
from .routes import router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Search Service")
app.add_middleware(RequestLoggingMiddleware)
app.include_router(router)


@app.get("/health")
async def health():
    container = getattr(app.state, "container", None)
    if container is None:
        return {"status": "starting", "service": SERVICE_NAME}

    db_ok = await database_ready(container.session_factory)
    breakers = await asyncio.gather(*[b.status() for b in container.breakers.values()])
    return {
        "status": "ok" if db_ok else "degraded",
        "service": SERVICE_NAME,
        "database": "up" if db_ok else "down",
        "breakers_enabled": bool(container.breakers),
        "breakers": sorted(breakers, key=lambda x: x["name"]),
    }


@app.on_event("startup")
async def startup():
    engine = get_engine(DATABASE_URL)
    redis_client = None
    if REDIS_URL:
        redis_client = redis.from_url(REDIS_URL, decode_responses=True)
    else:
        logger.warning("REDIS_URL not set; upstream circuit breakers disabled")

    app.state.engine = engine
    app.state.container = Container(
        session_factory=get_session(engine),
        http_client=httpx.AsyncClient(timeout=HTTP_TIMEOUT),
        geocoding_http_client=httpx.AsyncClient(timeout=GEOCODING_TIMEOUT),
        redis_client=redis_client,
    )
    logger.info("%s started", SERVICE_NAME)


@app.on_event("shutdown")
async def shutdown():
    container = getattr(app.state, "container", None)
    if container is not None:
        await container.close()
        app.state.container = None
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.dispose()
