"""FastAPI application wiring for the records service."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import AsyncConnectionPool

from .api.errors import register_error_handlers
from .api.records import router as records_router
from .api.routes import router as accounts_router
from .config import get_settings
from .domain.kinds import KINDS
from .domain.service import AccountService
from .repository import AccountRepository, RecordRepository
from .schema import ensure_schema
from .security.passwords import PasswordHasher
from .security.rate_limiter import build_rate_limiter

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared Postgres pool, converge the schema and build repositories."""
    pool = AsyncConnectionPool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        kwargs={"sslmode": settings.database_sslmode},
        open=False,
    )
    await pool.open()
    await ensure_schema(pool)
    app.state.pool = pool
    app.state.account_service = AccountService(
        AccountRepository(pool), PasswordHasher(settings.bcrypt_rounds)
    )
    app.state.record_repositories = {kind.name: RecordRepository(pool, kind) for kind in KINDS}
    app.state.rate_limiter = await build_rate_limiter(settings)
    logger.info("%s %s ready", settings.app_name, settings.version)
    try:
        yield
    finally:
        await app.state.rate_limiter.close()
        await pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)
register_error_handlers(app)


@app.get("/healthz", tags=["health"])
async def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(accounts_router)
app.include_router(records_router)


def run() -> None:
    import uvicorn

    uvicorn.run("records_service.main:app", host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    run()
