"""
FastAPI application factory.

Usage:
    python main.py                       # Dev server on port 8000
    APP_DB_PATH=/data/catalog.sqlite python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

Everything an app needs (connection pool, authenticator, config) is built in
create_app() and stored on ``app.state``, so tests can create isolated apps
against their own database files.
"""

import json
import logging
import sqlite3
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.auth import Authenticator, TokenAuthenticator
from api.database import ConnectionPool
from api.routes import resources
from utils.config import AppConfig
from utils.database import get_table_count, table_exists
from utils.query import RESOURCES_TABLE

# Routers mounted under /api/v1, in registration order
ROUTERS = (
    resources.router,
)

API_PREFIX = "/api/v1"
SLOW_REQUEST_MS = 500

_logger = logging.getLogger("link_catalog_api")


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "client_ip",
                    "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


def configure_logging(cfg: AppConfig) -> None:
    """Install a single stream handler on the root logger."""
    handler = logging.StreamHandler()
    if cfg.log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    logging.basicConfig(handlers=[handler], level=cfg.log_level, force=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Warn about a missing database on startup; close the pool on shutdown."""
    pool: ConnectionPool = app.state.pool
    if not pool.db_path.exists():
        _logger.warning(
            "Database not found at %s. Run 'python main.py --init-db' first.",
            pool.db_path,
        )
    yield
    pool.close_all()


def create_app(
    db_path: Path | None = None,
    authenticator: Authenticator | None = None,
    config: AppConfig | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Override the database path (useful for testing).
        authenticator: Decides whether a request is authenticated.  Defaults
            to a TokenAuthenticator over APP_API_TOKENS.
        config: Settings; read from the environment when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or AppConfig.from_env()
    if db_path is not None:
        cfg.db_path = Path(db_path)

    app = FastAPI(
        title="Link Building Catalog API",
        summary="Manage link resources and the providers that sell placements on them.",
        description=(
            "## Link Building Catalog API\n\n"
            "Each **resource** is a website with SEO metrics and categories; each "
            "**provider** row holds contact and pricing terms for a resource. "
            "Listings run over the provider/resource join, one row per provider.\n\n"
            "### Authentication\n"
            "All `/api/v1/resources` endpoints require `Authorization: Bearer <token>` "
            "or `X-API-Key: <token>`.\n\n"
            "### Validation errors\n"
            "Create and update failures return `{status, code, message}` with HTTP "
            f"status {cfg.validation_error_status}."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {
                "name": "resources",
                "description": "List, create, read, update and delete link resources.",
            },
            {
                "name": "meta",
                "description": "Health check.",
            },
        ],
    )

    app.state.config = cfg
    app.state.pool = ConnectionPool(cfg.db_path, max_size=cfg.pool_size)
    app.state.authenticator = authenticator or TokenAuthenticator(cfg.api_tokens)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Page-Window"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with a short request ID and its duration."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "client_ip": client_ip,
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f ip=%s rid=%s",
                request.method, path, response.status_code, duration_ms,
                client_ip, request_id,
            )
        if duration_ms > SLOW_REQUEST_MS:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, path, duration_ms,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("unhandled error method=%s path=%s",
                          request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
                "status_code": 500,
            },
        )

    @app.exception_handler(ValidationError)
    async def model_error_handler(request: Request, exc: ValidationError):
        # subclass of ValueError; keeps model errors out of the 400 handler
        _logger.exception("model validation failed method=%s path=%s",
                          request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc), "status_code": 500},
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "detail": str(exc), "status_code": 400},
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK if the API is running and can read the resource table."""
        db_path = cfg.db_path
        if not db_path.exists():
            return JSONResponse(
                status_code=503,
                content={"status": "no_database", "database": str(db_path)},
            )
        conn = sqlite3.connect(str(db_path))
        try:
            if not table_exists(conn, RESOURCES_TABLE):
                return JSONResponse(
                    status_code=503,
                    content={"status": "degraded", "error": "schema not initialised"},
                )
            count = get_table_count(conn, RESOURCES_TABLE)
        except sqlite3.Error as exc:
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "error": str(exc)},
            )
        finally:
            conn.close()
        return {"status": "ok", "resources": count}

    # ── Register routers ──────────────────────────────────────────────────────

    for router in ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    return app


# Singleton instance for uvicorn
_cfg = AppConfig.from_env()
configure_logging(_cfg)
app = create_app(config=_cfg)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
