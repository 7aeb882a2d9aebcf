"""
main.py — DebtWatch FastAPI application

Wires routers, middleware and error handlers. All business logic lives
in services/.

Business Rules:
- Every response carries X-Request-ID (8 chars) and the OWASP headers
- Every request is logged with method, path, status and duration, with
  the request id bound to all log lines emitted while handling it
- Domain errors (DebtWatchError) and HTTP errors both answer with the
  ErrorResponse JSON shape: success=false, error, status_code, request_id
- Schema is managed by Alembic; SQLite dev databases are created on startup

Called by: uvicorn (uvicorn debtwatch.main:app)
Depends on: routers/*, logging_config, database, http_client
"""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import settings
from .database import engine
from .exceptions import DebtWatchError
from .http_client import close_clients
from .logging_config import setup_logging
from .models import Base
from .rate_limit import limiter
from .routers import clients, sync, webhooks
from .schemas.errors import ErrorResponse

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.is_sqlite:
        Base.metadata.create_all(bind=engine)
    logger.info("DebtWatch {} started", __version__)
    yield
    await close_clients()


app = FastAPI(title="DebtWatch", version=__version__, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(sync.router)
app.include_router(webhooks.router)
app.include_router(clients.router)


# ── Middleware ───────────────────────────────────────────────────────

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = uuid.uuid4().hex[:8]
    request.state.request_id = request_id
    start = time.perf_counter()
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "{} {} → {} ({:.1f} ms)",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
    response.headers["X-Request-ID"] = request_id
    for header, value in _SECURITY_HEADERS.items():
        response.headers[header] = value
    return response


# ── Error handlers ───────────────────────────────────────────────────


def _error_response(request: Request, status_code: int, error: str, detail: list | None = None):
    body = ErrorResponse(
        error=error,
        status_code=status_code,
        request_id=getattr(request.state, "request_id", ""),
        detail=detail,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(DebtWatchError)
async def domain_error_handler(request: Request, exc: DebtWatchError):
    logger.warning("{} on {}: {}", type(exc).__name__, request.url.path, exc.message)
    return _error_response(request, exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(request, exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return _error_response(request, 422, "Validation failed", detail=errors)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return _error_response(request, 500, "Internal server error")


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__}
