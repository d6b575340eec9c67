import logging
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# .env from the project root wherever uvicorn is started
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from devsera import __version__
from devsera.admin import admin_router
from devsera.api.auth import router as auth_router
from devsera.api.banners import router as banners_router
from devsera.api.catalog import router as catalog_router
from devsera.api.deps import client_ip
from devsera.api.orders import router as orders_router
from devsera.api.premium import router as premium_router
from devsera.api.rewards import router as rewards_router
from devsera.api.store import router as store_router
from devsera.core.config import settings
from devsera.core.database import engine, init_db
from devsera.core.rate_limit import format_time_remaining, limiter
from devsera.logging import setup_logging
from devsera.models import ErrorLog, SecurityLog

setup_logging(settings.log_level)
log = logging.getLogger("devsera")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    Path(settings.storage_dir).mkdir(parents=True, exist_ok=True)
    log.info("Devsera Store %s started (environment=%s)", __version__, settings.environment)
    yield


app = FastAPI(
    title="Devsera Store API",
    description="Digital goods storefront with admin back-office",
    version=__version__,
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, detail: str, headers: dict | None = None) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": detail, "status_code": status_code}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _retry_after_seconds(request: Request, exc: RateLimitExceeded) -> float:
    """Seconds until the window of the limit that was hit resets; the full window when unknown."""
    window = exc.limit.limit.get_expiry() if getattr(exc, "limit", None) else 60
    current = getattr(request.state, "view_rate_limit", None)
    if not current:
        return window
    try:
        reset_at, _ = request.app.state.limiter.limiter.get_window_stats(current[0], *current[1])
    except (AttributeError, TypeError, ValueError):
        return window
    return max(1, reset_at - time.time())


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    try:
        with Session(engine) as db:
            db.add(
                SecurityLog(
                    event="rate_limit",
                    ip=client_ip(request) or None,
                    endpoint=request.url.path,
                    detail=f"Rate limit exceeded: {exc.detail}",
                )
            )
            db.commit()
    except Exception as e:
        log.warning("SecurityLog rate_limit write failed: %s", e)
    wait = _retry_after_seconds(request, exc)
    if request.url.path == "/checkout":
        msg = f"Please wait {format_time_remaining(wait)} before placing another order."
    else:
        msg = f"Too many requests. Please try again in {format_time_remaining(wait)}."
    return _error_response(request, 429, msg, headers={"Retry-After": str(int(wait))})


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Invalid request."
    first = errs[0]
    loc = list(first.get("loc") or [])
    field = str(loc[-1]) if loc else None
    if first.get("type") == "missing":
        if field == "body":
            return "Request body is missing."
        return f"Please fill in {field.replace('_', ' ')}." if field else "Please fill in all required fields"
    msg = first.get("msg") or "Invalid request."
    # pydantic prefixes custom validator messages
    msg = msg.removeprefix("Value error, ")
    return f"{field}: {msg}" if field and field != "body" else msg


def jsonable_errors(errs: list[dict]) -> list[dict]:
    # ctx may hold exception instances
    return [{k: v for k, v in e.items() if k in ("type", "loc", "msg")} for e in errs]


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.warning(
        "Request validation error (422): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        errs,
    )
    rid = getattr(request.state, "request_id", None)
    body = {"error": _validation_error_message(exc), "status_code": 422, "detail": jsonable_errors(errs)}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=422, content=body)


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(request, exc.status_code, detail, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=exc)
    try:
        with Session(engine) as db:
            db.add(
                ErrorLog(
                    user_id=None,
                    endpoint=request.url.path,
                    method=request.method,
                    error_message=str(exc)[:2000],
                    stack_trace="".join(traceback.format_exception(exc))[:10000],
                )
            )
            db.commit()
    except Exception as e:
        log.warning("ErrorLog write failed: %s", e)
    if request.url.path.startswith("/checkout"):
        user_msg = "Failed to submit your order. Please try again."
    else:
        user_msg = "Unexpected server error."
    return _error_response(request, 500, user_msg)


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth_router)
app.include_router(catalog_router)
app.include_router(banners_router)
app.include_router(orders_router)
app.include_router(premium_router)
app.include_router(rewards_router)
app.include_router(store_router)
app.include_router(admin_router)

# Storage buckets; check_dir=False since the directory is created on startup
app.mount(
    settings.storage_public_url,
    StaticFiles(directory=settings.storage_dir, check_dir=False),
    name="storage",
)


@app.get("/health")
def health():
    try:
        with Session(engine) as db:
            db.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        log.warning("Health check database error: %s", e)
        database = "error"
    return {"status": "ok", "version": __version__, "database": database}
