import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookmyslot.api.routes import auth, bookings, clinic_bookings, clinics, notifications, public_bookings, slots
from bookmyslot.core.config import _ENV_FILE, settings
from bookmyslot.core.db import async_session_maker
from bookmyslot.core.errors import BookMySlotError
from bookmyslot.services.admin_auth_service import build_admin_authenticator
from bookmyslot.services.booking_service import delete_expired_pending_bookings
from bookmyslot.services.capacity_service import backfill_slot_clinic_ids

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


async def _run_pending_sweep() -> None:
    """Delete pending bookings whose verification code expired, with their slots."""
    try:
        async with async_session_maker() as session:
            try:
                n = await delete_expired_pending_bookings(session)
                await session.commit()
                if n:
                    logger.info("Pending sweep: deleted %d expired booking(s)", n)
            except Exception:
                await session.rollback()
                raise
    except Exception as e:
        logger.exception("Pending sweep failed: %s", e)


async def _run_backfill() -> None:
    try:
        async with async_session_maker() as session:
            try:
                await backfill_slot_clinic_ids(session)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
    except Exception as e:
        logger.exception("Slot clinic_id backfill failed: %s", e)


async def _sweep_loop() -> None:
    while True:
        await asyncio.sleep(settings.pending_sweep_interval_seconds)
        await _run_pending_sweep()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    logger.info("Admin authentication strategy: %s", app.state.admin_authenticator.name)
    await _run_backfill()
    task = None
    if settings.pending_sweep_enabled:
        await _run_pending_sweep()
        task = asyncio.create_task(_sweep_loop())
    yield
    if task:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title="BookMySlot API",
    description="Clinic appointment booking: clinics, slots, bookings",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)
app.state.admin_authenticator = build_admin_authenticator(settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

for module in (auth, public_bookings, clinic_bookings, bookings, slots, clinics, notifications):
    app.include_router(module.router, prefix="/api")


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s %s in %dms", request.method, request.url.path, response.status_code, duration_ms)
    return response


def _cors_headers(origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


@app.exception_handler(BookMySlotError)
async def domain_exception_handler(request: Request, exc: BookMySlotError) -> JSONResponse:
    content = {"message": exc.message}
    if getattr(exc, "field", None):
        content["field"] = exc.field
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content, headers=_cors_headers(request.headers.get("origin")))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    headers = _cors_headers(request.headers.get("origin"))
    if exc.headers:
        headers.update(exc.headers)
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema validation failures are 400 with the first offending field."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid request")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    if first.get("type") == "missing":
        message = "Missing required fields"
    logger.warning("Validation error for %s: %s", request.url.path, errors)
    content = {"message": message}
    if loc:
        content["field"] = ".".join(loc)
    return JSONResponse(status_code=400, content=content, headers=_cors_headers(request.headers.get("origin")))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected failures: log with traceback, answer with a short message only."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error"},
        headers=_cors_headers(request.headers.get("origin")),
    )


@app.get("/health")
@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok"}
