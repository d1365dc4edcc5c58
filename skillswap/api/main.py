"""
skillswap.api.main — FastAPI application entry point
======================================================

Run with::

    uvicorn skillswap.api.main:app --reload --port 8000

or ``python -m skillswap.api`` to pick the port from ``config.yaml``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

load_dotenv()

from skillswap import __version__  # noqa: E402
from skillswap.api.auth import router as auth_router  # noqa: E402
from skillswap.api.deps import get_config, get_engine  # noqa: E402
from skillswap.api.routes.admin import router as admin_router  # noqa: E402
from skillswap.api.routes.live import router as live_router  # noqa: E402
from skillswap.api.routes.notifications import router as notifications_router  # noqa: E402
from skillswap.api.routes.reports import router as reports_router  # noqa: E402
from skillswap.api.routes.swaps import router as swaps_router  # noqa: E402
from skillswap.api.routes.users import router as users_router  # noqa: E402
from skillswap.database.engine import init_db  # noqa: E402
from skillswap.engine.lifecycle import SwapPermissionError, SwapTransitionError  # noqa: E402
from skillswap.engine.records import RecordDecodeError  # noqa: E402
from skillswap.services.feedback_service import FeedbackError  # noqa: E402
from skillswap.services.log_buffer import install_handler  # noqa: E402
from skillswap.services.seed import run_startup_seed  # noqa: E402
from skillswap.services.user_service import AuthError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: log capture, schema check, bootstrap accounts."""
    # Uvicorn reconfigures logging on start, so attach the buffer handler here.
    install_handler()

    engine = get_engine()
    init_db(engine)
    run_startup_seed(engine, get_config())
    logger.info("SkillSwap API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("SkillSwap API shutting down")


app = FastAPI(
    title="SkillSwap API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Domain error → HTTP status
# ---------------------------------------------------------------------------
@app.exception_handler(AuthError)
async def auth_error_handler(_request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "code": exc.code},
    )


@app.exception_handler(SwapPermissionError)
async def swap_permission_handler(_request: Request, exc: SwapPermissionError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(SwapTransitionError)
async def swap_transition_handler(_request: Request, exc: SwapTransitionError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "current_status": exc.current.value,
            "action": exc.action.value,
        },
    )


@app.exception_handler(FeedbackError)
async def feedback_error_handler(_request: Request, exc: FeedbackError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.exception_handler(RecordDecodeError)
async def record_decode_handler(request: Request, exc: RecordDecodeError) -> JSONResponse:
    logger.error("Malformed stored record on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Stored record is malformed"})


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("Database unavailable on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=503,
        content={"detail": "The data store is temporarily unavailable. Please try again."},
        headers={"Retry-After": "5"},
    )


# Mount routers
app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(swaps_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")
app.include_router(reports_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(live_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
