"""
onlytalk.api.main — FastAPI application entry point
====================================================

Run with::

    uvicorn onlytalk.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

load_dotenv()

from onlytalk.api.auth import router as auth_router  # noqa: E402
from onlytalk.api.deps import get_engine  # noqa: E402
from onlytalk.api.routes.comments import router as comments_router  # noqa: E402
from onlytalk.api.routes.gamification import router as gamification_router  # noqa: E402
from onlytalk.api.routes.notifications import router as notifications_router  # noqa: E402
from onlytalk.api.routes.posts import router as posts_router  # noqa: E402
from onlytalk.api.routes.social import router as social_router  # noqa: E402
from onlytalk.database.engine import init_db  # noqa: E402
from onlytalk.errors import OnlyTalkError, StoreError  # noqa: E402

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
    """Startup/shutdown lifecycle — create tables and seed defaults."""
    engine = get_engine()
    init_db(engine)
    logger.info("OnlyTalk API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("OnlyTalk API shutting down")


app = FastAPI(
    title="OnlyTalk API",
    version="0.1.0",
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
# Error handlers
# ---------------------------------------------------------------------------
def _validation_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


@app.exception_handler(OnlyTalkError)
async def onlytalk_error_handler(_request: Request, exc: OnlyTalkError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and out-of-range values are plain 400s."""
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation error", "errors": _validation_errors(exc)},
    )


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Database error on %s %s", request.method, request.url.path, exc_info=exc,
    )
    error = StoreError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Mount routers
app.include_router(auth_router, prefix="/api")
app.include_router(posts_router, prefix="/api")
app.include_router(comments_router, prefix="/api")
app.include_router(social_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")
app.include_router(gamification_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
