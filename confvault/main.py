"""FastAPI application entrypoint."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from confvault.config import settings
from confvault.database import init_db, ping_db
from confvault.errors import AppError, StorageFailureError, ValidationFailedError
from confvault.routers import applications, environments, members, secrets, variables
from confvault.utils.crypto import get_codec

# ── Logging setup ────────────────────────────────────────────────────
_log_level = os.environ.get("CONFVAULT_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fail fast on an unusable key before serving anything
    get_codec()
    await init_db()
    logger.info("confvault started (env=%s)", settings.env)
    yield


app = FastAPI(
    title="confvault",
    description="Applications, environments, secrets and variables with per-application roles",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error translation ────────────────────────────────────────────────


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.kind)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Only loc/msg/type: the rejected input may be a secret value
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    error = ValidationFailedError("Invalid request")
    return JSONResponse(status_code=error.status_code, content={**error.to_dict(), "errors": errors})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    error = StorageFailureError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# Mount routers
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(members.router, prefix="/api/applications", tags=["members"])
app.include_router(environments.router, prefix="/api", tags=["environments"])
app.include_router(secrets.router, prefix="/api", tags=["secrets"])
app.include_router(variables.router, prefix="/api", tags=["variables"])


@app.get("/health")
async def health():
    try:
        await ping_db()
    except SQLAlchemyError as exc:
        logger.warning("Health check: database unavailable: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "service": "confvault", "database": "unavailable"},
        )
    return {"status": "ok", "service": "confvault", "database": "ok"}
