"""
Absence Tracker - FastAPI Application

Employee absence administration: entitlement breakdowns and admission
control for new absence requests, plus the admin policy settings and
approval workflow.

Every error leaves the API in the same envelope:
    {"success": false, "errors": [{"msg": ..., "code": ..., "details": ...}]}
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

import absence_tracker.models  # noqa: F401  Force model registration with SQLAlchemy
from absence_tracker.core.config import settings
from absence_tracker.core.exceptions import AppException
from absence_tracker.core.logging import setup_logging
from absence_tracker.core.middleware import CorrelationIdMiddleware
from absence_tracker.database import init_db, SessionLocal
from absence_tracker.routers.api_router import api_router

setup_logging()
logger = logging.getLogger(__name__)


# ============================================================================
# LIFESPAN
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")
    try:
        init_db()
    except SQLAlchemyError as e:
        logger.error(f"Could not create the absence schema: {e}")
        raise
    logger.info(
        "Admission rules loaded",
        extra={"rules": settings.rules.model_dump(), "upload_dir": settings.upload_dir},
    )

    yield

    logger.info(f"{settings.app_name} stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Absence administration: leave accrual and admission control",
    lifespan=lifespan,
)

# Last added runs first: CORS wraps the correlation id
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.request_id_header, "Content-Disposition"],
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================
def _error_response(status_code: int, errors: List[Dict[str, Any]]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "errors": errors})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input (unparseable dates, missing form fields, bad settings body)."""
    errors = [
        {"field": str(error["loc"][-1]) if error["loc"] else "unknown", "msg": error["msg"]}
        for error in exc.errors()
    ]
    logger.warning(f"Request validation failed on {request.url.path}", extra={"errors": errors})
    return _error_response(422, errors)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.info(f"{exc.error_code}: {exc.message}", extra={"path": request.url.path})
    error = {"msg": exc.message, "code": exc.error_code}
    if exc.details:
        error["details"] = exc.details
    return _error_response(exc.status_code, [error])


@app.exception_handler(StarletteHTTPException)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: Union[HTTPException, StarletteHTTPException]):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error_response(exc.status_code, [{"msg": message}])


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled server error", extra={"path": request.url.path})
    return _error_response(500, [{"msg": "An unexpected server error occurred."}])


app.include_router(api_router, prefix=settings.api_prefix)


# ============================================================================
# OPERATIONAL ENDPOINTS
# ============================================================================
@app.get("/", tags=["Health"])
def root():
    return {
        "message": f"{settings.app_name} API",
        "version": settings.version,
        "docs": app.docs_url,
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness probe."""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
    }


@app.get("/readiness", tags=["Health"])
def readiness_check():
    """Readiness probe: the absence database answers a trivial query."""
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Service not ready")
    return {"status": "ready", "components": {"database": "connected"}}
