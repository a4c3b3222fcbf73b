"""FastAPI application entry point. Registers middleware, error handlers and API routers."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dentalce.config import settings
from dentalce.database import Base, engine
import dentalce.models  # noqa: F401 - registers model metadata
from dentalce.routers import (
    auth, seminars, user, admin_makeup_requests, admin_certificates,
    admin_seminars, admin_registrations, admin_credits, cron,
)
from dentalce.utils.schema_sync import sync_missing_schema_objects

logger = logging.getLogger(__name__)

SERVICE_NAME = "GPS Dental CE"

app = FastAPI(
    title="GPS Dental CE back office",
    description="Seminar attendance, makeup requests, CE credit ledger and certificates",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": f"{field}: {message}" if field else message},
    )


# Register all routers. Fixed admin sub-paths go before the seminar id routes.
app.include_router(auth.router)
app.include_router(seminars.router)
app.include_router(user.router)
app.include_router(admin_makeup_requests.router)
app.include_router(admin_certificates.router)
app.include_router(admin_seminars.router)
app.include_router(admin_registrations.router)
app.include_router(admin_credits.router)
app.include_router(cron.router)


@app.on_event("startup")
def ensure_schema():
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # Creates missing tables, then columns and indexes added since the last deploy.
    Base.metadata.create_all(bind=engine)
    sync_missing_schema_objects(engine, Base.metadata)
    logger.info("[startup] schema ready on %s", engine.url.get_backend_name())


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": SERVICE_NAME}
