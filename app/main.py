from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request

from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings, setup_logging
from app.dependencies import get_profile_store, get_upstream_service
from app.exceptions import DashboardError
from app.services.scheduler_service import cache_warm_scheduler
from app.utils.logging_helpers import log_section_end, log_section_start

from app.routers import api_router, display_router


setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    log_section_start(logger, "Projector API startup")

    try:
        await get_profile_store().ensure_ready()
        logger.info(f"Data directory: {settings.data_dir}")

        if settings.cache_warm_cron:
            cache_warm_scheduler.start(get_upstream_service(), settings.cache_warm_cron)
        else:
            logger.info("Cache warm scheduler disabled")

        log_section_end(logger, "Projector API startup")
    except Exception as e:
        logger.error(f"Failed to start Projector API: {e}", exc_info=True)
        raise

    yield

    log_section_start(logger, "Projector API shutdown")

    try:
        cache_warm_scheduler.shutdown()
    except Exception as e:
        logger.error(f"Error during scheduler shutdown: {e}", exc_info=True)

    log_section_end(logger, "Projector API shutdown")


app = FastAPI(
    title="Projector API",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

app.include_router(display_router)
app.include_router(api_router)


def _format_validation_error(error: dict) -> str:
    """Render one pydantic error as '<field path>: <message>'"""
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]
    message = error.get("msg", "Invalid value")
    return f"{'.'.join(loc)}: {message}" if loc else message


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reject invalid request bodies with the first validation problem"""
    errors = exc.errors()
    logger.warning(f"Validation error for {request.method} {request.url.path}: {errors}")

    message = _format_validation_error(errors[0]) if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(DashboardError)
async def dashboard_exception_handler(request: Request, exc: DashboardError):
    """Map domain errors to their HTTP status"""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes and methods are reported as missing endpoints"""
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unexpected failures without leaking details to the client"""
    logger.error(f"Unhandled error for {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
