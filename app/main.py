"""
Main FastAPI application
Quiz platform: catalogue, quiz attempts with grading, progress and certificates
"""
from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import admin, auth, quizzes, users
from app.config import settings
from app.database import engine, init_db
from app.exceptions import QuizPlatformError
from app.utils.cache import cache_service
from app.utils.rate_limiter import rate_limiter

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    try:
        init_db()
        logger.info("Database tables ready")
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    yield

    logger.info("Shutting down application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Online quiz platform: quizzes, attempts, scoring and certificates",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Throttle everything except health, docs and uploaded media"""
    if rate_limiter.is_exempt(request.url.path):
        return await call_next(request)

    try:
        await rate_limiter.check_rate_limit(request)
    except HTTPException as e:
        return JSONResponse(status_code=e.status_code, content=e.detail, headers=e.headers)

    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status and duration; expose the duration as a header"""
    start_time = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start_time

    response.headers["X-Process-Time"] = f"{duration:.3f}"
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration:.3f}s"
    )
    return response


def _error_body(error: str, message, status_code: int) -> dict:
    return {"error": error, "message": message, "status_code": status_code}


@app.exception_handler(QuizPlatformError)
async def quiz_platform_exception_handler(request: Request, exc: QuizPlatformError):
    """NotFound -> 404, InvalidState -> 400, StorageFailure -> 500"""
    if exc.status_code >= 500:
        logger.error(f"{exc.error} on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error, exc.message, exc.status_code)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    body = _error_body("validation_error", "Request validation failed", 422)
    body["detail"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=422, content=body)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Auth failures, unknown routes and other framework errors"""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("http_error", exc.detail, exc.status_code),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}", exc_info=True)

    body = _error_body("internal_server_error", "An unexpected error occurred. Please try again later.", 500)
    body["detail"] = str(exc) if settings.DEBUG else None
    return JSONResponse(status_code=500, content=body)


@app.get("/health")
async def health_check():
    """
    Liveness plus dependency status

    The database is checked with SELECT 1; the cache reports whether Redis
    answered at startup.
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning(f"Health check database check failed: {str(e)}")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": database,
        "cache": "ok" if cache_service.redis_client else "disabled",
        "timestamp": time.time()
    }


@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(auth.router)
app.include_router(quizzes.router)
app.include_router(quizzes.categories_router)
app.include_router(users.router)
app.include_router(admin.router)

# Uploaded thumbnails and question images
app.mount("/media", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="media")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
