from contextlib import asynccontextmanager
from datetime import datetime, timezone
import time

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
import structlog

from designcase_api import schemas
from designcase_api.config import settings
from designcase_api.database import init_db
from designcase_api.errors import FileTooLargeError, StorageError, UploadServiceError
from designcase_api.logging_config import configure_logging
from designcase_api.metrics import get_metrics, http_requests_total
from designcase_api.routes import router
from designcase_api.storage import ObjectStorage

logger = structlog.get_logger(__name__)

# Room for multipart boundaries and headers on top of the file itself
MULTIPART_OVERHEAD = 1024 * 1024


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    configure_logging()
    logger.info("Starting Upload Service", version=settings.api_version)

    init_db()

    app.state.storage = ObjectStorage.from_settings()
    try:
        await app.state.storage.ensure_bucket()
    except StorageError as e:
        logger.warning("Object storage not reachable at startup", error=e.message)

    yield

    logger.info("Shutting down Upload Service")


app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(exc: UploadServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


@app.middleware("http")
async def body_size_middleware(request: Request, call_next):
    """Reject oversized uploads before the body is read"""
    if request.method == "POST" and request.url.path.endswith("/upload"):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() \
                and int(content_length) > settings.max_file_size + MULTIPART_OVERHEAD:
            limit_mb = settings.max_file_size / 1024 / 1024
            return error_response(FileTooLargeError(f"File size exceeds {limit_mb:g}MB limit"))
    return await call_next(request)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Middleware for request logging"""
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    if settings.metrics_enabled:
        http_requests_total.labels(method=request.method, status_code=response.status_code).inc()

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration * 1000, 1)
    )

    return response


@app.exception_handler(UploadServiceError)
async def upload_service_error_handler(request: Request, exc: UploadServiceError):
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request parameters",
            "code": "VALIDATION_ERROR",
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        path=request.url.path,
        method=request.method
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


@app.get("/health", response_model=schemas.HealthCheck)
async def health_check():
    return schemas.HealthCheck(status="ok", timestamp=datetime.now(timezone.utc))


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(content=get_metrics(), media_type="text/plain; version=0.0.4")


app.include_router(router, prefix="/api/uploads")
app.include_router(router, prefix="/uploads", include_in_schema=False)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "designcase_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
