import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import APIException
from app.middleware.tracing import RequestTracingMiddleware
from app.schemas.error import ErrorResponse
from app.services.chapa import ChapaClient

# Metrics
REQUEST_COUNT = Counter("http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"])
REQUEST_DURATION = Histogram("http_request_duration_seconds", "HTTP request duration")
ERROR_COUNT = Counter("http_errors_total", "Total HTTP errors", ["error_code", "status_code"])

SLOW_REQUEST_SECONDS = 1.0

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "development" else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("chapa-relay")


def iso_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting up Chapa relay...")
    if not settings.CHAPA_SECRET_KEY:
        logger.warning("CHAPA_SECRET_KEY is not loaded; provider calls will be rejected")
    app.state.chapa_client = ChapaClient(
        secret_key=settings.CHAPA_SECRET_KEY,
        callback_url=settings.callback_url,
        return_url=settings.return_url,
        base_url=settings.CHAPA_BASE_URL,
        currency=settings.CURRENCY,
        timeout=settings.CHAPA_TIMEOUT,
    )
    yield
    # Shutdown
    logger.info("Shutting down Chapa relay...")
    await app.state.chapa_client.aclose()


app = FastAPI(
    title="Chapa Payment Gateway API",
    description="Relay for Chapa payment initialization, verification and webhooks",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan,
)

# Tracing middleware
app.add_middleware(RequestTracingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = time.time() - start_time
    # Label by route template so per-tx_ref paths share one series
    endpoint = getattr(request.scope.get("route"), "path", "unmatched")
    REQUEST_DURATION.observe(process_time)
    REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
    response.headers["X-Process-Time"] = str(process_time)

    if process_time > SLOW_REQUEST_SECONDS:
        logger.warning(
            "Slow request detected: %s %s took %.2fs (trace_id: %s)",
            request.method,
            request.url.path,
            process_time,
            getattr(request.state, "trace_id", None),
        )
    else:
        logger.info("%s %s - %s - %.3fs", request.method, request.url.path, response.status_code, process_time)

    return response


# Exception handlers
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    ERROR_COUNT.labels(error_code=exc.error_code.value, status_code=exc.status_code).inc()

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.render()).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    ERROR_COUNT.labels(error_code="HTTP_ERROR", status_code=exc.status_code).inc()

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    ERROR_COUNT.labels(error_code="UNHANDLED_ERROR", status_code=500).inc()
    logger.exception("Unhandled exception occurred")

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="An unexpected error occurred").model_dump(),
    )


@app.get("/")
async def root():
    return {
        "message": "Chapa Payment Gateway API",
        "status": "running",
        "timestamp": iso_timestamp(),
    }


@app.get("/health")
async def health_check():
    return {
        "status": "OK",
        "service": "Chapa Payment Gateway",
        "timestamp": iso_timestamp(),
    }


@app.get("/metrics")
async def get_metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/close-webview", include_in_schema=False)
async def close_webview():
    """Page Chapa redirects to after checkout; closes the embedded browser view"""
    return FileResponse(Path(settings.STATIC_DIR) / "close.html", media_type="text/html")


# Include API router
app.include_router(api_router, prefix="/api")

app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")


if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
