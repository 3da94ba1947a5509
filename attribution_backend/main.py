"""
FastAPI application main module.
Event-based attribution analytics API with request context logging and
consistent error envelopes.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import time
import uuid
from contextlib import asynccontextmanager
from attribution_backend.api.v1 import api_router
from attribution_backend.config import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from attribution_backend.database import Base, SessionLocal, engine
from attribution_backend.exceptions import ConfigurationError, ShopNotFoundError
from attribution_backend.utils import setup_logging, get_logger

# Setup logging before creating the app
setup_logging(
    log_level=LOG_LEVEL,
    log_file=LOG_FILE,
    enable_console=True
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates tables on startup (no-op when they already exist).
    """
    logger.info("Application startup initiated")
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
        yield
    except Exception as e:  # pragma: no cover
        logger.error("Application startup failed", error=str(e), exc_info=True)
        raise
    finally:
        logger.info("Application shutdown completed")

app = FastAPI(
    title="Event-Based Attribution API",
    description="""
    Multi-touch attribution of e-commerce orders to marketing channels,
    campaigns and ads, joined with ad platform spend.

    ## Attribution models
    * **first_click** / **last_click** - full credit to one touchpoint
    * **last_paid_click** - last paid touchpoint, falling back to last click
    * **linear_all** / **linear_paid** - credit split across channels, ads and repeats
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

@app.middleware("http")
async def add_request_context_and_logging(request: Request, call_next):
    """
    Add request ID, timing, and request/response logging.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    request.state.start_time = time.time()

    logger.info(
        "Request started",
        method=request.method,
        url=str(request.url),
        remote_addr=request.client.host if request.client else "unknown",
        request_id=request_id
    )

    response = await call_next(request)

    process_time = time.time() - request.state.start_time
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))
    response.headers["X-Content-Type-Options"] = "nosniff"

    logger.info(
        "Request completed",
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        process_time_ms=round(process_time * 1000, 2),
        request_id=request_id
    )

    return response

def _error_response(request: Request, status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "request_id": getattr(request.state, "request_id", "unknown"),
            **extra,
        }
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    logger.warning(
        "Request validation failed",
        errors=exc.errors(),
        request_id=getattr(request.state, "request_id", "unknown"),
        url=str(request.url),
    )
    return _error_response(request, 422, "Request validation failed", details=exc.errors())

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=getattr(request.state, "request_id", "unknown"),
        url=str(request.url),
    )
    return _error_response(request, exc.status_code, str(exc.detail))

@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(request: Request, exc: ConfigurationError):
    """Invalid attribution request (model, level, channel, date range)."""
    logger.warning(
        "Invalid attribution request",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=getattr(request.state, "request_id", "unknown"),
        url=str(request.url),
    )
    return _error_response(request, 400, str(exc))

@app.exception_handler(ShopNotFoundError)
async def shop_not_found_handler(request: Request, exc: ShopNotFoundError):
    logger.warning(
        "Shop not found",
        account_id=exc.account_id,
        request_id=getattr(request.state, "request_id", "unknown"),
    )
    return _error_response(request, 404, str(exc))

@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Upstream data store failures: never answer with partial aggregates."""
    logger.error(
        "Data store failure",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=getattr(request.state, "request_id", "unknown"),
        url=str(request.url),
        exc_info=True
    )
    return _error_response(request, 503, "Analytics data store unavailable")

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=getattr(request.state, "request_id", "unknown"),
        url=str(request.url),
        method=request.method,
        exc_info=True
    )
    return _error_response(request, 500, "Internal server error")

@app.get("/health", tags=["health"], summary="Basic health check")
async def health_check():
    """Basic health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "service": "event-attribution-api",
        "version": "1.0.0",
        "timestamp": time.time(),
    }

@app.get("/health/detailed", tags=["health"], summary="Detailed health check")
async def detailed_health_check():
    """Health check including database connectivity."""
    health_status = {
        "status": "healthy",
        "service": "event-attribution-api",
        "version": "1.0.0",
        "timestamp": time.time(),
        "checks": {}
    }
    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        health_status["checks"]["database"] = "healthy"
    except SQLAlchemyError as e:
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"
    return health_status

@app.get("/", tags=["root"])
async def root():
    """API root endpoint with basic information."""
    return {
        "message": "Event-Based Attribution API",
        "version": "1.0.0",
        "documentation": "/docs",
        "health_check": "/health",
        "api_base": "/api/v1"
    }

app.include_router(api_router, prefix="/api/v1")

# Development server configuration
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting development server")

    uvicorn.run(
        "attribution_backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["attribution_backend"],
        log_level="info",
        access_log=True
    )
