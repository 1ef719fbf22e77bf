"""
Main FastAPI application
Nokhba Academy: gated video lessons, timed quizzes, wallet codes and an AI assistant
"""
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import logging
import time

from nokhba.config import settings
from nokhba.database import SessionLocal, init_db
from nokhba.api import chat, codes, lessons, quizzes, stream, users, wallet
from nokhba.services.exceptions import PortalError
from nokhba.services.quiz_timer import auto_submit_scheduler
from nokhba.utils.cache import cache_service
from nokhba.utils.rate_limiter import rate_limiter

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

UNLIMITED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}
UNLIMITED_PREFIXES = ("/api/stream",)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Backend for an Arabic e-learning portal with quiz-gated lessons",
    docs_url="/docs",
    redoc_url="/redoc"
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
    """Global request budget per client; long-lived streams are exempt"""
    path = request.url.path
    if path in UNLIMITED_PATHS or path.startswith(UNLIMITED_PREFIXES):
        return await call_next(request)

    try:
        await rate_limiter.check_rate_limit(request)
    except HTTPException as e:
        return JSONResponse(status_code=e.status_code, content=e.detail)

    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {elapsed:.3f}s"
    )
    return response


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    """Domain errors raised by the services carry their own status code"""
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "http_error",
            "message": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "حدث خطأ غير متوقع. يرجى المحاولة لاحقاً.",
            "detail": str(exc) if settings.DEBUG else None
        }
    )


def _database_ok() -> bool:
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False
    finally:
        db.close()


@app.get("/health")
async def health_check():
    """
    Service status for monitoring

    Redis is optional; the service is degraded only when the database is down.
    """
    database = _database_ok()
    return {
        "status": "healthy" if database else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": database,
        "cache": cache_service.redis_client is not None,
        "pending_quiz_timers": auto_submit_scheduler.pending(),
        "timestamp": time.time()
    }


@app.get("/")
async def root():
    return {
        "message": f"{settings.ACADEMY_NAME} API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


for module in (users, lessons, quizzes, codes, wallet, chat, stream):
    app.include_router(module.router)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop pending quiz timers; expired attempts are submitted lazily on next access"""
    auto_submit_scheduler.cancel_all()
    logger.info("Shutting down application")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "nokhba.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
