"""Entry point for the Controller service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from controller.account_pool import register_configured_accounts
from controller.config import CONTROLLER_HOST, CONTROLLER_PORT, EMBEDDED_WORKER, STORAGE_ACCOUNTS
from controller.database import init_database
from controller.service_locator import get_account_pool, get_cache_proxy
from controller.routes.job_routes import router as job_router
from controller.routes.file_routes import router as file_router
from controller.routes.media_routes import router as media_router
from controller.routes.account_routes import router as account_router
from controller.exceptions import (
    DFSException,
    NotFound,
    SourceNotFound,
    PartialDataError,
    DecryptionError,
    BackendAuthError,
    BackendIOError,
    QuotaExceededError,
    ConfigurationError,
    RegistryIntegrityError
)

logger = setup_logging('controller')

app = FastAPI(
    title="ShardVault Controller",
    description="Encrypted chunk distribution engine: ingestion queue, retrieval and media cache",
    version="1.0.0"
)

embedded_worker = None


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Initialize database, register configured accounts and optionally start an in-process worker.
    """
    global embedded_worker

    logger.info("Controller service starting up...")

    init_database()
    logger.info("Database initialized")

    register_configured_accounts(STORAGE_ACCOUNTS)

    purged = get_cache_proxy().purge_expired()
    logger.info(f"Media cache ready, {purged} expired entries purged")

    if EMBEDDED_WORKER:
        from worker.distribution_worker import DistributionWorker, start_worker_thread

        embedded_worker = DistributionWorker(get_account_pool())
        start_worker_thread(embedded_worker)
        logger.info(f"Embedded worker started [worker_id={embedded_worker.worker_id}]")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Stop the embedded worker, if any.
    """
    logger.info("Controller service shutting down...")

    if embedded_worker:
        embedded_worker.stop()
        logger.info("Embedded worker stopped")


def _error_response(request: Request, exc: Exception, status_code: int, code: str, log_error: bool = False):
    request_id = getattr(request.state, 'request_id', 'unknown')
    message = f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
    if log_error:
        logger.error(message, exc_info=True)
    else:
        logger.warning(message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": code}
    )


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "NOT_FOUND")


@app.exception_handler(SourceNotFound)
async def source_not_found_handler(request: Request, exc: SourceNotFound):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "SOURCE_NOT_FOUND")


@app.exception_handler(PartialDataError)
async def partial_data_handler(request: Request, exc: PartialDataError):
    return _error_response(request, exc, status.HTTP_502_BAD_GATEWAY, "PARTIAL_DATA", log_error=True)


@app.exception_handler(DecryptionError)
async def decryption_error_handler(request: Request, exc: DecryptionError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "DECRYPTION_FAILED", log_error=True)


@app.exception_handler(BackendAuthError)
async def backend_auth_handler(request: Request, exc: BackendAuthError):
    return _error_response(request, exc, status.HTTP_502_BAD_GATEWAY, "BACKEND_AUTH_FAILED")


@app.exception_handler(QuotaExceededError)
async def quota_exceeded_handler(request: Request, exc: QuotaExceededError):
    return _error_response(request, exc, status.HTTP_507_INSUFFICIENT_STORAGE, "QUOTA_EXCEEDED", log_error=True)


@app.exception_handler(BackendIOError)
async def backend_io_handler(request: Request, exc: BackendIOError):
    return _error_response(request, exc, status.HTTP_502_BAD_GATEWAY, "BACKEND_IO_FAILED", log_error=True)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return _error_response(request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, "CONFIGURATION_ERROR", log_error=True)


@app.exception_handler(RegistryIntegrityError)
async def registry_integrity_handler(request: Request, exc: RegistryIntegrityError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "REGISTRY_INTEGRITY", log_error=True)


@app.exception_handler(DFSException)
async def dfs_exception_handler(request: Request, exc: DFSException):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", log_error=True)


app.include_router(job_router)
app.include_router(file_router)
app.include_router(media_router)
app.include_router(account_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "ShardVault Controller API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "controller"}


@app.get("/ready")
def ready_check():
    """
    Readiness check endpoint.
    Verifies database access and that at least one storage account is usable.
    """
    from controller.database import get_db_connection
    from controller.repositories.account_repository import AccountRepository

    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1")
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {str(e)}"

    try:
        eligible = AccountRepository.list_eligible()
        accounts_status = "ok" if eligible else "error: no storage accounts configured"
    except Exception as e:
        accounts_status = f"error: {str(e)}"

    ready = db_status == "ok" and accounts_status == "ok"
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "database": db_status,
            "accounts": accounts_status
        }
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "controller.main:app",
        host=CONTROLLER_HOST,
        port=CONTROLLER_PORT
    )


if __name__ == "__main__":
    main()
