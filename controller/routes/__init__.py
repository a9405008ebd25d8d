"""API routes package."""

from controller.routes.job_routes import router as job_router
from controller.routes.file_routes import router as file_router
from controller.routes.media_routes import router as media_router
from controller.routes.account_routes import router as account_router

__all__ = ["job_router", "file_router", "media_router", "account_router"]
