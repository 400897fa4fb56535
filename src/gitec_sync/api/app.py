"""
Main FastAPI application for the Gitec sync.
"""

import logging
import math
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..core.bootstrap import SyncServices, bootstrap
from ..core.config import get_allowed_origins, get_optional_env, load_settings
from ..exceptions import ConfigurationError, GitecSyncError, StorageError
from ..models.config import SyncInterval
from ..models.sync import ChangeType, StartResult
from ..version import __version__

logger = logging.getLogger(__name__)


class ScheduleUpdate(BaseModel):
    """Request body for changing the recurring schedule."""
    enabled: bool = Field(..., description="Whether automatic syncs run")
    interval: Optional[SyncInterval] = Field(None, description="New interval; keeps the current one if omitted")


def create_app(services: Optional[SyncServices] = None) -> FastAPI:
    """
    Create the API application.

    Args:
        services: Pre-wired services. If None, they are bootstrapped from the
            environment at startup and shut down with the application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        owned = False
        if app.state.services is None:
            app.state.services = bootstrap(load_settings())
            owned = True
        logger.info("Application startup complete")

        yield

        if owned:
            app.state.services.shutdown(wait=False)
        logger.info("Application shutdown")

    app = FastAPI(
        title="Gitec Product Sync API",
        description="Synchronizes the local product catalog with the Gitec catalog",
        version=__version__,
        lifespan=lifespan
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GitecSyncError)
    async def sync_error_handler(request: Request, exc: GitecSyncError):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        status_code = 400 if isinstance(exc, ConfigurationError) else 500
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    # Dependency injection
    def get_services(request: Request) -> SyncServices:
        if request.app.state.services is None:
            raise HTTPException(status_code=500, detail="Sync services not initialized")
        return request.app.state.services

    @app.get("/health")
    async def health_check(request: Request):
        """Check the health of the application and its services."""
        services = request.app.state.services
        return {
            "status": "healthy",
            "version": __version__,
            "services": {
                "engine": services is not None,
                "sync_running": services.engine.is_running if services else False,
                "auto_sync": services.scheduler.get_schedule()["enabled"] if services else False,
            }
        }

    @app.post("/api/v1/sync", status_code=202)
    def start_sync(services: SyncServices = Depends(get_services)):
        """Start a manual sync in the background."""
        result = services.scheduler.start_sync()
        if result == StartResult.ALREADY_RUNNING:
            return JSONResponse(
                status_code=409,
                content={"status": result.value, "message": "A sync is already running"}
            )
        return {"status": result.value, "message": "Sync is starting..."}

    @app.get("/api/v1/sync/progress")
    def check_progress(services: SyncServices = Depends(get_services)):
        """Poll the progress of the current or last sync."""
        return services.scheduler.check_progress()

    @app.post("/api/v1/sync/auto", status_code=202)
    def auto_sync(services: SyncServices = Depends(get_services)):
        """Hook for an external recurring trigger. Skipped while a sync is running."""
        result = services.scheduler.trigger_auto_sync()
        if result == StartResult.ALREADY_RUNNING:
            return JSONResponse(status_code=200, content={"status": "skipped"})
        return {"status": result.value}

    @app.get("/api/v1/history")
    def list_history(
        change_type: Optional[ChangeType] = None,
        page: int = 1,
        per_page: int = 50,
        services: SyncServices = Depends(get_services)
    ):
        """List change history, newest first."""
        page = max(1, page)
        per_page = max(1, min(200, per_page))
        try:
            total = services.history.count_changes(change_type)
            items = services.history.list_changes(change_type, page=page, per_page=per_page)
        except StorageError as e:
            logger.error(f"Failed to list change history: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        return {
            "items": [item.model_dump(mode="json") for item in items],
            "total": total,
            "page": page,
            "per_page": per_page,
            "pages": math.ceil(total / per_page) if total else 0,
        }

    @app.get("/api/v1/logs")
    def list_logs(limit: int = 100, services: SyncServices = Depends(get_services)):
        """List the most recent operational log entries."""
        try:
            entries = services.oplog.list_logs(limit=max(1, min(1000, limit)))
        except StorageError as e:
            logger.error(f"Failed to list logs: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return {"items": [entry.model_dump(mode="json") for entry in entries]}

    @app.delete("/api/v1/logs")
    def clear_logs(services: SyncServices = Depends(get_services)):
        """Delete all operational log entries."""
        try:
            deleted = services.oplog.clear_logs()
        except StorageError as e:
            logger.error(f"Failed to clear logs: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return {"message": "Logs cleared", "deleted": deleted}

    @app.get("/api/v1/schedule")
    def get_schedule(services: SyncServices = Depends(get_services)):
        """Describe the recurring schedule."""
        return services.scheduler.get_schedule()

    @app.put("/api/v1/schedule")
    def update_schedule(update: ScheduleUpdate, services: SyncServices = Depends(get_services)):
        """Enable, disable or change the recurring schedule."""
        return services.scheduler.configure(enabled=update.enabled, interval=update.interval)

    return app


if __name__ == "__main__":
    import uvicorn
    port = int(get_optional_env("PORT", "8000"))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
