"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from trainingpulse import __version__
from trainingpulse.api import build_router
from trainingpulse.core.config import Settings, get_settings
from trainingpulse.core.logging import get_logger

logger = get_logger(__name__)


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or get_settings()
    app = FastAPI(
        title="TrainingPulse",
        description="Course production tracking: courses, phases, workflows, teams and notifications",
        version=__version__,
    )

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(content={"status": "ok"}, status_code=200)

    @app.get(f"{config.api_prefix}/config")
    async def client_config() -> dict:
        """Feature flags and upload limits the client needs before login."""
        return {
            "data": {
                "apiVersion": config.API_VERSION,
                "features": {
                    "analytics": config.ENABLE_ANALYTICS,
                    "bulkOperations": config.ENABLE_BULK_OPERATIONS,
                    "notifications": config.ENABLE_NOTIFICATIONS,
                    "workflows": config.ENABLE_WORKFLOWS,
                },
                "uploads": {
                    "maxBytes": config.MAX_UPLOAD_BYTES,
                    "allowedTypes": config.allowed_upload_types,
                },
            }
        }

    app.include_router(build_router(config), prefix=config.api_prefix)
    logger.info(f"TrainingPulse API mounted at {config.api_prefix} (env={config.TRAININGPULSE_ENV})")
    return app


app = create_app()
