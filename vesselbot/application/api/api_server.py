from typing import Optional
from fastapi import FastAPI
import structlog

from vesselbot.application.api.route.webhook import router as webhook_router
from vesselbot.application.runtime import BotRuntime
from vesselbot.infrastructure.config.settings import Settings, get_settings
from vesselbot.infrastructure.observability.logging import setup_logging

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, runtime: Optional[BotRuntime] = None) -> FastAPI:
    """Build the webhook application around one BotRuntime"""

    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format, settings.service_name, settings.environment)

    app = FastAPI(title="Vessel Data WhatsApp Assistant")
    app.state.runtime = runtime or BotRuntime(settings)
    app.include_router(webhook_router)

    @app.on_event("startup")
    async def startup_event():
        """Load the vessel directory and start the session sweeper"""
        await app.state.runtime.start()
        logger.info("Webhook server started")

    @app.on_event("shutdown")
    async def shutdown_event():
        await app.state.runtime.stop()
        logger.info("Webhook server shutdown")

    return app


def main():
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
