
import logging
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api.routes import router as channels_router
from .api.ws import router as ws_router
from .api.health import router as health_router
from .api.metrics import router as metrics_router
from .config.settings import Settings, load_settings
from .core.channel_manager import ChannelManager
from .logging_config import configure_logging
from .transport.mqtt import MqttTransport

configure_logging()
logger = logging.getLogger(__name__)


def create_app(manager: Optional[ChannelManager] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the API. Without a manager one is built from settings on startup."""
    if manager is None and settings is None:
        settings = load_settings()
    if settings is not None:
        configure_logging(settings.log_level)

    app = FastAPI(title="telemhub",
                  description="Bounded in-memory sensor history with pub/sub fan-out and HTTP queries",
                  version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins if settings else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(channels_router)
    app.include_router(metrics_router)
    app.include_router(ws_router)

    app.state.manager = manager
    app.state.transport = None

    @app.on_event("startup")
    async def startup_event():
        if app.state.manager is None:
            transport = None
            if settings.mqtt.enabled:
                transport = MqttTransport(settings.mqtt)
                transport.start()
            app.state.transport = transport
            app.state.manager = ChannelManager.from_settings(settings, transport)
        app.state.manager.start()
        logger.info("started %d channel(s)", len(app.state.manager.channels))

    @app.on_event("shutdown")
    async def shutdown_event():
        app.state.manager.stop()
        if app.state.transport is not None:
            app.state.transport.stop()

    return app


def run():
    import uvicorn

    settings = load_settings()
    uvicorn.run(create_app(settings=settings), host=settings.server.host, port=settings.server.port)

# Run: uvicorn telemhub.main:create_app --factory --host 0.0.0.0 --port 3000
