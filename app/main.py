import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.shopdesk.api import api_router
from app.shopdesk.core.config import settings
from app.shopdesk.core.errors import setup_exception_handlers
from app.shopdesk.core.logging import configure_logging, log_json
from app.shopdesk.middleware.observability import ObservabilityMiddleware
from app.shopdesk.middleware.tenant import TenantContextMiddleware
from app.shopdesk.middleware.trace import TraceIdMiddleware
from app.shopdesk.services.whatsapp import BridgeStatusPoller, WhatsAppBridgeClient

logger = logging.getLogger("shopdesk.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = WhatsAppBridgeClient.from_settings(settings)
    app.state.whatsapp_client = client
    app.state.whatsapp_poller = None
    if settings.WHATSAPP_POLL_ENABLED:
        poller = BridgeStatusPoller(client, interval_seconds=settings.WHATSAPP_POLL_INTERVAL_SECONDS)
        poller.start()
        app.state.whatsapp_poller = poller
        log_json(logger, {"event": "whatsapp_poller_started", "interval_seconds": poller.interval_seconds})
    try:
        yield
    finally:
        if app.state.whatsapp_poller is not None:
            app.state.whatsapp_poller.stop()
            log_json(logger, {"event": "whatsapp_poller_stopped", "polls": app.state.whatsapp_poller.polls})
        app.state.whatsapp_client = None
        client.close()


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.add_middleware(TenantContextMiddleware)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
