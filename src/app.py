"""Pickup order API.

Wires settings → channel adapters → notification dispatcher → status engine
(with the order-ready notifier) → routers. Services open their own domain
contexts, so requests need no per-route domain middleware.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from notifications.api.routes import router as notifications_router
from notifications.channel import ChannelSet, build_channels
from notifications.config import NotificationSettings
from notifications.domain import notifications
from notifications.notification.dispatcher import NotificationDispatcher
from notifications.notification.ordering_events import make_order_ready_notifier
from ordering.api.routes import business_router, order_router
from ordering.domain import ordering
from ordering.order.protean_store import ProteanOrderStore
from ordering.order.status_engine import StatusTransitionEngine

from shared.db import setup_db
from shared.logging import add_context, clear_context, configure_logging

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV controls which config overlay is applied.
ordering.init()
notifications.init()
setup_db(ordering)
setup_db(notifications)


def create_app(settings: NotificationSettings | None = None, channels: ChannelSet | None = None) -> FastAPI:
    settings = settings or NotificationSettings.from_env()
    channels = channels if channels is not None else build_channels(settings)

    dispatcher = NotificationDispatcher(channels, settings, domain=notifications)
    store = ProteanOrderStore(domain=ordering)
    engine = StatusTransitionEngine(
        store,
        notifier=make_order_ready_notifier(dispatcher, locale=settings.default_locale),
    )

    app = FastAPI(
        title="Pickup Orders API",
        description="Order status lifecycle and customer notifications",
    )
    app.state.settings = settings
    app.state.order_store = store
    app.state.status_engine = engine
    app.state.notification_dispatcher = dispatcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging_context(request: Request, call_next):
        """Bind a request id to every log line written while serving the request."""
        clear_context()
        add_context(request_id=request.headers.get("x-request-id") or uuid4().hex, path=request.url.path)
        try:
            return await call_next(request)
        finally:
            clear_context()

    app.include_router(order_router)
    app.include_router(business_router)
    app.include_router(notifications_router)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "domains": {
                    "ordering": {"name": ordering.name},
                    "notifications": {"name": notifications.name},
                },
                "channels": {
                    "email": channels.email is not None,
                    "sms": channels.sms is not None,
                    "telegram": channels.telegram is not None,
                },
            }
        )

    logger.info(
        "app_created",
        email_configured=channels.email is not None,
        sms_configured=channels.sms is not None,
        telegram_configured=channels.telegram is not None,
    )
    return app


def _build_default_app() -> FastAPI:
    configure_logging()
    return create_app()


app = _build_default_app()
