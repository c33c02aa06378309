import logging
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urlparse

from fastapi import FastAPI

from fanline.core.config import Settings, load_env, load_settings
from fanline.core.context import AppContext, close_context, open_context
from fanline.routes.chat_sessions import router as chat_sessions_router
from fanline.routes.content import router as content_router
from fanline.routes.health import router as health_router
from fanline.routes.live_streams import router as live_streams_router
from fanline.routes.messages import router as messages_router
from fanline.routes.profiles import router as profiles_router
from fanline.routes.realtime import router as realtime_router
from fanline.routes.subscriptions import router as subscriptions_router
from fanline.routes.tips import router as tips_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, engine=None) -> FastAPI:
    """
    Build the API. Settings come from apps/api/.env unless passed in;
    an engine can be injected (tests), otherwise one is made from DATABASE_URL.
    """
    env_path = None
    if settings is None:
        env_path = load_env()
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Safe debug (no password)
    u = urlparse(settings.database_url)
    if env_path:
        logger.info("env file: %s", env_path)
    logger.info("db host: %s user: %s", u.hostname, u.username)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        close_context(app.state.ctx)

    app = FastAPI(title="Fanline API", version="0.1.0", lifespan=lifespan)

    ctx: AppContext = open_context(settings, engine=engine)
    app.state.ctx = ctx
    if ctx.media_uploader is None:
        logger.info("media storage not configured; uploads disabled")

    app.include_router(health_router)
    app.include_router(profiles_router)
    app.include_router(chat_sessions_router)
    app.include_router(messages_router)
    app.include_router(live_streams_router)
    app.include_router(content_router)
    app.include_router(subscriptions_router)
    app.include_router(tips_router)
    app.include_router(realtime_router)

    return app
