from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from forum.api.routers.topics import TopicEndpoint, build_router
from forum.core.config import settings
from forum.core.logging import configure_logging
from forum.db.session import make_session_factory
from forum.services.topics import SqlTopicService, TopicService

logger = logging.getLogger(__name__)


def create_app(service: TopicService | None = None) -> FastAPI:
    configure_logging(settings.log_level)

    engine = None
    if service is None:
        engine, session_factory = make_session_factory(settings.database_url, echo=settings.database_echo)
        service = SqlTopicService(session_factory)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if settings.strict_error_mapping:
            logger.info("Strict error mapping enabled; topic failures use 4xx where applicable.")
        yield
        if engine is not None:
            await engine.dispose()

    app = FastAPI(title="Forum API", lifespan=lifespan)

    origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    endpoint = TopicEndpoint(service, strict_errors=settings.strict_error_mapping)
    app.include_router(build_router(endpoint))

    @app.get("/")
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
