import os
import sys

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from forum.db.base import Base
from forum.main import create_app
from forum.services.topics import ServiceResult


class RecordingTopicService:
    """Collaborator double: records every call, then returns ``result`` or raises ``error``."""

    def __init__(self):
        self.calls = []
        self.result = ServiceResult.success()
        self.error = None

    async def _record(self, name, args, kwargs):
        self.calls.append((name, args, kwargs))
        if self.error is not None:
            raise self.error
        return self.result

    async def create_topic(self, *args, **kwargs):
        return await self._record("create_topic", args, kwargs)

    async def update_topic(self, *args, **kwargs):
        return await self._record("update_topic", args, kwargs)

    async def delete_topic(self, *args, **kwargs):
        return await self._record("delete_topic", args, kwargs)


@pytest.fixture
def service():
    return RecordingTopicService()


@pytest_asyncio.fixture
async def client(service):
    app = create_app(service=service)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()
