from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forum.db.models import Topic, utcnow

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255
MAX_USER_ID_LENGTH = 64


class ErrorKind(str, enum.Enum):
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class ServiceResult:
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> ServiceResult:
        return cls()

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> ServiceResult:
        return cls(error=ServiceError(kind=kind, message=message))


class TopicService(Protocol):
    """Business operations on topics.

    Implementations report failures through the returned ``ServiceResult``
    instead of raising. Methods may be coroutines or plain functions.
    """

    def create_topic(
        self, topic_id: UUID, user_id: str, title: str, content: str
    ) -> ServiceResult | Awaitable[ServiceResult]: ...

    def update_topic(
        self, user_id: str, title: str, content: str, topic_id: UUID | None = None
    ) -> ServiceResult | Awaitable[ServiceResult]: ...

    def delete_topic(self, topic_id: UUID) -> ServiceResult | Awaitable[ServiceResult]: ...


def validate_topic_fields(user_id: str, title: str) -> str | None:
    if not user_id.strip():
        return "User id is required"
    if len(user_id) > MAX_USER_ID_LENGTH:
        return f"User id must be at most {MAX_USER_ID_LENGTH} characters"
    if not title.strip():
        return "Title is required"
    if len(title) > MAX_TITLE_LENGTH:
        return f"Title must be at most {MAX_TITLE_LENGTH} characters"
    return None


class SqlTopicService:
    """TopicService backed by the ``topics`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_topic(self, topic_id: UUID, user_id: str, title: str, content: str) -> ServiceResult:
        problem = validate_topic_fields(user_id, title)
        if problem:
            return ServiceResult.failure(ErrorKind.INVALID, problem)

        now = utcnow()
        topic = Topic(id=topic_id, user_id=user_id, title=title, content=content, created_at=now, updated_at=now)
        try:
            async with self._session_factory() as session:
                session.add(topic)
                await session.commit()
        except IntegrityError:
            return ServiceResult.failure(ErrorKind.CONFLICT, f"Topic {topic_id} already exists")
        except SQLAlchemyError as exc:
            logger.exception("Failed to create topic %s", topic_id)
            return ServiceResult.failure(ErrorKind.INTERNAL, str(exc))
        logger.info("Created topic %s for user %s", topic_id, user_id)
        return ServiceResult.success()

    async def update_topic(
        self, user_id: str, title: str, content: str, topic_id: UUID | None = None
    ) -> ServiceResult:
        problem = validate_topic_fields(user_id, title)
        if problem:
            return ServiceResult.failure(ErrorKind.INVALID, problem)

        stmt = select(Topic).where(Topic.user_id == user_id)
        if topic_id is not None:
            stmt = stmt.where(Topic.id == topic_id)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt.limit(2))
                topics = result.scalars().all()
                if not topics:
                    return ServiceResult.failure(ErrorKind.NOT_FOUND, "Topic not found")
                if len(topics) > 1:
                    # Only reachable without topic_id: the user owns several topics.
                    return ServiceResult.failure(
                        ErrorKind.CONFLICT,
                        f"User {user_id} has more than one topic; use PUT /topic/{{id}}",
                    )
                topic = topics[0]
                updated_id = topic.id
                topic.title = title
                topic.content = content
                topic.updated_at = utcnow()
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to update topic for user %s", user_id)
            return ServiceResult.failure(ErrorKind.INTERNAL, str(exc))
        logger.info("Updated topic %s for user %s", updated_id, user_id)
        return ServiceResult.success()

    async def delete_topic(self, topic_id: UUID) -> ServiceResult:
        try:
            async with self._session_factory() as session:
                topic = await session.get(Topic, topic_id)
                if topic is None:
                    return ServiceResult.failure(ErrorKind.NOT_FOUND, "Topic not found")
                await session.delete(topic)
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to delete topic %s", topic_id)
            return ServiceResult.failure(ErrorKind.INTERNAL, str(exc))
        logger.info("Deleted topic %s", topic_id)
        return ServiceResult.success()
