from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, NamedTuple
from uuid import UUID, uuid4

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from forum.schemas.topic import TopicDTO
from forum.services.topics import ErrorKind, ServiceError, ServiceResult, TopicService

logger = structlog.get_logger("forum.topics")

STRICT_STATUS = {
    ErrorKind.INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# operation -> (success message, failure prefix)
MESSAGES = {
    "create": ("Topic created successfully", "Error creating topic"),
    "update": ("Topic updated successfully", "Error updating topic"),
    "delete": ("Topic deleted successfully", "Error deleting topic"),
}


class Route(NamedTuple):
    method: str
    path: str
    handler: Callable[..., Awaitable[PlainTextResponse]]
    takes_body: bool = False


async def _invoke(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    outcome = func(*args, **kwargs)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome


async def _read_payload(request: Request) -> TopicDTO:
    return TopicDTO.model_validate_json(await request.body())


class TopicEndpoint:
    """HTTP handlers for topic create/update/delete.

    Each handler makes exactly one call on the injected service and never lets
    a failure escape: failed results, raised exceptions and unreadable bodies
    all become an error response. Without ``strict_errors`` every failure is
    a 500; with it the error kind picks the status (see ``STRICT_STATUS``).
    """

    def __init__(self, service: TopicService, *, strict_errors: bool = False) -> None:
        self._service = service
        self._strict_errors = strict_errors

    async def create(self, request: Request) -> PlainTextResponse:
        topic_id = None
        try:
            payload = await _read_payload(request)
            topic_id = uuid4()
            outcome = await _invoke(
                self._service.create_topic, topic_id, payload.user_id, payload.title, payload.content
            )
        except Exception as exc:
            return self._fail("create", exc)
        return self._respond("create", outcome, status.HTTP_201_CREATED, topic_id=topic_id)

    async def update(self, request: Request) -> PlainTextResponse:
        try:
            payload = await _read_payload(request)
            outcome = await _invoke(self._service.update_topic, payload.user_id, payload.title, payload.content)
        except Exception as exc:
            return self._fail("update", exc)
        return self._respond("update", outcome, status.HTTP_200_OK)

    async def update_by_id(self, topic_id: UUID, request: Request) -> PlainTextResponse:
        try:
            payload = await _read_payload(request)
            outcome = await _invoke(
                self._service.update_topic, payload.user_id, payload.title, payload.content, topic_id=topic_id
            )
        except Exception as exc:
            return self._fail("update", exc, topic_id=topic_id)
        return self._respond("update", outcome, status.HTTP_200_OK, topic_id=topic_id)

    async def delete(self, topic_id: UUID) -> PlainTextResponse:
        try:
            outcome = await _invoke(self._service.delete_topic, topic_id)
        except Exception as exc:
            return self._fail("delete", exc, topic_id=topic_id)
        return self._respond("delete", outcome, status.HTTP_200_OK, topic_id=topic_id)

    def _respond(
        self, operation: str, outcome: Any, success_status: int, topic_id: UUID | None = None
    ) -> PlainTextResponse:
        if isinstance(outcome, ServiceResult) and outcome.error is not None:
            return self._error_response(operation, outcome.error, topic_id)
        logger.info("topic_request_succeeded", operation=operation, topic_id=str(topic_id) if topic_id else None)
        return PlainTextResponse(MESSAGES[operation][0], status_code=success_status)

    def _fail(self, operation: str, exc: Exception, topic_id: UUID | None = None) -> PlainTextResponse:
        kind = ErrorKind.INVALID if isinstance(exc, ValidationError) else ErrorKind.INTERNAL
        return self._error_response(operation, ServiceError(kind=kind, message=str(exc)), topic_id)

    def _error_response(self, operation: str, error: ServiceError, topic_id: UUID | None) -> PlainTextResponse:
        status_code = self.status_for(error.kind)
        logger.warning(
            "topic_request_failed",
            operation=operation,
            kind=error.kind.value,
            error=error.message,
            status_code=status_code,
            topic_id=str(topic_id) if topic_id else None,
        )
        return PlainTextResponse(f"{MESSAGES[operation][1]}: {error.message}", status_code=status_code)

    def status_for(self, kind: ErrorKind) -> int:
        if not self._strict_errors:
            return status.HTTP_500_INTERNAL_SERVER_ERROR
        return STRICT_STATUS[kind]


def route_table(endpoint: TopicEndpoint) -> list[Route]:
    return [
        Route("POST", "/topic", endpoint.create, takes_body=True),
        Route("PUT", "/topic", endpoint.update, takes_body=True),
        Route("PUT", "/topic/{topic_id}", endpoint.update_by_id, takes_body=True),
        Route("DELETE", "/topic/{topic_id}", endpoint.delete),
    ]


def topic_request_body() -> dict[str, Any]:
    # Handlers parse the body themselves, so FastAPI cannot infer this.
    return {
        "required": True,
        "content": {"application/json": {"schema": TopicDTO.model_json_schema(by_alias=True)}},
    }


def build_router(endpoint: TopicEndpoint) -> APIRouter:
    router = APIRouter(tags=["topics"])
    for route in route_table(endpoint):
        router.add_api_route(
            route.path,
            route.handler,
            methods=[route.method],
            response_class=PlainTextResponse,
            name=f"topic_{route.handler.__name__}",
            openapi_extra={"requestBody": topic_request_body()} if route.takes_body else None,
        )
    return router
