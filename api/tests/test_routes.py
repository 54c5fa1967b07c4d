import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from forum.api.routers.topics import TopicEndpoint, build_router, route_table
from forum.services.topics import ErrorKind, ServiceResult

TOPIC_ID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"
PAYLOAD = {"userId": "u1", "title": "Hello", "content": "World"}


def test_route_table(service):
    endpoint = TopicEndpoint(service)
    table = [(route.method, route.path, route.handler.__name__) for route in route_table(endpoint)]
    assert table == [
        ("POST", "/topic", "create"),
        ("PUT", "/topic", "update"),
        ("PUT", "/topic/{topic_id}", "update_by_id"),
        ("DELETE", "/topic/{topic_id}", "delete"),
    ]


def test_build_router_registers_every_route(service):
    router = build_router(TopicEndpoint(service))
    registered = {(method, route.path) for route in router.routes for method in route.methods}
    assert registered == {
        ("POST", "/topic"),
        ("PUT", "/topic"),
        ("PUT", "/topic/{topic_id}"),
        ("DELETE", "/topic/{topic_id}"),
    }


def test_status_for():
    lenient = TopicEndpoint(object())
    strict = TopicEndpoint(object(), strict_errors=True)
    assert {lenient.status_for(kind) for kind in ErrorKind} == {500}
    assert strict.status_for(ErrorKind.INVALID) == 400
    assert strict.status_for(ErrorKind.NOT_FOUND) == 404
    assert strict.status_for(ErrorKind.CONFLICT) == 409
    assert strict.status_for(ErrorKind.INTERNAL) == 500


@pytest.fixture
def strict_app(service):
    app = FastAPI()
    app.include_router(build_router(TopicEndpoint(service, strict_errors=True)))
    return app


@pytest.mark.asyncio
async def test_strict_mapping(strict_app, service):
    async with AsyncClient(transport=ASGITransport(app=strict_app), base_url="http://test") as client:
        service.result = ServiceResult.failure(ErrorKind.NOT_FOUND, "Topic not found")
        not_found = await client.delete(f"/topic/{TOPIC_ID}")

        service.result = ServiceResult.failure(ErrorKind.CONFLICT, "ambiguous")
        conflict = await client.put("/topic", json=PAYLOAD)

        service.result = ServiceResult.success()
        invalid = await client.post("/topic", json={"userId": "u1"})

        service.error = RuntimeError("db down")
        fault = await client.post("/topic", json=PAYLOAD)

    assert not_found.status_code == 404
    assert not_found.text == "Error deleting topic: Topic not found"
    assert conflict.status_code == 409
    assert conflict.text == "Error updating topic: ambiguous"
    assert invalid.status_code == 400
    assert invalid.text.startswith("Error creating topic: ")
    assert fault.status_code == 500
    assert fault.text == "Error creating topic: db down"


@pytest.mark.asyncio
async def test_strict_mapping_success_unchanged(strict_app):
    async with AsyncClient(transport=ASGITransport(app=strict_app), base_url="http://test") as client:
        created = await client.post("/topic", json=PAYLOAD)
        deleted = await client.delete(f"/topic/{TOPIC_ID}")
    assert created.status_code == 201
    assert deleted.status_code == 200


@pytest.mark.asyncio
async def test_openapi_documents_topic_body(client):
    resp = await client.get("/openapi.json")
    paths = resp.json()["paths"]

    for path, method in (("/topic", "post"), ("/topic", "put"), ("/topic/{topic_id}", "put")):
        body = paths[path][method]["requestBody"]
        schema = body["content"]["application/json"]["schema"]
        assert set(schema["properties"]) == {"userId", "title", "content"}
        assert set(schema["required"]) == {"userId", "title", "content"}
    assert "requestBody" not in paths["/topic/{topic_id}"]["delete"]
