"""
ErrorHandler tests.
"""

import pytest
from fastapi import FastAPI

from restful import ErrorHandler, HttpError, NotFoundError, RestController
from restful.core.exceptions import setup_exception_handlers


class TeapotError(Exception):
    status = 418


def error_app(environment: str) -> FastAPI:
    app = FastAPI()
    app.state.environment = environment

    @app.get("/not-found")
    async def not_found():
        raise NotFoundError("Missing thing")

    @app.get("/teapot")
    async def teapot():
        raise TeapotError("short and stout")

    @app.get("/crash")
    async def crash():
        raise RuntimeError("database exploded")

    @app.get("/silent")
    async def silent():
        raise HttpError("", status_code=409)

    @app.get("/details")
    async def details():
        raise HttpError("Conflict", status_code=409, details={"field": "slug"})

    setup_exception_handlers(app)
    return app


@pytest.mark.asyncio
async def test_typed_error_uses_its_status(client_for):
    client = client_for(error_app("development"))

    response = await client.get("/not-found")

    assert response.status_code == 404
    assert response.json()["error"] == "Missing thing"


@pytest.mark.asyncio
async def test_status_attribute_is_honoured(client_for):
    client = client_for(error_app("development"))

    response = await client.get("/teapot")

    assert response.status_code == 418
    assert response.json()["error"] == "short and stout"


@pytest.mark.asyncio
async def test_unknown_error_is_internal_server_error(client_for):
    client = client_for(error_app("development"))

    response = await client.get("/crash")

    assert response.status_code == 500
    assert response.json()["error"] == "database exploded"


@pytest.mark.asyncio
async def test_development_includes_stack(client_for):
    client = client_for(error_app("development"))

    response = await client.get("/crash")

    stack = response.json()["stack"]
    assert "Traceback" in stack
    assert "RuntimeError: database exploded" in stack


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/not-found", "/teapot", "/crash", "/silent", "/details"])
async def test_production_never_includes_stack(client_for, path):
    client = client_for(error_app("production"))

    response = await client.get(path)

    assert "stack" not in response.json()


@pytest.mark.asyncio
async def test_empty_message_omits_error(client_for):
    client = client_for(error_app("production"))

    response = await client.get("/silent")

    assert response.status_code == 409
    assert response.json() == {}


@pytest.mark.asyncio
async def test_details_are_included(client_for):
    client = client_for(error_app("production"))

    response = await client.get("/details")

    assert response.json() == {"error": "Conflict", "details": {"field": "slug"}}


@pytest.mark.asyncio
async def test_framework_errors_use_the_same_body(client_for):
    client = client_for(error_app("production"))

    response = await client.post("/crash")

    assert response.status_code == 405
    assert response.json() == {"error": "Method Not Allowed"}
    assert response.headers["allow"] == "GET"


@pytest.mark.asyncio
async def test_app_settings_drive_stack_traces(build_app, client_for):
    production = client_for(build_app([{"controller": RestController("things")}], ENVIRONMENT="production"))
    development = client_for(build_app([{"controller": RestController("things")}]))

    hidden = await production.get("/api/things")
    shown = await development.get("/api/things")

    assert hidden.status_code == shown.status_code == 405
    assert "stack" not in hidden.json()
    assert "MethodNotAllowed" in shown.json()["stack"]


def test_explicit_environment_overrides_app_state():
    app = FastAPI()
    app.state.environment = "development"

    assert ErrorHandler(app, environment="production").is_production is True
    assert ErrorHandler(app).is_production is False


def test_status_for_ignores_invalid_codes():
    error = RuntimeError("x")
    error.status_code = "bad"

    assert ErrorHandler.status_for(error) == 500
