"""
Access log tests.
"""

import logging

import pytest


def access_records(caplog):
    return [record for record in caplog.records if record.name == "restful.access"]


@pytest.mark.asyncio
async def test_successful_requests_are_logged_in_development(build_app, client_for, note_controller, caplog):
    client = client_for(build_app([{"controller": note_controller}]))
    caplog.set_level(logging.INFO, logger="restful.access")

    await client.get("/api/notes")

    [record] = access_records(caplog)
    assert record.status_code == 200
    assert record.getMessage().startswith("GET /api/notes 200")


@pytest.mark.asyncio
@pytest.mark.parametrize("environment", ["development", "production"])
async def test_unhandled_errors_are_logged_as_500(build_app, client_for, note_controller, caplog, environment):
    client = client_for(build_app([{"controller": note_controller}], ENVIRONMENT=environment))
    caplog.set_level(logging.INFO, logger="restful.access")

    # title is NOT NULL, the driver error reaches the error handler unchanged
    response = await client.post("/api/notes", json={"body": "untitled"})

    assert response.status_code == 500
    [record] = access_records(caplog)
    assert record.method == "POST"
    assert record.path == "/api/notes"
    assert record.status_code == 500
    assert record.duration_ms >= 0


@pytest.mark.asyncio
async def test_production_skips_successful_requests(build_app, client_for, note_controller, caplog):
    client = client_for(build_app([{"controller": note_controller}], ENVIRONMENT="production"))
    caplog.set_level(logging.INFO, logger="restful.access")

    await client.get("/api/notes")
    await client.get("/api/notes/404")

    assert [record.status_code for record in access_records(caplog)] == [404]
