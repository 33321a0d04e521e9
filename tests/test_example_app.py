"""
End-to-end test of the development server, lifespan included.
"""

import pytest

from restful.core.config import settings


@pytest.mark.asyncio
async def test_dev_server_serves_greetings(monkeypatch, tmp_path, client_for):
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'dev.db'}")

    from examples.dev_server.app import app

    async with app.router.lifespan_context(app):
        client = client_for(app)

        refused = await client.post("/api/greetings", json={"message": "hi"})
        created = await client.post(
            "/api/greetings",
            json={"message": "hello", "recipient": "world"},
            headers={"X-Api-Key": "hello"},
        )
        listed = await client.get("/api/greetings")
        retrieved = await client.get(f"/api/greetings/{created.json()['id']}")
        missing = await client.get("/api/nothing-here")

    assert refused.status_code == 401
    assert created.status_code == 201
    assert created.json()["recipient"] == "world"
    assert [greeting["message"] for greeting in listed.json()] == ["hello"]
    assert retrieved.json()["created_at"] == created.json()["created_at"]
    assert missing.status_code == 404
