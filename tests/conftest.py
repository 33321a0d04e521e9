"""
Pytest configuration and fixtures.
Provides an in-memory database, a test model and an app/client factory.
"""

from typing import Any, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from restful import Filter, RestController, SQLAlchemyModel, create_app
from restful.core.config import Settings


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class ModelBase(DeclarativeBase):
    pass


class Note(ModelBase):
    __tablename__ = "notes"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(100), nullable=False)
    body = Column(String(500), nullable=True)
    slug = Column(String(100), nullable=True, unique=True)
    done = Column(Boolean, default=False, nullable=False)


class NoteController(RestController):
    prefix = "notes"


class RecordingModel:
    """Model double that records every call it receives."""
    
    model_name = "Recording"
    primary_key = "id"
    
    def __init__(self, document: Optional[Dict[str, Any]] = None):
        self.calls: List[str] = []
        self.document = document or {"id": 1, "title": "recorded"}
    
    async def find(self, filters, skip=None, limit=None):
        self.calls.append("find")
        return [self.document]
    
    async def find_one(self, filters):
        self.calls.append("find_one")
        return self.document
    
    async def find_one_and_update(self, filters, values):
        self.calls.append("find_one_and_update")
        return {**self.document, **values}
    
    async def create(self, data):
        self.calls.append("create")
        return {**self.document, **data}
    
    async def remove(self, filters):
        self.calls.append("remove")
        return 1


class RejectingFilter(Filter):
    """Filter refusing every request with the given error."""
    
    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0
    
    async def can_access(self, request, response):
        self.calls += 1
        raise self.error


class AllowingFilter(Filter):
    def __init__(self):
        self.calls = 0
    
    async def can_access(self, request, response):
        self.calls += 1
        return True


@pytest.fixture(scope="function")
async def session_maker():
    """
    Create a test sessionmaker.
    Uses in-memory SQLite for fast tests.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    
    async with test_engine.begin() as conn:
        await conn.run_sync(ModelBase.metadata.create_all)
    
    yield async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    
    await test_engine.dispose()


@pytest.fixture
def note_model(session_maker):
    return SQLAlchemyModel(Note, session_maker)


@pytest.fixture
def note_controller(note_model):
    controller = NoteController()
    controller.model = note_model
    return controller


@pytest.fixture
def test_settings():
    return Settings(
        ENVIRONMENT="development",
        API_PREFIX="/api",
        RATE_LIMIT_ENABLED=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def build_app(test_settings):
    """Build an app around the given views, with optional settings overrides."""
    def build(views, **overrides):
        settings = test_settings.model_copy(update=overrides) if overrides else test_settings
        return create_app(views, settings=settings)
    return build


@pytest.fixture
async def client_for():
    """
    Create test HTTP clients for apps.
    Application errors are answered by the app instead of raised in the test.
    """
    clients = []
    
    def factory(app):
        client = AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        )
        clients.append(client)
        return client
    
    yield factory
    
    for client in clients:
        await client.aclose()


@pytest.fixture
def notes_client(build_app, client_for, note_controller):
    return client_for(build_app([{"controller": note_controller}]))
