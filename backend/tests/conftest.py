"""
Pytest configuration and fixtures for Linchpin tests.

Tests run against an in-memory SQLite database; the auth dependency is
replaced with a fixed user.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.main import app
from app.auth import AuthenticatedUser, get_current_user
from app.database import get_session
from app.models import Task, TaskDependency, DependencyType


TEST_DATABASE_URL = "sqlite+aiosqlite://"

OWNER_ID = "user-1"
OTHER_OWNER_ID = "user-2"
PROJECT_ID = "project-1"


def make_task(task_id, duration=None, completed=False, project_id=PROJECT_ID, owner_id=OWNER_ID):
    return Task(
        id=task_id,
        owner_id=owner_id,
        project_id=project_id,
        title=task_id,
        estimated_duration=duration,
        completed=completed,
    )


def make_edge(task_id, depends_on_task_id, dependency_type=DependencyType.FINISH_TO_START, owner_id=OWNER_ID):
    return TaskDependency(
        owner_id=owner_id,
        task_id=task_id,
        depends_on_task_id=depends_on_task_id,
        dependency_type=dependency_type,
    )


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_session(session_maker):
    """Create a test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def add_tasks(session_maker):
    """Insert tasks through a short-lived session and commit them."""
    async def _add(*tasks):
        async with session_maker() as session:
            session.add_all(tasks)
            await session.commit()
    return _add


@pytest_asyncio.fixture(scope="function")
async def client(session_maker):
    """Create an async test client with test database and a fixed user."""

    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_current_user():
        return AuthenticatedUser(uid=OWNER_ID, email="owner@example.com")

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_current_user] = override_get_current_user

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
