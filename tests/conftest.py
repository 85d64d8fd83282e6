from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from apps.api.core.config import Settings
from apps.api.metrics import MetricsRegistry, register_default_metrics
from apps.api.services.access import Role
from apps.api.services.comments import CommentRepository, CommentService
from apps.api.services.tickets import TicketRepository, TicketService
from apps.api.services.users import User, UserRepository, UserService


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret="test-secret",
        jwt_expires_minutes=30,
    )


@pytest.fixture
def metrics() -> MetricsRegistry:
    registry = MetricsRegistry()
    register_default_metrics(registry)
    return registry


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def user_repository(session_factory, engine) -> UserRepository:
    return UserRepository(session_factory, engine=engine)


@pytest.fixture
def ticket_repository(session_factory, engine) -> TicketRepository:
    return TicketRepository(session_factory, engine=engine)


@pytest.fixture
def comment_repository(session_factory, engine) -> CommentRepository:
    return CommentRepository(session_factory, engine=engine)


@pytest.fixture
def user_service(user_repository, settings) -> UserService:
    return UserService(user_repository, settings=settings)


@pytest.fixture
def ticket_service(ticket_repository, user_repository, metrics) -> TicketService:
    return TicketService(ticket_repository, user_repository, metrics=metrics)


@pytest.fixture
def comment_service(comment_repository, ticket_repository, metrics) -> CommentService:
    return CommentService(comment_repository, ticket_repository, metrics=metrics)


@pytest.fixture
def make_user(user_repository):
    """Persist an account directly, bypassing the provisioning rules."""

    async def factory(name: str, role: Role, *, email: str | None = None) -> User:
        return await user_repository.create_user(
            name=name,
            email=email or f"{name.lower()}@example.com",
            hashed_password="not-a-real-hash",
            role=role,
        )

    return factory


