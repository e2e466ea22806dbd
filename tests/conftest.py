"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from uuid import uuid4

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.entities.post import Post, PostStatus
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import Base, PostModel
from infrastructure.database.session import install_sqlite_functions
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork

# Test database URL (SQLite in memory, one shared connection per test)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed test user ID for consistency
TEST_USER_ID = uuid4()

PostFactory = Callable[..., Awaitable[Post]]


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    install_sqlite_functions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(
    engine: AsyncEngine,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create session factory."""
    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    yield factory


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    """UoW factory bound to the test database."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
def make_post(session_factory: async_sessionmaker[AsyncSession]) -> PostFactory:
    """Insert a post row directly; post CRUD is not part of the API."""

    async def _make(title: str = "A post", status: PostStatus = PostStatus.PUBLISHED) -> Post:
        post = Post(title=title, status=status)
        async with session_factory() as session:
            session.add(
                PostModel(
                    id=post.id,
                    title=post.title,
                    status=post.status.value,
                    created_at=post.created_at,
                )
            )
            await session.commit()
        return post

    return _make


@pytest.fixture
def test_user() -> TokenUser:
    """Create a test user with fixed ID."""
    return TokenUser(
        id=TEST_USER_ID,
        email="editor@example.com",
        display_name="Test Editor",
        role="editor",
    )


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key="test-secret-key",
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def auth_token(auth_provider: JWTAuthProvider, test_user: TokenUser) -> str:
    """Create auth token for test user."""
    return str(auth_provider.create_token(test_user))


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no auth, no database overrides)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def authenticated_client(
    session_factory: async_sessionmaker[AsyncSession],
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    test_user: TokenUser,
    auth_provider: JWTAuthProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create authenticated test client with proper database and auth overrides.

    This client:
    - Uses an in-memory SQLite database
    - Overrides auth dependency to return the test user
    - Overrides every service getter to use the test UoW factory
    - Points the health check session at the test database
    """
    from api.dependencies.auth import get_auth_provider, get_current_user
    from api.v1.dependencies import (
        get_association_service,
        get_merge_service,
        get_similarity_service,
        get_tag_analytics_service,
        get_tag_service,
        get_usage_service,
    )
    from domain.services.association_service import AssociationService
    from domain.services.merge_service import MergeService
    from domain.services.similarity_service import SimilarityService
    from domain.services.tag_analytics_service import TagAnalyticsService
    from domain.services.tag_service import TagService
    from domain.services.usage_service import UsageService
    from infrastructure.database.session import get_async_session
    from main import create_app

    app = create_app()
    usage_service = UsageService(uow_factory)

    # Override auth to return test user directly
    async def override_get_user() -> TokenUser:
        return test_user

    def override_get_auth_provider() -> JWTAuthProvider:
        return auth_provider

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_current_user] = override_get_user
    app.dependency_overrides[get_async_session] = override_get_session
    app.dependency_overrides[get_auth_provider] = override_get_auth_provider
    app.dependency_overrides[get_usage_service] = lambda: usage_service
    app.dependency_overrides[get_tag_service] = lambda: TagService(
        uow_factory, usage_service=usage_service
    )
    app.dependency_overrides[get_association_service] = lambda: AssociationService(
        uow_factory, usage_service=usage_service
    )
    app.dependency_overrides[get_merge_service] = lambda: MergeService(
        uow_factory, usage_service=usage_service
    )
    app.dependency_overrides[get_similarity_service] = lambda: SimilarityService(uow_factory)
    app.dependency_overrides[get_tag_analytics_service] = lambda: TagAnalyticsService(
        uow_factory
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
