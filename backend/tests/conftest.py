"""
StoryAI - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Awaitable, Callable
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_storyai.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['AUTO_CREATE_TABLES'] = 'false'

from storyai.main import app
from storyai.core.database import Base, get_db
from storyai.core.security import get_password_hash, create_access_token
from storyai.models.user import User, UserRole
from storyai.schemas.auth import Caller
from storyai.services.key_provider import generate_data_encryption_key
import storyai.models  # noqa: F401

fake = Faker()

TEST_PASSWORD = 'testpassword123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_storyai.db'
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
    connect_args={"timeout": 30},
)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory(db_session: AsyncSession) -> async_sessionmaker:
    """Extra sessions against the same database (tables already created)"""
    return TestSessionLocal


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory for persisted users; authors get a data encryption key"""

    async def _make_user(role: UserRole = UserRole.AUTHOR, is_active: bool = True, with_key: bool = True) -> User:
        user = User(
            email=fake.unique.email(),
            hashed_password=get_password_hash(TEST_PASSWORD),
            full_name=fake.name(),
            role=role,
            is_active=is_active,
            data_encryption_key=generate_data_encryption_key() if with_key else "",
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
async def author(make_user) -> User:
    return await make_user()


@pytest.fixture
async def other_author(make_user) -> User:
    return await make_user()


@pytest.fixture
async def staff_user(make_user) -> User:
    return await make_user(role=UserRole.STAFF)


@pytest.fixture
def author_caller(author: User) -> Caller:
    return Caller(user_id=author.id, role=author.role)


@pytest.fixture
def staff_caller(staff_user: User) -> Caller:
    return Caller(user_id=staff_user.id, role=staff_user.role)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(author: User) -> dict:
    """Generate authentication headers for the author"""
    token_data = {
        'sub': str(author.id),
        'email': author.email,
        'role': author.role.value
    }
    token = create_access_token(token_data)
    return {'Authorization': f'Bearer {token}'}
