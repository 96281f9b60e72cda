"""
ClubHub - Test Configuration and Fixtures
"""
import os
from datetime import datetime, timedelta
from typing import AsyncGenerator, Dict, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''
os.environ['REDIS_URL'] = ''

from clubhub.main import app
from clubhub.core.database import Base, get_db
from clubhub.core.security import get_password_hash, create_access_token
from clubhub.models.user import User, UserRole, VerificationStatus
from clubhub.services.data_store import DataStore
from clubhub.services.store_capability import StoreCapability

fake = Faker()

TEST_PASSWORD = 'testpassword123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


class FakeReadCache:
    """In-memory stand-in for RedisReadCache"""

    def __init__(self):
        self.data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def close(self) -> None:
        self.data.clear()


class StubCapability(StoreCapability):
    """Capability with a fixed answer"""

    def __init__(self, ready: bool):
        super().__init__()
        self.ready = ready
        self.checks = 0

    async def check(self, db, force: bool = False) -> bool:
        self.checks += 1
        return self.ready


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
def store(db_session: AsyncSession) -> DataStore:
    return DataStore(db_session)


@pytest.fixture
async def second_store(db_session: AsyncSession) -> AsyncGenerator[DataStore, None]:
    """A store on its own session, for a second concurrent writer"""
    async with TestSessionLocal() as session:
        yield DataStore(session)
        await session.rollback()


@pytest.fixture
def capability() -> StoreCapability:
    return StoreCapability()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.store_capability.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory for profiles in any role/level/expiry"""

    async def _make_user(
        role: UserRole = UserRole.STUDENT,
        level: int = 1,
        expiry: Optional[datetime] = None,
        verification_status: VerificationStatus = VerificationStatus.APPROVED,
        email: Optional[str] = None,
    ) -> User:
        user = User(
            email=email or fake.unique.email(),
            hashed_password=get_password_hash(TEST_PASSWORD),
            full_name=fake.name(),
            role=role,
            membership_level=level,
            membership_expiry=expiry,
            verified=verification_status == VerificationStatus.APPROVED,
            verification_status=verification_status,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
async def student(make_user) -> User:
    return await make_user(UserRole.STUDENT, expiry=datetime.utcnow() - timedelta(days=10))


@pytest.fixture
async def tutor(make_user) -> User:
    return await make_user(UserRole.TUTOR, expiry=datetime.utcnow() + timedelta(days=90))


@pytest.fixture
async def committee(make_user) -> User:
    return await make_user(UserRole.COMMITTEE, expiry=datetime.utcnow() + timedelta(days=90))


@pytest.fixture
async def admin_user(make_user) -> User:
    return await make_user(UserRole.ADMIN)


def _auth_headers(user: User) -> dict:
    """Generate authentication headers for a user"""
    token_data = {
        'sub': str(user.id),
        'email': user.email,
        'role': user.role.value
    }
    token = create_access_token(token_data)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def auth_headers(student: User) -> dict:
    return _auth_headers(student)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    return _auth_headers(admin_user)


@pytest.fixture
def tutor_auth_headers(tutor: User) -> dict:
    return _auth_headers(tutor)


@pytest.fixture
def headers_for():
    """Build auth headers for any user inside a test"""
    return _auth_headers


@pytest.fixture
def read_cache() -> FakeReadCache:
    return FakeReadCache()


@pytest.fixture
def stub_capability():
    """Factory for a capability that always answers `ready`"""
    return StubCapability
