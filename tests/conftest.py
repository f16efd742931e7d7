"""
CampusDesk - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['MAINTENANCE_MODE'] = 'false'
os.environ['LOG_FILE'] = ''

from campusdesk.main import app
from campusdesk.core.database import Base, get_db
from campusdesk.core.security import get_password_hash, create_access_token
from campusdesk.models import Admin, AdminRole, AdminStatus, Batch, Branch, Student

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory(db_session: AsyncSession) -> async_sessionmaker:
    """Factory for extra sessions (one per concurrent caller)"""
    return TestSessionLocal


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client; every request gets its own session like in production"""
    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def batch(db_session: AsyncSession) -> Batch:
    """Create a test batch"""
    batch = Batch(name="2021-2025", start_year=2021, end_year=2025)
    db_session.add(batch)
    await db_session.commit()
    await db_session.refresh(batch)
    return batch


@pytest.fixture
async def branch(db_session: AsyncSession, batch: Batch) -> Branch:
    """Create a test branch in the test batch"""
    branch = Branch(name="CSE", batch_id=batch.id)
    db_session.add(branch)
    await db_session.commit()
    await db_session.refresh(branch)
    return branch


@pytest.fixture
async def student(db_session: AsyncSession, branch: Branch) -> Student:
    """Create a student whose password is their name"""
    name = fake.name()
    student = Student(
        roll_no=f"21CS{fake.unique.random_int(min=100, max=999)}",
        name=name,
        branch_id=branch.id,
        password_hash=get_password_hash(name),
        failed_login_attempts=0,
    )
    db_session.add(student)
    await db_session.commit()
    await db_session.refresh(student)
    return student


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> Admin:
    """Create a super admin"""
    admin = Admin(
        name=fake.user_name(),
        password_hash=get_password_hash('adminpassword123'),
        role=AdminRole.SUPER_ADMIN,
        status=AdminStatus.ACTIVE,
    )
    db_session.add(admin)
    await db_session.commit()
    await db_session.refresh(admin)
    return admin


@pytest.fixture
def admin_auth_headers(admin_user: Admin) -> dict:
    """Generate authentication headers for the super admin"""
    token = create_access_token({
        'sub': str(admin_user.id),
        'role': 'admin',
        'admin_role': admin_user.role.value,
        'username': admin_user.name,
    })
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def student_auth_headers(student: Student) -> dict:
    """Generate authentication headers for the test student"""
    token = create_access_token({
        'sub': str(student.id),
        'role': 'student',
        'username': student.roll_no,
    })
    return {'Authorization': f'Bearer {token}'}
