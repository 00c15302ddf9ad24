"""
Test infrastructure for the Taskboard API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- Every test gets its own CacheManager over the in-memory backend, injected
  through the get_cache dependency, so cache state never leaks between tests.
- Requests authenticate with real bearer tokens signed by
  taskboard.security.create_access_token.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from taskboard.cache import CacheManager, MemoryBackend
from taskboard.database import Base, get_db
from taskboard.dependencies import get_cache
from taskboard.main import app
from taskboard.models import Role, RoleName, User
from taskboard.security import ActingUser, create_access_token, password_verifier

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

PASSWORD = "correct-horse-battery"
# bcrypt is slow on purpose; hash once for the whole run.
PASSWORD_HASH = password_verifier.hash(PASSWORD)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that call services directly or need
    to seed and inspect ORM state.
    """
    async with async_session_test() as session:
        yield session


@pytest.fixture
def cache() -> CacheManager:
    """A fresh in-memory cache per test."""
    return CacheManager(MemoryBackend(), ttl=0)


@pytest.fixture
def make_user(db_session: AsyncSession):
    """
    Factory that inserts a user and returns ``(user, actor)``.

    Roles are created on first use; every user gets USER, admins also ADMIN.
    """
    counter = {"n": 0}

    async def _role(name: RoleName) -> Role:
        result = await db_session.execute(select(Role).where(Role.name == name))
        role = result.scalar_one_or_none()
        if role is None:
            role = Role(name=name)
            db_session.add(role)
            await db_session.flush()
        return role

    async def _make(email: str | None = None, admin: bool = False, **fields) -> tuple[User, ActingUser]:
        counter["n"] += 1
        roles = [await _role(RoleName.USER)]
        if admin:
            roles.append(await _role(RoleName.ADMIN))
        user = User(
            firstname=fields.pop("firstname", "Test"),
            lastname=fields.pop("lastname", f"User{counter['n']}"),
            email=email or f"user{counter['n']}@example.com",
            password=PASSWORD_HASH,
            roles=roles,
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        return user, ActingUser.from_user(user)

    return _make


@pytest.fixture
def auth_headers():
    """Return a function building an Authorization header for a user id."""

    def _headers(user_id: int) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers


@pytest_asyncio.fixture
async def async_client(cache: CacheManager) -> AsyncClient:
    """
    Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport,
    with the per-test cache injected.
    """
    app.dependency_overrides[get_cache] = lambda: cache
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_cache, None)
