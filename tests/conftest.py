"""
Test infrastructure for the content API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- The blob store is replaced by a fresh ``InMemoryContentStore`` per test
  through ``get_content_store``; tests inspect its ``objects`` and ``events``
  to check what was written and deleted, and flip ``fail_uploads`` /
  ``fail_deletes`` to simulate provider outages.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- The Redis cache is disabled by setting cache._redis = None; the CacheManager
  already handles a None _redis gracefully (no-op reads and writes), so tests
  exercise real service logic without any Redis infrastructure.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from content_api.cache import cache
from content_api.database import Base, get_db
from content_api.main import app
from content_api.middleware import install_query_counter
from content_api.storage import InMemoryContentStore, get_content_store

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Register the per-request SQL query counter on the test engine.
install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Identity headers as the upstream gateway would forward them.
ADMIN = {"X-User-Role": "Admin", "X-User-Id": "u-admin", "X-User-Name": "Ada Admin"}
SUPER_ADMIN = {"X-User-Role": "Super_Admin", "X-User-Id": "u-super", "X-User-Name": "Sam Super"}
USER = {"X-User-Role": "User", "X-User-Id": "u-user", "X-User-Name": "Uma User"}


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
    cache._redis = None
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def store() -> InMemoryContentStore:
    """A fresh in-memory blob store, also installed as the app's store."""
    memory_store = InMemoryContentStore(root="test")
    app.dependency_overrides[get_content_store] = lambda: memory_store
    yield memory_store
    app.dependency_overrides.pop(get_content_store, None)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that drive services directly or
    need to assert ORM state.
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(store) -> AsyncClient:
    """
    Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport.

    Depends on ``store`` so every request hits the in-memory blob store.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def admin() -> dict:
    return dict(ADMIN)


@pytest.fixture
def super_admin() -> dict:
    return dict(SUPER_ADMIN)


@pytest.fixture
def user() -> dict:
    return dict(USER)
