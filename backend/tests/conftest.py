"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.jwt import create_access_token
from backend.app.core.locks import journey_locks, truck_locks
from backend.app.services.journey_lifecycle import JourneyLifecycleService
from backend.app.models.user import User
from backend.app.models.truck import Truck
from backend.app.models.trailer import Trailer
from backend.app.models.enums import UserRole

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Route every request-scoped session to the in-memory database."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Keyed asyncio locks bind to the loop that first contends on them
    journey_locks.clear()
    truck_locks.clear()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Fresh connection per test; each test runs on its own event loop
    await engine.dispose()


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


def actor_for(user_id: int, role: UserRole, email: str = "user@test.com") -> dict:
    """Actor payload as produced by ``get_current_user``."""
    return {"user_id": user_id, "role": role.value, "sub": email}


def auth_headers(actor: dict) -> dict:
    token = create_access_token({"sub": actor["sub"], "user_id": actor["user_id"], "role": actor["role"]})
    return {"Authorization": f"Bearer {token}"}


async def _create_user(name: str, email: str, role: UserRole) -> dict:
    async with TestingSessionLocal() as session:
        user = User(name=name, email=email, role=role, is_active=True)
        session.add(user)
        await session.commit()
        return actor_for(user.id, role, email)


async def _create_truck(license_plate: str = "TRK-100", **fields) -> int:
    async with TestingSessionLocal() as session:
        truck = Truck(license_plate=license_plate, model=fields.pop("model", "Volvo FH"), **fields)
        session.add(truck)
        await session.commit()
        return truck.id


async def _fetch(model, ident):
    """Read a row through a fresh session (no stale identity map)."""
    async with TestingSessionLocal() as session:
        return await session.get(model, ident)


@pytest.fixture
async def admin():
    return await _create_user("Admin", "admin@test.com", UserRole.ADMIN)


@pytest.fixture
async def driver():
    return await _create_user("Driver One", "driver1@test.com", UserRole.DRIVER)


@pytest.fixture
async def other_driver():
    return await _create_user("Driver Two", "driver2@test.com", UserRole.DRIVER)


@pytest.fixture
async def truck_id():
    return await _create_truck("TRK-100")


@pytest.fixture
async def trailer_id():
    async with TestingSessionLocal() as session:
        trailer = Trailer(license_plate="TRL-100", type="Flatbed")
        session.add(trailer)
        await session.commit()
        return trailer.id


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def driver_headers(driver):
    return auth_headers(driver)


@pytest.fixture
def other_driver_headers(other_driver):
    return auth_headers(other_driver)


@pytest.fixture
def make_truck():
    """Factory: ``await make_truck("PLATE", mileage=...)`` -> truck id."""
    return _create_truck


@pytest.fixture
def fetch():
    """``await fetch(Model, id)`` through a fresh session."""
    return _fetch


@pytest.fixture
def make_journey(admin, session_factory):
    """Factory creating a ``to_do`` journey through the lifecycle service; returns its id."""
    async def _make(driver_id, truck_id, trailer_id=None, origin="Lisbon", destination="Porto"):
        async with session_factory() as session:
            journey = await JourneyLifecycleService.create_journey(session, admin, {
                "driver_id": driver_id,
                "truck_id": truck_id,
                "trailer_id": trailer_id,
                "origin": origin,
                "destination": destination,
            })
            return journey.id

    return _make
