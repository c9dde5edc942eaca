from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.core.dependencies import get_db
from src.core.security import get_password_hash
from src.database import Base
from src.main import app
from src.models.driver import Driver
from src.models.user import User
from src.models.vehicle import Vehicle
from src.utils.constants import DriverStatus, UserRole, VehicleStatus

TEST_DATABASE_URL = "sqlite+aiosqlite:///./test_fleet.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_session_maker = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_session_maker() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory() -> async_sessionmaker[AsyncSession]:
    return test_session_maker


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def login(client: AsyncClient, email: str, password: str) -> dict[str, str]:
    response = await client.post(
        "/api/v1/auth/login",
        data={"username": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def test_user(client: AsyncClient) -> dict[str, Any]:
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": "test@example.com",
            "password": "testpassword123",
            "full_name": "Test User",
        },
    )
    return response.json()


@pytest_asyncio.fixture
async def auth_headers(test_user: dict[str, Any]) -> dict[str, str]:
    return {"Authorization": f"Bearer {test_user['access_token']}"}


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    admin = User(
        email="admin@fleet.com",
        hashed_password=get_password_hash("admin123"),
        full_name="Fleet Admin",
        role=UserRole.ADMIN,
        is_active=True,
    )
    db_session.add(admin)
    await db_session.commit()
    return admin


@pytest_asyncio.fixture
async def admin_headers(client: AsyncClient, admin_user: User) -> dict[str, str]:
    return await login(client, "admin@fleet.com", "admin123")


@pytest_asyncio.fixture
async def customer(db_session: AsyncSession) -> User:
    user = User(
        email="customer@fleet.com",
        hashed_password=get_password_hash("customer123"),
        full_name="Regular Customer",
        role=UserRole.CUSTOMER,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def driver_user(db_session: AsyncSession) -> User:
    user = User(
        email="driver@fleet.com",
        hashed_password=get_password_hash("driver123"),
        full_name="Assigned Driver",
        role=UserRole.DRIVER,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def driver(db_session: AsyncSession, driver_user: User) -> Driver:
    profile = Driver(
        user_id=driver_user.id,
        license_number="DL-1001",
        years_of_experience=5,
        status=DriverStatus.ACTIVE,
        availability=True,
        daily_rate=2500,
    )
    db_session.add(profile)
    await db_session.commit()
    return profile


@pytest_asyncio.fixture
async def driver_headers(client: AsyncClient, driver: Driver) -> dict[str, str]:
    return await login(client, "driver@fleet.com", "driver123")


@pytest_asyncio.fixture
async def vehicle(db_session: AsyncSession) -> Vehicle:
    car = Vehicle(
        make="Toyota",
        model="Prius",
        year=2022,
        license_plate="CAR-5000",
        daily_rate=5000,
        status=VehicleStatus.AVAILABLE,
    )
    db_session.add(car)
    await db_session.commit()
    return car


@pytest_asyncio.fixture
async def customer_headers(client: AsyncClient, customer: User) -> dict[str, str]:
    return await login(client, "customer@fleet.com", "customer123")
