import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fakeredis import aioredis as fake_aioredis
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dispatchdesk.main import app
from dispatchdesk.db.session import get_db, get_session_factory
from dispatchdesk.models.base import Base
from dispatchdesk.models.user import User
from dispatchdesk.models.lead import Lead
from dispatchdesk.core.redis import set_redis
from dispatchdesk.core.security import create_access_token, hash_password
from dispatchdesk.core.config import settings
from dispatchdesk.core.enums import UserRole, LeadStatus


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def fake_redis():
    client = fake_aioredis.FakeRedis()
    set_redis(client)
    yield client
    await client.flushall()
    set_redis(None)


@pytest.fixture
async def test_client(session_factory, fake_redis):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _create_user(db, username: str, role: UserRole) -> User:
    user = User(username=username, password_hash=hash_password(f"{username}-pass"), role=role)
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def admin_user(db):
    return await _create_user(db, "admin", UserRole.ADMIN)


@pytest.fixture
async def agent_user(db):
    return await _create_user(db, "agent", UserRole.AGENT)


@pytest.fixture
def admin_headers(admin_user):
    token = create_access_token(str(admin_user.id), admin_user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def agent_headers(agent_user):
    token = create_access_token(str(agent_user.id), agent_user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def lead_factory(db):
    serial = {"next": 1}

    async def _create_lead(company_name="Acme Freight", phone_number="(214) 555-0100", **kwargs):
        kwargs.setdefault("status", LeadStatus.NEW)
        kwargs.setdefault("source", settings.MANUAL_LEAD_SOURCE)
        lead = Lead(
            company_name=company_name,
            phone_number=phone_number,
            serial_number=serial["next"],
            notes=[],
            **kwargs,
        )
        serial["next"] += 1
        db.add(lead)
        await db.commit()
        return lead

    return _create_lead


@pytest.fixture
def valid_lead_data():
    return {
        "companyName": "Lone Star Haulers",
        "mcNumber": "MC123456",
        "dotNumber": "3456789",
        "phoneNumber": "+1 (214) 555-0100",
        "email": "dispatch@lonestar.example",
        "state": "TX",
        "address": "100 Main St, Dallas, TX 75201",
        "truckCount": 12,
    }


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "telephony: marks tests related to call report sync"
    )
