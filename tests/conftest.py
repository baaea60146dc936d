import os

# settings are read at import time, so the test environment goes in first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENV"] = "test"
os.environ["OTP_PURGE_ENABLED"] = "false"
os.environ["ENABLE_ADMIN"] = "true"
os.environ["ADMIN_SECRET"] = "test-admin-secret"

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from storefront.common.custom_exceptions import DeliveryError
from storefront.db.dependencies import get_session
from storefront.main import app
from storefront.notifications.mailer import get_password_reset_mailer
from storefront.schema.full_schema import Credential, PasswordResetOtp

url_prefix="/api/v1"
admin_headers={"X-Admin-Secret": "test-admin-secret"}


# the app itself never creates tables (alembic owns the schema); tests build them from metadata
async def create_tables(engine: AsyncEngine):
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_tables(engine: AsyncEngine):
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


class FakeMailer:
    """Records delivered codes instead of talking to smtp."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_password_reset_otp(self, email, code, expire_minutes):
        if self.fail:
            raise DeliveryError(details={"reason": "smtp_down"})
        self.sent.append((email, code, expire_minutes))

    def last_code_for(self, email):
        codes = [code for to, code, _ in self.sent if to == email]
        return codes[-1] if codes else None


@pytest.fixture
async def engine():
    # one shared in-memory database per test
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool,
                              connect_args={"check_same_thread": False})
    await create_tables(eng)
    try:
        yield eng
    finally:
        await drop_tables(eng)
        await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
async def ac_client(session_factory, mailer):

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_password_reset_mailer] = lambda: mailer
    try:
        async with LifespanManager(app):
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
                yield ac
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def fixed_otp(monkeypatch):
    """Make every issued code predictable: returns the list the codes are drawn from."""
    codes = ["123456"]

    def fake_generate(length=6):
        return codes.pop(0) if len(codes) > 1 else codes[0]

    monkeypatch.setattr("storefront.otp.services.generate_otp", fake_generate)
    return codes


async def register(ac, email="alice@example.com", password="secret1", name="Alice"):
    resp = await ac.post(f"{url_prefix}/users/register", json={"email": email, "password": password, "name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["user"]


async def count_otps(session, email) -> int:
    res = await session.execute(select(func.count(PasswordResetOtp.id)).where(PasswordResetOtp.email == email))
    return int(res.scalar_one())


async def password_hash_for(session, user_id):
    res = await session.execute(select(Credential.password_hash).where(Credential.user_id == user_id))
    return res.scalar_one_or_none()
