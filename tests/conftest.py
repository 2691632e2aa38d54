import os
import tempfile
from pathlib import Path

_DB_PATH = Path(tempfile.gettempdir()) / f"fieldforce_test_{os.getpid()}.db"

# must be set before fieldforce settings are imported
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-prod")
os.environ["ENV"] = "dev"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OTP_ECHO_CODE"] = "false"

from types import SimpleNamespace
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from fieldforce.auth.utils import hash_password
from fieldforce.config.otp_config import OtpSettings
from fieldforce.config.whatsapp_config import WhatsAppSettings
from fieldforce.db.connection import async_engine, async_session
from fieldforce.db.schema import create_tables, drop_tables
from fieldforce.main import app
from fieldforce.messaging.whatsapp import WhatsAppDelivery
from fieldforce.notifications.audit import AuditSink
from fieldforce.otp.services import OtpManager
from fieldforce.schema.full_schema import Client, UserRoleName, Users
from tests.helpers import TEST_PASSWORD, FakeClock, WhatsAppStub


@pytest_asyncio.fixture
async def db():
    await drop_tables(async_engine)
    await create_tables(async_engine)
    try:
        yield
    finally:
        await drop_tables(async_engine)
        await async_engine.dispose()


@pytest_asyncio.fixture
async def db_session(db):
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(db):
    pwd_hash = hash_password(TEST_PASSWORD)
    admin = Users(email="admin@example.com", first_name="Asha", last_name="Rao",
                  password_hash=pwd_hash, role=UserRoleName.ADMIN)
    salesman = Users(email="ravi@example.com", first_name="Ravi", last_name="Kumar",
                     password_hash=pwd_hash, role=UserRoleName.SALESMAN)
    other_salesman = Users(email="meera@example.com", first_name="Meera", last_name="Iyer",
                           password_hash=pwd_hash, role=UserRoleName.SALESMAN)
    inactive = Users(email="gone@example.com", first_name="Old", last_name="Hand",
                     password_hash=pwd_hash, role=UserRoleName.SALESMAN, is_active=False)
    client = Client(name="Sharma Traders", company="Sharma & Sons", phone="98765 43210")
    second_client = Client(name="Patel Stores", company="Patel Retail", phone="+91 91234-56789")
    no_phone = Client(name="Walk In", company=None, phone=None)

    async with async_session() as session:
        session.add_all([admin, salesman, other_salesman, inactive, client, second_client, no_phone])
        await session.commit()

    return SimpleNamespace(admin=admin, salesman=salesman, other_salesman=other_salesman, inactive=inactive,
                           client=client, second_client=second_client, no_phone=no_phone)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def whatsapp_stub():
    return WhatsAppStub()


@pytest.fixture
def whatsapp_settings():
    return WhatsAppSettings(TOKEN="test-token", PHONE_NUMBER_ID="1234567890")


@pytest.fixture
def otp_settings():
    return OtpSettings()


@pytest.fixture
def delivery(whatsapp_settings, whatsapp_stub):
    return WhatsAppDelivery(whatsapp_settings, transport=whatsapp_stub.transport())


@pytest.fixture
def otp_manager(delivery, otp_settings, clock):
    return OtpManager(delivery=delivery, audit=AuditSink(async_session), settings=otp_settings, clock=clock)


@pytest_asyncio.fixture
async def ac_client(seeded, otp_manager):
    async with LifespanManager(app):
        # replaces the manager built at startup with one on the stubbed api and fake clock
        app.state.otp_manager = otp_manager
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
