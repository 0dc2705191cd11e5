"""
Shared test fixtures.

The environment is configured before anything from qrlink is imported:
settings, the engine and the limiters are all built at import time.
"""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="qrlink-tests-")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ADMIN_PASSWORD"] = "test-admin-password"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BASE_URL"] = "http://qr.test"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from qrlink.core.rate_limit import AdminAuthRateLimiter, InMemoryAttemptStore, get_admin_rate_limiter
from qrlink.db.models import QRCode, Scan
from qrlink.db.session import async_session_maker, drop_db, init_db
from qrlink.main import app

ADMIN_PASSWORD = "test-admin-password"


@pytest_asyncio.fixture
async def database():
    """Fresh tables for every test that touches the database."""
    await init_db()
    yield
    await drop_db()


@pytest_asyncio.fixture
async def session(database):
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def admin_limiter():
    """An isolated admin login limiter injected into the app."""
    limiter = AdminAuthRateLimiter(InMemoryAttemptStore(), max_attempts=5, window_seconds=3600)
    app.dependency_overrides[get_admin_rate_limiter] = lambda: limiter
    yield limiter
    app.dependency_overrides.pop(get_admin_rate_limiter, None)


@pytest_asyncio.fixture
async def client(database, admin_limiter):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def admin_client(client):
    """A client holding a valid admin session cookie."""
    response = await client.post("/api/admin/auth", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


async def make_qr_code(session, short_code="abc12345", target_url="https://example.com", **kwargs) -> QRCode:
    qr_code = QRCode(short_code=short_code, target_url=target_url, **kwargs)
    session.add(qr_code)
    await session.commit()
    await session.refresh(qr_code)
    return qr_code


async def make_scan(session, qr_code_id: int, **kwargs) -> Scan:
    scan = Scan(qr_code_id=qr_code_id, **kwargs)
    session.add(scan)
    await session.commit()
    return scan
