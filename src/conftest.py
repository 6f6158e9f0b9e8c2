import os
import tempfile
import uuid
from contextlib import asynccontextmanager

# must run before src.config reads the settings
os.environ.setdefault(
    "DB_DSN",
    f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='sk-events-')}/barangay_sk_events.db",
)
os.environ.setdefault("NOTIFICATION_BACKEND", "log")
os.environ.setdefault("DB_RETRY_ATTEMPTS", "10")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.auth.identity import Identity, Role  # noqa: E402
from src.config.database import engine  # noqa: E402
from src.events.repository import orm_models  # noqa: E402,F401
from src.main import app  # noqa: E402
from src.models.base import BaseModel  # noqa: E402
from src.notifications import NotificationDispatcherBase, RegistrationStatusChanged  # noqa: E402


class InMemoryNotificationDispatcher(NotificationDispatcherBase):
    """Collects delivered notifications instead of sending them."""

    def __init__(self) -> None:
        super().__init__()
        self.delivered: list[RegistrationStatusChanged] = []

    async def deliver(self, notification: RegistrationStatusChanged) -> None:
        self.delivered.append(notification)


@pytest.fixture
async def db():
    """Fresh schema for every test that touches the database."""
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)
        await conn.run_sync(BaseModel.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)


@pytest.fixture
def staff_identity() -> Identity:
    return Identity.with_roles(uuid.uuid4(), [Role.SK_OFFICER])


@pytest.fixture
def resident_identity() -> Identity:
    return Identity.with_roles(uuid.uuid4(), Role.RESIDENT)


@pytest.fixture
def notification_dispatcher() -> InMemoryNotificationDispatcher:
    return InMemoryNotificationDispatcher()


@pytest.fixture
def client_factory():
    """Build a test client with the given dependency overrides applied."""

    @asynccontextmanager
    async def _factory(overrides: dict | None = None):
        app.dependency_overrides.update(overrides or {})
        transport = ASGITransport(app=app)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
        finally:
            app.dependency_overrides.clear()

    return _factory


@pytest.fixture
async def client(client_factory):
    async with client_factory() as ac:
        yield ac
