"""
Pytest fixtures for the test database, HTTP client, and authenticated actors.

Each test gets its own SQLite file so that several real sessions (one per
request, or two racing selection calls) can hit the same store. Redis is
disabled; the listing cache degrades to a miss.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ["REDIS_ENABLED"] = "false"
os.environ.setdefault("ENVIRONMENT", "test")

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from photomarket import models  # noqa: F401 - register tables
from photomarket.core.security import Identity, Role, hash_password, issue_token
from photomarket.db.base import Base
from photomarket.db.session import get_db
from photomarket.domain.application_state import ApplicationStatus
from photomarket.domain.booking_state import BookingStatus
from photomarket.domain.payment_state import PaymentStatus
from photomarket.main import app
from photomarket.models import (
    Booking,
    BookingApplication,
    Client,
    Payment,
    Photographer,
    PortfolioImage,
    User,
)

TEST_PASSWORD = "testpassword123"
_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@dataclass
class Actor:
    user_id: int
    profile_id: Optional[int]
    role: Role
    name: str
    email: str

    @property
    def identity(self) -> Identity:
        return Identity(user_id=self.user_id, role=self.role, name=self.name)

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {issue_token(self.user_id, self.role, self.name)}"}


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh schema in a per-test SQLite file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'photomarket_test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session, as in production."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_actor(session_factory, role: Role, name: str, email: str) -> Actor:
    async with session_factory() as session:
        user = User(email=email, name=name, role=role.value, hashed_password=_PASSWORD_HASH)
        session.add(user)
        await session.flush()

        profile_id = None
        if role is Role.CLIENT:
            profile = Client(user_id=user.id)
        elif role is Role.PHOTOGRAPHER:
            profile = Photographer(user_id=user.id)
        else:
            profile = None
        if profile is not None:
            session.add(profile)
            await session.flush()
            profile_id = profile.id

        await session.commit()
        return Actor(user_id=user.id, profile_id=profile_id, role=role, name=name, email=email)


async def create_booking(
    session_factory,
    client_id: int,
    status: BookingStatus = BookingStatus.OPEN,
    photographer_id: Optional[int] = None,
    days_ahead: int = 30,
    **fields,
) -> Booking:
    async with session_factory() as session:
        booking = Booking(
            client_id=client_id,
            photographer_id=photographer_id,
            event_date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
            status=status.value,
            **fields,
        )
        session.add(booking)
        await session.flush()
        session.add(Payment(booking_id=booking.id, amount=0, status=PaymentStatus.UNPAID.value))
        await session.commit()
        return booking


async def create_application(
    session_factory,
    booking_id: int,
    photographer_id: int,
    status: ApplicationStatus = ApplicationStatus.PENDING,
) -> BookingApplication:
    async with session_factory() as session:
        application = BookingApplication(
            booking_id=booking_id, photographer_id=photographer_id, status=status.value
        )
        session.add(application)
        await session.commit()
        return application


async def add_portfolio_images(session_factory, photographer_id: int, count: int) -> None:
    async with session_factory() as session:
        for i in range(count):
            session.add(PortfolioImage(photographer_id=photographer_id, image_url=f"/uploads/{photographer_id}-{i}.jpg"))
        await session.commit()


@pytest_asyncio.fixture
async def client_actor(session_factory) -> Actor:
    return await create_actor(session_factory, Role.CLIENT, "Casey Client", "client@example.com")


@pytest_asyncio.fixture
async def other_client(session_factory) -> Actor:
    return await create_actor(session_factory, Role.CLIENT, "Olive Other", "other@example.com")


@pytest_asyncio.fixture
async def photographer_a(session_factory) -> Actor:
    return await create_actor(session_factory, Role.PHOTOGRAPHER, "Ansel Aperture", "ansel@example.com")


@pytest_asyncio.fixture
async def photographer_b(session_factory) -> Actor:
    return await create_actor(session_factory, Role.PHOTOGRAPHER, "Berenice Bokeh", "berenice@example.com")


@pytest_asyncio.fixture
async def admin_actor(session_factory) -> Actor:
    return await create_actor(session_factory, Role.ADMIN, "Ada Admin", "admin@example.com")


@pytest_asyncio.fixture
async def open_booking(session_factory, client_actor) -> Booking:
    return await create_booking(
        session_factory,
        client_actor.profile_id,
        location="Brooklyn",
        event_type="Wedding",
        notes="Outdoor ceremony, golden hour",
    )


@pytest_asyncio.fixture
async def two_applications(session_factory, open_booking, photographer_a, photographer_b):
    """Applications A (photographer_a) and B (photographer_b), both PENDING."""
    app_a = await create_application(session_factory, open_booking.id, photographer_a.profile_id)
    app_b = await create_application(session_factory, open_booking.id, photographer_b.profile_id)
    return app_a, app_b
