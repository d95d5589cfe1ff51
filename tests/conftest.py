"""
Shared fixtures: in-memory SQLite database, a fake identity provider keyed by
token, an httpx client bound to the ASGI app, and seeding helpers.
"""

import os
from datetime import timedelta
from decimal import Decimal

# settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("FIREBASE_PROJECT_ID", "test-project")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app import app
from core.breaker import breaker
from core.get_db import Base, get_db_async
from core.identity import InvalidIdentityToken, VerifiedIdentity, get_identity_client
from core.throttling import rate_limit
from models.enums import (
    ListingStatus,
    ListingType,
    PropertyStatus,
    PropertyType,
    UserRole,
)
from models.models import DuplicateListing, Property, PropertyImage, User
from models.utils import utcnow


# =============================================================================
# IDENTITY
# =============================================================================

class FakeIdentityClient:
    """Accepts any token as the uid, except tokens starting with 'bad'.

    Tokens starting with 'unverified' carry an unverified email.
    """

    async def verify(self, token: str) -> VerifiedIdentity:
        if token.startswith("bad"):
            raise InvalidIdentityToken("Invalid or expired token")
        return VerifiedIdentity(
            uid=token,
            email=f"{token}@example.com",
            name="Test User",
            picture=None,
            email_verified=not token.startswith("unverified"),
        )

    def close(self):
        pass


def auth(uid: str) -> dict:
    return {"Authorization": f"Bearer {uid}"}


async def duplicate_attempts(db, property_id: int) -> list[DuplicateListing]:
    result = await db.execute(
        select(DuplicateListing)
        .where(DuplicateListing.existing_property_id == property_id)
        .order_by(DuplicateListing.id)
    )
    return result.scalars().all()


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_db():
        async with session_factory() as session:
            yield session

    async def no_rate_limit():
        return None

    app.dependency_overrides[get_db_async] = override_db
    app.dependency_overrides[get_identity_client] = lambda: FakeIdentityClient()
    app.dependency_overrides[rate_limit.dependency] = no_rate_limit
    breaker.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    breaker.reset()


# =============================================================================
# SEEDING HELPERS
# =============================================================================

@pytest.fixture
def make_user(session_factory):
    async def _make_user(
        uid: str,
        role: UserRole = UserRole.TENANT,
        is_verified: bool = False,
        rera_id: str | None = None,
        phone_number: str | None = None,
        email: str | None = None,
    ) -> User:
        async with session_factory() as session:
            user = User(
                id=uid,
                email=email or f"{uid}@example.com",
                first_name=uid.capitalize(),
                last_name="Tester",
                role=role,
                is_verified=is_verified,
                rera_id=rera_id,
                phone_number=phone_number,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def make_property(session_factory):
    async def _make_property(
        owner_id: str,
        title: str = "Sunny 2BR near the marina",
        location: str = "Dubai Marina",
        price: str = "1500.00",
        property_type: PropertyType = PropertyType.APARTMENT,
        listing_type: ListingType = ListingType.RENT,
        bedrooms: int | None = 2,
        status: PropertyStatus = PropertyStatus.PENDING,
        listing_status: ListingStatus = ListingStatus.ACTIVE,
        is_verified: bool = False,
        needs_review: bool = False,
        age_days: float = 0,
        image_urls: list[str] | None = None,
    ) -> Property:
        async with session_factory() as session:
            prop = Property(
                owner_id=owner_id,
                title=title,
                description="",
                price=Decimal(price),
                location=location,
                property_type=property_type,
                listing_type=listing_type,
                bedrooms=bedrooms,
                bathrooms=1,
                status=status,
                listing_status=listing_status,
                is_verified=is_verified,
                needs_review=needs_review,
                created_at=utcnow() - timedelta(days=age_days),
                images=[
                    PropertyImage(image_url=url, display_order=index)
                    for index, url in enumerate(image_urls or [])
                ],
            )
            session.add(prop)
            await session.commit()
            return prop

    return _make_property


@pytest.fixture
def property_payload():
    return {
        "title": "Sunny 2BR near the marina",
        "description": "Bright corner unit",
        "price": "1500.00",
        "location": "Dubai Marina",
        "property_type": "apartment",
        "listing_type": "rent",
        "bedrooms": 2,
        "bathrooms": 1,
        "image_urls": ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"],
    }
