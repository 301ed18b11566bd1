"""
Pytest configuration and fixtures for storefront tests.
"""
import os
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, AsyncMock

import pytest
import pytest_asyncio

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["PAYMENT_SIMULATION_DELAY_SECONDS"] = "0"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.core.database import Base
from storefront.core.security import create_access_token
from storefront.core.utils import generate_slug, new_id, utcnow
from storefront.models import Category, Product, Profile, Review


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def db_session():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock async database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    db.get_bind = MagicMock()
    return db


@pytest.fixture
def make_profile(db_session):
    """Insert a profile. Usage: await make_profile(role="admin")."""
    async def _make(email=None, full_name="Test Shopper", role="user", created_at=None):
        profile = Profile(
            id=new_id(),
            email=email or f"{new_id()[:8]}@example.com",
            full_name=full_name,
            role=role,
            created_at=created_at or utcnow(),
        )
        db_session.add(profile)
        await db_session.commit()
        return profile
    return _make


@pytest.fixture
def make_category(db_session):
    async def _make(name="Comics", is_active=True):
        category = Category(id=new_id(), name=name, slug=generate_slug(name), is_active=is_active)
        db_session.add(category)
        await db_session.commit()
        return category
    return _make


@pytest.fixture
def make_product(db_session):
    """
    Insert a product. created_at is spread one second apart per call so
    ordering by creation time is deterministic.
    """
    counter = {"n": 0}

    async def _make(
        name=None,
        price="10.00",
        stock_quantity=10,
        is_active=True,
        featured=False,
        category_id=None,
        image_urls=None,
    ):
        counter["n"] += 1
        name = name or f"Product {counter['n']}"
        product = Product(
            id=new_id(),
            name=name,
            slug=f"{generate_slug(name)}-{counter['n']}",
            price=Decimal(price),
            stock_quantity=stock_quantity,
            is_active=is_active,
            featured=featured,
            category_id=category_id,
            image_urls=image_urls if image_urls is not None else [f"https://img.example.com/{counter['n']}.jpg"],
            created_at=utcnow() + timedelta(seconds=counter["n"]),
        )
        db_session.add(product)
        await db_session.commit()
        return product
    return _make


@pytest.fixture
def make_review(db_session):
    async def _make(product, user=None, rating=5, title="Great", created_at=None):
        review = Review(
            id=new_id(),
            product_id=product.id,
            user_id=user.id if user else None,
            rating=rating,
            title=title,
            created_at=created_at or utcnow(),
        )
        db_session.add(review)
        await db_session.commit()
        return review
    return _make


@pytest.fixture
def auth_headers():
    """Bearer header as the identity provider would issue it."""
    def _headers(profile) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': profile.id})}"}
    return _headers


@pytest.fixture
def checkout_form_data() -> dict:
    return {
        "shipping_street": "123 Main Street",
        "shipping_city": "Springfield",
        "shipping_state": "IL",
        "shipping_zip": "62701",
        "same_as_shipping": True,
        "payment_method": "credit_card",
        "card_number": "4242424242424242",
        "card_expiry": "12/30",
        "card_cvc": "123",
        "card_name": "Test Shopper",
    }
