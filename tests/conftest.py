"""
Pytest configuration and shared fixtures for all tests.

This file provides:
- Database fixtures (in-memory SQLite for fast tests)
- Snapshot factories
- FastAPI test client
- DI container helpers
"""

import os
import sys
from datetime import date
from typing import AsyncGenerator

import pytest

# Prepopulate required env vars for settings before imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("INSTA_TOKEN", "dummy_insta_token")
os.environ.setdefault("INSTAGRAM_BASE_ACC_ID", "acct")
os.environ.setdefault("JWT_SECRET_KEY", "dummy_jwt_secret")

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from faker import Faker
from httpx import ASGITransport, AsyncClient
from sqlalchemy import JSON
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.container import Container, reset_container
from core.models import DailyMetrics
from core.models.base import Base
from main import app

fake = Faker()


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
async def test_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:

        def _create_tables_with_json(connection):
            # SQLite has no JSONB; swap in the generic JSON type
            for table in Base.metadata.tables.values():
                for column in table.columns:
                    if column.type.__class__.__name__ == "JSONB":
                        column.type = JSON()

            Base.metadata.create_all(connection)

        await conn.run_sync(_create_tables_with_json)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================


@pytest.fixture
def daily_metrics_factory(db_session):
    """Factory for persisted daily snapshots; counters default to random values."""

    async def _create_snapshot(snapshot_date: date, **kwargs) -> DailyMetrics:
        snapshot = DailyMetrics(
            date=snapshot_date,
            followers_count=kwargs.pop("followers_count", fake.random_int(min=1000, max=5000)),
            media_count=kwargs.pop("media_count", fake.random_int(min=10, max=300)),
            reach_daily=kwargs.pop("reach_daily", fake.random_int(min=0, max=1000)),
            impressions_daily=kwargs.pop("impressions_daily", fake.random_int(min=0, max=2000)),
            raw_payload=kwargs.pop("raw_payload", {}),
            **kwargs,
        )
        db_session.add(snapshot)
        await db_session.commit()
        await db_session.refresh(snapshot)
        return snapshot

    return _create_snapshot


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Async FastAPI test client for testing async endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ============================================================================
# DEPENDENCY INJECTION FIXTURES
# ============================================================================


@pytest.fixture
def test_container():
    """Create a fresh DI container."""
    reset_container()
    container = Container()

    yield container

    reset_container()
