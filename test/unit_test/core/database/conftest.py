"""Test configuration for database unit tests.

This module provides an in-memory SQLite session and a few persisted rows
(a user, an active case and its image) shared by the repository tests.
"""

from __future__ import annotations

from datetime import datetime
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel.pool import StaticPool

from mortiscope.core.database import Base
from mortiscope.core.database import entities  # noqa: F401
from mortiscope.core.database.entities.cases import Case
from mortiscope.core.database.entities.uploads import Upload
from mortiscope.core.database.entities.users import User


@pytest.fixture(scope="function")
async def in_memory_engine() -> AsyncGenerator:
    """Create in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture(scope="function")
async def in_memory_session(in_memory_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create in-memory SQLite session for testing."""
    async_session = async_sessionmaker(bind=in_memory_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session


@pytest.fixture(scope="function")
def sample_case_data() -> dict:
    """Sample case data for testing."""
    return {
        "case_name": "Riverbank Remains",
        "status": "active",
        "temperature_celsius": 27.5,
        "location_region": "Region IV-A",
        "location_province": "Laguna",
        "location_city": "Los Baños",
        "location_barangay": "Batong Malake",
        "case_date": datetime(2025, 2, 20, 7, 15),
    }


@pytest.fixture(scope="function")
async def user(in_memory_session: AsyncSession) -> User:
    user = User(name="Maria Santos", email="maria.santos@example.com", password_hash="hash")
    in_memory_session.add(user)
    await in_memory_session.commit()
    return user


@pytest.fixture(scope="function")
async def case(in_memory_session: AsyncSession, user: User, sample_case_data: dict) -> Case:
    case = Case(user_id=user.id, **sample_case_data)
    in_memory_session.add(case)
    await in_memory_session.commit()
    return case


@pytest.fixture(scope="function")
async def upload(in_memory_session: AsyncSession, user: User, case: Case) -> Upload:
    upload = Upload(
        user_id=user.id,
        case_id=case.id,
        name="larvae.jpg",
        key=f"uploads/{user.id}/{case.id}/larvae.jpg",
        url="https://bucket.example/larvae.jpg",
        size=4096,
        type="image/jpeg",
        width=1024,
        height=768,
    )
    in_memory_session.add(upload)
    await in_memory_session.commit()
    return upload
